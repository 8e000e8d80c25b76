"""Reference data an empty database needs before assets can be registered.

Parks, categories and users have no write endpoints; they are seeded here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlmodel import Session, select

from parksys.domain.models import AssetCategory, Park, User
from parksys.infra.db import get_engine

logger = logging.getLogger(__name__)

DEFAULT_PARK_NAME = "Central Park"
DEFAULT_CATEGORY_NAME = "Playground equipment"
DEFAULT_ADMIN_USERNAME = "admin"


@dataclass(frozen=True)
class SeedResult:
    park_id: int
    category_id: int
    admin_user_id: int


def seed_reference_data(
    *,
    park_name: str = DEFAULT_PARK_NAME,
    category_name: str = DEFAULT_CATEGORY_NAME,
    admin_username: str = DEFAULT_ADMIN_USERNAME,
) -> SeedResult:
    """Create the park, category and admin user if missing. Safe to run repeatedly."""
    with Session(get_engine(), expire_on_commit=False) as session:
        park = session.exec(select(Park).where(Park.name == park_name)).first()
        if park is None:
            park = Park(name=park_name)
            session.add(park)
        category = session.exec(select(AssetCategory).where(AssetCategory.name == category_name)).first()
        if category is None:
            category = AssetCategory(name=category_name, icon="tree", color="#16a34a")
            session.add(category)
        admin = session.exec(select(User).where(User.username == admin_username)).first()
        if admin is None:
            admin = User(username=admin_username, full_name="Administrator")
            session.add(admin)
        session.commit()
        result = SeedResult(park_id=park.id, category_id=category.id, admin_user_id=admin.id)

    logger.info("reference data ready: %s", result)
    return result


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_reference_data()
