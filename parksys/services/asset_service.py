from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlmodel import Session, col, select

from parksys.domain.diff import values_equal
from parksys.domain.models import (
    Asset,
    AssetCategory,
    AssetCreate,
    AssetMaintenance,
    AssetRead,
    AssetStatus,
    AssetUpdate,
    Park,
    User,
)
from parksys.infra.db import get_engine
from parksys.infra.events import event_bus
from parksys.services.asset_history_service import AssetHistoryService

logger = logging.getLogger(__name__)


class AssetError(Exception):
    pass


class NotFoundError(AssetError):
    pass


class InvalidReferenceError(AssetError):
    pass


class ConflictError(AssetError):
    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []


def asset_snapshot(asset: Asset) -> dict[str, Any]:
    """JSON-shaped view of an asset, the form both history diffs and ``expected`` checks compare."""
    return AssetRead.model_validate(asset).model_dump(mode="json")


class AssetService:
    def __init__(self) -> None:
        self._history = AssetHistoryService()

    def _session(self) -> Session:
        return Session(get_engine(), expire_on_commit=False)

    def _get_asset(self, session: Session, asset_id: int) -> Asset:
        asset = session.get(Asset, asset_id)
        if asset is None:
            raise NotFoundError("asset not found")
        return asset

    def _ensure_references(self, session: Session, values: dict[str, Any]) -> None:
        checks: list[tuple[str, type[Any], str]] = [
            ("park_id", Park, "park not found"),
            ("category_id", AssetCategory, "category not found"),
            ("subcategory_id", AssetCategory, "subcategory not found"),
            ("responsible_person_id", User, "responsible person not found"),
        ]
        for field_name, model, message in checks:
            value = values.get(field_name)
            if value is not None and session.get(model, value) is None:
                raise InvalidReferenceError(message)

    def _apply(self, asset: Asset, values: dict[str, Any]) -> None:
        for field_name, value in values.items():
            if field_name == "coordinate":
                asset.latitude = value["lat"] if value is not None else None
                asset.longitude = value["lng"] if value is not None else None
                continue
            setattr(asset, field_name, value)

    def create_asset(self, actor_id: int | None, payload: AssetCreate) -> Asset:
        values = payload.model_dump()
        with self._session() as session:
            self._ensure_references(session, values)
            asset = Asset(name=payload.name, category_id=payload.category_id, park_id=payload.park_id)
            self._apply(asset, values)
            session.add(asset)
            session.flush()
            self._history.append_creation(session, asset, actor_id)
            session.commit()
            session.refresh(asset)

        logger.info("asset %s registered in park %s", asset.id, asset.park_id)
        event_bus.publish_dict(
            "asset.registered",
            {
                "asset_id": asset.id,
                "park_id": asset.park_id,
                "category_id": asset.category_id,
                "status": asset.status,
            },
            actor_id=str(actor_id) if actor_id is not None else None,
        )
        return asset

    def list_assets(
        self,
        *,
        park_id: int | None = None,
        category_id: int | None = None,
        status: AssetStatus | None = None,
    ) -> list[Asset]:
        with self._session() as session:
            statement = select(Asset)
            if park_id is not None:
                statement = statement.where(Asset.park_id == park_id)
            if category_id is not None:
                statement = statement.where(Asset.category_id == category_id)
            if status is not None:
                statement = statement.where(Asset.status == status)
            return list(session.exec(statement.order_by(col(Asset.id))).all())

    def get_asset(self, asset_id: int) -> Asset:
        with self._session() as session:
            return self._get_asset(session, asset_id)

    def update_asset(self, asset_id: int, actor_id: int | None, payload: AssetUpdate) -> Asset:
        changes = payload.changes()
        with self._session() as session:
            asset = self._get_asset(session, asset_id)
            previous = asset_snapshot(asset)
            stale = sorted(
                field_name
                for field_name, expected_value in payload.expected.items()
                if not values_equal(previous.get(field_name), expected_value, field_name)
            )
            if stale:
                logger.warning("asset %s update rejected, concurrent change on %s", asset_id, stale)
                raise ConflictError("asset was changed by someone else", fields=stale)
            self._ensure_references(session, changes)
            self._apply(asset, changes)
            current = asset_snapshot(asset)
            entries = self._history.append_updates(session, asset_id, previous, current, actor_id)
            if entries:
                asset.updated_at = datetime.now(UTC)
                session.add(asset)
                session.commit()
                session.refresh(asset)
            else:
                session.rollback()
                session.refresh(asset)

        changed = [entry.field_name for entry in entries]
        if changed:
            logger.info("asset %s updated: %s", asset_id, ", ".join(str(name) for name in changed))
            event_bus.publish_dict(
                "asset.updated",
                {"asset_id": asset_id, "fields": changed},
                actor_id=str(actor_id) if actor_id is not None else None,
            )
        return asset

    def delete_asset(self, asset_id: int, actor_id: int | None) -> None:
        with self._session() as session:
            asset = self._get_asset(session, asset_id)
            self._history.append_deletion(session, asset, actor_id)
            maintenances = session.exec(select(AssetMaintenance).where(AssetMaintenance.asset_id == asset_id)).all()
            for maintenance in maintenances:
                session.delete(maintenance)
            session.flush()
            session.delete(asset)
            session.commit()

        logger.info("asset %s deleted", asset_id)
        event_bus.publish_dict(
            "asset.deleted",
            {"asset_id": asset_id},
            actor_id=str(actor_id) if actor_id is not None else None,
        )
