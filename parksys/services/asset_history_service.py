"""Server-side asset history.

This is the only writer of ``AssetHistory`` rows. Entries are appended inside
the same session as the mutation they describe, so a rolled-back write never
leaves an orphan entry, and there is no HTTP route that creates one directly.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlmodel import Session, col, select

from parksys.domain.diff import changed_fields
from parksys.domain.labels import (
    CONDITION_LABELS,
    MAINTENANCE_TYPE_LABELS,
    STATUS_LABELS,
    field_label,
    format_field_value,
    label_for,
)
from parksys.domain.models import (
    UPDATABLE_ASSET_FIELDS,
    Asset,
    AssetCategory,
    AssetHistory,
    AssetMaintenance,
    ChangeType,
    HistoryEntryRead,
    Park,
    RecentHistoryRead,
    User,
)
from parksys.infra.db import get_engine

logger = logging.getLogger(__name__)


class AssetHistoryError(Exception):
    pass


class NotFoundError(AssetHistoryError):
    pass


REFERENCE_FIELDS: dict[str, tuple[type[Any], str, str]] = {
    "park_id": (Park, "name", "Not specified"),
    "category_id": (AssetCategory, "name", "Not specified"),
    "subcategory_id": (AssetCategory, "name", "Not specified"),
    "responsible_person_id": (User, "full_name", "Unassigned"),
}


class AssetHistoryService:
    def _session(self) -> Session:
        return Session(get_engine(), expire_on_commit=False)

    def _reference_name(self, session: Session, field_name: str, value: Any) -> str:
        model, attribute, missing = REFERENCE_FIELDS[field_name]
        if value is None:
            return missing
        row = session.get(model, value)
        if row is None:
            return missing
        return getattr(row, attribute) or missing

    def _append(
        self,
        session: Session,
        *,
        asset_id: int,
        change_type: ChangeType,
        description: str,
        actor_id: int | None,
        field_name: str | None = None,
        previous_value: Any = None,
        new_value: Any = None,
        notes: str | None = None,
    ) -> AssetHistory:
        entry = AssetHistory(
            asset_id=asset_id,
            change_type=change_type,
            field_name=field_name,
            previous_value=previous_value,
            new_value=new_value,
            description=description,
            notes=notes,
            user_id=actor_id,
        )
        session.add(entry)
        return entry

    def append_creation(self, session: Session, asset: Asset, actor_id: int | None) -> AssetHistory:
        notes = (
            f"Category: {self._reference_name(session, 'category_id', asset.category_id)}, "
            f"Park: {self._reference_name(session, 'park_id', asset.park_id)}, "
            f"Status: {label_for(asset.status, STATUS_LABELS)}"
        )
        return self._append(
            session,
            asset_id=asset.id,
            change_type=ChangeType.CREATION,
            description=f"Asset registered: {asset.name}",
            actor_id=actor_id,
            notes=notes,
        )

    def append_updates(
        self,
        session: Session,
        asset_id: int,
        previous: Mapping[str, Any],
        current: Mapping[str, Any],
        actor_id: int | None,
    ) -> list[AssetHistory]:
        """Append one ``updated`` entry per tracked field whose value actually changed."""
        entries: list[AssetHistory] = []
        for name in changed_fields(previous, current, UPDATABLE_ASSET_FIELDS):
            old_value = previous.get(name)
            new_value = current.get(name)
            if name in REFERENCE_FIELDS:
                old_text = self._reference_name(session, name, old_value)
                new_text = self._reference_name(session, name, new_value)
            else:
                old_text = format_field_value(name, old_value)
                new_text = format_field_value(name, new_value)
            entries.append(
                self._append(
                    session,
                    asset_id=asset_id,
                    change_type=ChangeType.UPDATED,
                    description=f"{field_label(name)} changed from '{old_text}' to '{new_text}'",
                    actor_id=actor_id,
                    field_name=name,
                    previous_value=old_value,
                    new_value=new_value,
                )
            )
        return entries

    def append_maintenance(
        self,
        session: Session,
        maintenance: AssetMaintenance,
        actor_id: int | None,
    ) -> AssetHistory:
        type_label = label_for(maintenance.maintenance_type, MAINTENANCE_TYPE_LABELS)
        cost = format_field_value("cost", maintenance.cost)
        return self._append(
            session,
            asset_id=maintenance.asset_id,
            change_type=ChangeType.MAINTENANCE,
            description=f"Maintenance recorded: {type_label}",
            actor_id=actor_id,
            field_name="maintenance_type",
            previous_value=None,
            new_value=str(maintenance.maintenance_type),
            notes=f"Description: {maintenance.description}, Cost: {cost}",
        )

    def append_deletion(self, session: Session, asset: Asset, actor_id: int | None) -> AssetHistory:
        notes = (
            f"Status at deletion: {label_for(asset.status, STATUS_LABELS)}, "
            f"Condition: {label_for(asset.condition, CONDITION_LABELS)}"
        )
        return self._append(
            session,
            asset_id=asset.id,
            change_type=ChangeType.DELETION,
            description=f"Asset deleted: {asset.name}",
            actor_id=actor_id,
            notes=notes,
        )

    def _user_lookup(self, session: Session, user_ids: set[int]) -> dict[int, User]:
        if not user_ids:
            return {}
        rows = session.exec(select(User).where(col(User.id).in_(user_ids))).all()
        return {row.id: row for row in rows}

    def list_history(self, asset_id: int) -> list[HistoryEntryRead]:
        with self._session() as session:
            if session.get(Asset, asset_id) is None:
                raise NotFoundError("asset not found")
            statement = (
                select(AssetHistory)
                .where(AssetHistory.asset_id == asset_id)
                .order_by(col(AssetHistory.timestamp), col(AssetHistory.id))
            )
            rows = list(session.exec(statement).all())
            users = self._user_lookup(session, {row.user_id for row in rows if row.user_id is not None})
        logger.debug("loaded %d history entries for asset %s", len(rows), asset_id)

        result: list[HistoryEntryRead] = []
        for row in rows:
            user = users.get(row.user_id) if row.user_id is not None else None
            result.append(
                HistoryEntryRead(
                    id=row.id,
                    asset_id=row.asset_id,
                    change_type=row.change_type,
                    field_name=row.field_name,
                    previous_value=row.previous_value,
                    new_value=row.new_value,
                    description=row.description,
                    notes=row.notes,
                    user_id=row.user_id,
                    user_name=user.full_name if user is not None else None,
                    user_username=user.username if user is not None else None,
                    timestamp=row.timestamp,
                )
            )
        return result

    def list_recent(self, limit: int = 10) -> list[RecentHistoryRead]:
        with self._session() as session:
            statement = (
                select(AssetHistory)
                .order_by(col(AssetHistory.timestamp).desc(), col(AssetHistory.id).desc())
                .limit(limit)
            )
            rows = list(session.exec(statement).all())
            users = self._user_lookup(session, {row.user_id for row in rows if row.user_id is not None})
            asset_ids = {row.asset_id for row in rows}
            assets = (
                {asset.id: asset.name for asset in session.exec(select(Asset).where(col(Asset.id).in_(asset_ids)))}
                if asset_ids
                else {}
            )

        return [
            RecentHistoryRead(
                id=row.id,
                asset_id=row.asset_id,
                asset_name=assets.get(row.asset_id),
                change_type=row.change_type,
                description=row.description,
                user_name=users[row.user_id].full_name if row.user_id in users else None,
                timestamp=row.timestamp,
            )
            for row in rows
        ]
