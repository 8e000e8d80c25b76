from __future__ import annotations

import logging

from sqlmodel import Session, col, select

from parksys.domain.models import (
    Asset,
    AssetMaintenance,
    AssetStatus,
    MaintenanceCreate,
    MaintenanceRead,
    User,
)
from parksys.infra.db import get_engine
from parksys.infra.events import event_bus
from parksys.services.asset_history_service import AssetHistoryService

logger = logging.getLogger(__name__)


class AssetMaintenanceError(Exception):
    pass


class NotFoundError(AssetMaintenanceError):
    pass


class ConflictError(AssetMaintenanceError):
    pass


class AssetMaintenanceService:
    def __init__(self) -> None:
        self._history = AssetHistoryService()

    def _session(self) -> Session:
        return Session(get_engine(), expire_on_commit=False)

    def _get_asset(self, session: Session, asset_id: int) -> Asset:
        asset = session.get(Asset, asset_id)
        if asset is None:
            raise NotFoundError("asset not found")
        return asset

    def _to_read(self, row: AssetMaintenance, performers: dict[int, User]) -> MaintenanceRead:
        read = MaintenanceRead.model_validate(row)
        performer = performers.get(row.performer_id) if row.performer_id is not None else None
        if performer is not None:
            read.performer_name = performer.full_name or performer.username
        return read

    def create_maintenance(
        self,
        asset_id: int,
        actor_id: int | None,
        payload: MaintenanceCreate,
    ) -> MaintenanceRead:
        with self._session() as session:
            asset = self._get_asset(session, asset_id)
            if asset.status == AssetStatus.RETIRED:
                raise ConflictError("cannot record maintenance for a retired asset")
            performers: dict[int, User] = {}
            if payload.performer_id is not None:
                performer = session.get(User, payload.performer_id)
                if performer is None:
                    raise NotFoundError("performer not found")
                performers[performer.id] = performer
            maintenance = AssetMaintenance(
                asset_id=asset_id,
                date=payload.date,
                maintenance_type=payload.maintenance_type,
                description=payload.description,
                cost=payload.cost,
                performed_by=payload.performed_by,
                performer_id=payload.performer_id,
                next_maintenance_date=payload.next_maintenance_date,
                status=payload.status,
                findings=payload.findings,
                actions=payload.actions,
                notes=payload.notes,
                created_by=actor_id,
            )
            session.add(maintenance)
            session.flush()
            self._history.append_maintenance(session, maintenance, actor_id)
            session.commit()
            session.refresh(maintenance)
            result = self._to_read(maintenance, performers)

        logger.info("maintenance %s recorded for asset %s", result.id, asset_id)
        event_bus.publish_dict(
            "asset.maintenance.recorded",
            {
                "asset_id": asset_id,
                "maintenance_id": result.id,
                "maintenance_type": result.maintenance_type,
                "status": result.status,
            },
            actor_id=str(actor_id) if actor_id is not None else None,
        )
        return result

    def list_maintenances(self, asset_id: int) -> list[MaintenanceRead]:
        with self._session() as session:
            self._get_asset(session, asset_id)
            statement = (
                select(AssetMaintenance)
                .where(AssetMaintenance.asset_id == asset_id)
                .order_by(col(AssetMaintenance.date).desc(), col(AssetMaintenance.id).desc())
            )
            rows = list(session.exec(statement).all())
            performer_ids = {row.performer_id for row in rows if row.performer_id is not None}
            performers = (
                {user.id: user for user in session.exec(select(User).where(col(User.id).in_(performer_ids)))}
                if performer_ids
                else {}
            )
            return [self._to_read(row, performers) for row in rows]
