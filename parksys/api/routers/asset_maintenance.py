from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status

from parksys.api.deps import get_current_claims, require_perm
from parksys.domain.models import MaintenanceCreate, MaintenanceRead
from parksys.domain.permissions import PERM_ASSET_READ, PERM_ASSET_WRITE
from parksys.infra.audit import set_audit_context
from parksys.infra.auth import actor_user_id
from parksys.services.asset_maintenance_service import (
    AssetMaintenanceService,
    ConflictError,
    NotFoundError,
)

router = APIRouter()


def get_asset_maintenance_service() -> AssetMaintenanceService:
    return AssetMaintenanceService()


Claims = Annotated[dict[str, Any], Depends(get_current_claims)]
Service = Annotated[AssetMaintenanceService, Depends(get_asset_maintenance_service)]


def _handle_error(exc: Exception) -> None:
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    raise exc


@router.post(
    "/{asset_id}/maintenances",
    response_model=MaintenanceRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_perm(PERM_ASSET_WRITE))],
)
def create_maintenance(
    asset_id: int,
    payload: MaintenanceCreate,
    request: Request,
    claims: Claims,
    service: Service,
) -> MaintenanceRead:
    set_audit_context(
        request,
        action="asset.maintenance.create",
        detail={"what": {"asset_id": asset_id, "maintenance_type": payload.maintenance_type}},
    )
    try:
        return service.create_maintenance(asset_id, actor_user_id(claims), payload)
    except (NotFoundError, ConflictError) as exc:
        _handle_error(exc)
        raise


@router.get(
    "/{asset_id}/maintenances",
    response_model=list[MaintenanceRead],
    dependencies=[Depends(require_perm(PERM_ASSET_READ))],
)
def list_maintenances(asset_id: int, service: Service) -> list[MaintenanceRead]:
    try:
        return service.list_maintenances(asset_id)
    except NotFoundError as exc:
        _handle_error(exc)
        raise
