from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status

from parksys.api.deps import get_current_claims, require_perm
from parksys.domain.models import AssetCreate, AssetRead, AssetStatus, AssetUpdate, MessageRead
from parksys.domain.permissions import PERM_ASSET_READ, PERM_ASSET_WRITE
from parksys.infra.audit import set_audit_context
from parksys.infra.auth import actor_user_id
from parksys.services.asset_service import (
    AssetService,
    ConflictError,
    InvalidReferenceError,
    NotFoundError,
)

router = APIRouter()


def get_asset_service() -> AssetService:
    return AssetService()


Claims = Annotated[dict[str, Any], Depends(get_current_claims)]
Service = Annotated[AssetService, Depends(get_asset_service)]


def _handle_asset_error(exc: Exception) -> None:
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, InvalidReferenceError):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(exc), "fields": exc.fields},
        ) from exc
    raise exc


@router.post(
    "",
    response_model=AssetRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_perm(PERM_ASSET_WRITE))],
)
def create_asset(payload: AssetCreate, request: Request, claims: Claims, service: Service) -> AssetRead:
    set_audit_context(request, action="asset.create", detail={"what": {"park_id": payload.park_id}})
    try:
        asset = service.create_asset(actor_user_id(claims), payload)
        return AssetRead.model_validate(asset)
    except (NotFoundError, InvalidReferenceError) as exc:
        _handle_asset_error(exc)
        raise


@router.get(
    "",
    response_model=list[AssetRead],
    dependencies=[Depends(require_perm(PERM_ASSET_READ))],
)
def list_assets(
    service: Service,
    park_id: int | None = None,
    category_id: int | None = None,
    status: AssetStatus | None = None,
) -> list[AssetRead]:
    rows = service.list_assets(park_id=park_id, category_id=category_id, status=status)
    return [AssetRead.model_validate(item) for item in rows]


@router.get(
    "/{asset_id}",
    response_model=AssetRead,
    dependencies=[Depends(require_perm(PERM_ASSET_READ))],
)
def get_asset(asset_id: int, service: Service) -> AssetRead:
    try:
        asset = service.get_asset(asset_id)
        return AssetRead.model_validate(asset)
    except NotFoundError as exc:
        _handle_asset_error(exc)
        raise


@router.put(
    "/{asset_id}",
    response_model=AssetRead,
    dependencies=[Depends(require_perm(PERM_ASSET_WRITE))],
)
def update_asset(
    asset_id: int,
    payload: AssetUpdate,
    request: Request,
    claims: Claims,
    service: Service,
) -> AssetRead:
    set_audit_context(
        request,
        action="asset.update",
        detail={"what": {"asset_id": asset_id, "fields": sorted(payload.changes())}},
    )
    try:
        asset = service.update_asset(asset_id, actor_user_id(claims), payload)
        return AssetRead.model_validate(asset)
    except (NotFoundError, InvalidReferenceError, ConflictError) as exc:
        _handle_asset_error(exc)
        raise


@router.delete(
    "/{asset_id}",
    response_model=MessageRead,
    dependencies=[Depends(require_perm(PERM_ASSET_WRITE))],
)
def delete_asset(asset_id: int, request: Request, claims: Claims, service: Service) -> MessageRead:
    set_audit_context(request, action="asset.delete", detail={"what": {"asset_id": asset_id}})
    try:
        service.delete_asset(asset_id, actor_user_id(claims))
    except NotFoundError as exc:
        _handle_asset_error(exc)
        raise
    return MessageRead(message="Asset deleted")
