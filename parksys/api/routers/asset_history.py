from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from parksys.api.deps import require_perm
from parksys.domain.models import HistoryEntryRead, RecentHistoryRead
from parksys.domain.permissions import PERM_ASSET_READ
from parksys.services.asset_history_service import AssetHistoryService, NotFoundError

router = APIRouter()


def get_asset_history_service() -> AssetHistoryService:
    return AssetHistoryService()


Service = Annotated[AssetHistoryService, Depends(get_asset_history_service)]


@router.get(
    "/history/recent",
    response_model=list[RecentHistoryRead],
    dependencies=[Depends(require_perm(PERM_ASSET_READ))],
)
def list_recent_history(
    service: Service,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[RecentHistoryRead]:
    return service.list_recent(limit)


@router.get(
    "/{asset_id}/history",
    response_model=list[HistoryEntryRead],
    dependencies=[Depends(require_perm(PERM_ASSET_READ))],
)
def list_asset_history(asset_id: int, service: Service) -> list[HistoryEntryRead]:
    try:
        return service.list_history(asset_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
