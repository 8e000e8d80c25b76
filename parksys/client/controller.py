from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from parksys.client.api import ParkSysApi
from parksys.client.cache import QueryCache, asset_key, history_key, maintenances_key
from parksys.client.errors import ClientError, ConfirmationRequiredError, ValidationError
from parksys.client.forms import validate_maintenance_form
from parksys.client.ledger import HistoryLedger
from parksys.client.notifications import Notifier
from parksys.client.reconciler import AssetEditSession
from parksys.domain.maintenance import MaintenanceSummary, derive_maintenance_status

logger = logging.getLogger(__name__)

INVENTORY_PATH = "/admin/assets"

T = TypeVar("T")


@dataclass
class QueryResult(Generic[T]):
    """Outcome of one read; ``data`` and ``error`` are never both set."""

    data: T | None = None
    error: ClientError | None = None

    @property
    def loading(self) -> bool:
        return self.data is None and self.error is None

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None


@dataclass
class AssetDetailView:
    asset: QueryResult[dict[str, Any]] = field(default_factory=QueryResult)
    maintenances: QueryResult[list[dict[str, Any]]] = field(default_factory=QueryResult)
    history: QueryResult[HistoryLedger] = field(default_factory=QueryResult)

    @property
    def maintenance_summary(self) -> MaintenanceSummary | None:
        # Only derived once the maintenance list itself has resolved.
        if self.maintenances.data is None:
            return None
        return derive_maintenance_status(self.maintenances.data)


class AssetDetailController:
    """Loads one asset with its maintenance list and history, and runs the writes on it."""

    def __init__(
        self,
        api: ParkSysApi,
        asset_id: int,
        *,
        cache: QueryCache | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._api = api
        self.asset_id = asset_id
        self.cache = cache or QueryCache()
        self.notifier = notifier or Notifier()
        self.view = AssetDetailView()
        self.edit_session = AssetEditSession(api, self.cache, self.notifier)
        self.redirect_to: str | None = None
        self.maintenance_errors: dict[str, str] = {}

    async def _load_history(self) -> HistoryLedger:
        return HistoryLedger.from_payload(await self._api.list_history(self.asset_id))

    async def _query(self, key: tuple[Any, ...], loader: Callable[[], Awaitable[T]]) -> QueryResult[T]:
        try:
            return QueryResult(data=await self.cache.fetch(key, loader))
        except ClientError as exc:
            logger.info("query %s failed: %s", key, exc.kind)
            return QueryResult(error=exc)

    async def load(self) -> AssetDetailView:
        """Issue the three reads concurrently; each result stands on its own."""
        asset, maintenances, history = await asyncio.gather(
            self._query(asset_key(self.asset_id), lambda: self._api.get_asset(self.asset_id)),
            self._query(maintenances_key(self.asset_id), lambda: self._api.list_maintenances(self.asset_id)),
            self._query(history_key(self.asset_id), self._load_history),
        )
        self.view = AssetDetailView(asset=asset, maintenances=maintenances, history=history)
        return self.view

    def open_edit(self) -> AssetEditSession:
        asset = self.view.asset.data
        if asset is None:
            raise RuntimeError("asset is not loaded")
        self.edit_session.open(asset)
        return self.edit_session

    async def submit_edit(self, *, force: bool = False) -> dict[str, Any] | None:
        updated = await self.edit_session.submit(force=force)
        if updated is not None:
            await self.load()
        return updated

    async def record_maintenance(self, values: Mapping[str, Any]) -> dict[str, Any] | None:
        """Add a maintenance record. Does not touch an open edit session.

        A rejected form returns ``None`` and leaves its messages in
        ``maintenance_errors``.
        """
        title = "Record maintenance"
        form, errors = validate_maintenance_form(values)
        self.maintenance_errors = errors
        if form is None:
            self.notifier.failure(title, ValidationError("maintenance form has invalid fields", errors))
            return None
        try:
            created = await self._api.create_maintenance(self.asset_id, form.payload())
        except ValidationError as exc:
            self.maintenance_errors = dict(exc.field_errors)
            self.notifier.failure(title, exc)
            return None
        except ClientError as exc:
            self.notifier.failure(title, exc)
            raise
        self.cache.invalidate(asset_key(self.asset_id))
        self.notifier.success(title, "Maintenance recorded.")
        await self.load()
        return created

    async def delete(self, *, confirmed: bool = False) -> None:
        """Delete the asset. Irreversible, so nothing is sent until ``confirmed``."""
        title = "Delete asset"
        if not confirmed:
            exc = ConfirmationRequiredError("deleting an asset cannot be undone")
            self.notifier.failure(title, exc)
            raise exc
        try:
            await self._api.delete_asset(self.asset_id)
        except ClientError as exc:
            self.notifier.failure(title, exc)
            raise
        self.cache.invalidate(asset_key(self.asset_id))
        self.view = AssetDetailView()
        self.redirect_to = INVENTORY_PATH
        logger.info("asset %s deleted, leaving detail view", self.asset_id)
        self.notifier.success(title, "Asset deleted.")
