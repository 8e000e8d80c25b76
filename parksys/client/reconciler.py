"""Edit session for a single asset.

The session snapshots the asset when it opens and keeps that baseline for its
whole life. On submit it re-reads the asset straight from the server, and any
field the user changed that was also changed on the server since the baseline
is reported as a conflict instead of being overwritten.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from parksys.client.api import ParkSysApi
from parksys.client.cache import QueryCache, asset_key
from parksys.client.errors import ClientError, ConflictError, ValidationError
from parksys.client.forms import ASSET_FORM_FIELDS, form_values_from_asset, validate_asset_form
from parksys.client.notifications import Notifier
from parksys.domain.diff import changed_fields, values_equal
from parksys.domain.models import UPDATABLE_ASSET_FIELDS
from parksys.domain.state_machine import EditSessionState, can_transition

logger = logging.getLogger(__name__)

SAVE_TITLE = "Save asset"
RELOAD_TITLE = "Reload asset"


class InvalidTransitionError(RuntimeError):
    pass


class AssetEditSession:
    def __init__(self, api: ParkSysApi, cache: QueryCache, notifier: Notifier) -> None:
        self._api = api
        self._cache = cache
        self._notifier = notifier
        self.state = EditSessionState.IDLE
        self.asset_id: int | None = None
        self.original: Mapping[str, Any] | None = None
        self.form: dict[str, Any] = {}
        self.errors: dict[str, str] = {}

    def _transition(self, target: EditSessionState) -> None:
        if not can_transition(self.state, target):
            raise InvalidTransitionError(f"cannot go from {self.state} to {target}")
        self.state = target

    def _require(self, state: EditSessionState) -> None:
        if self.state != state:
            raise InvalidTransitionError(f"edit session is {self.state}, expected {state}")

    def _opened(self) -> tuple[int, Mapping[str, Any]]:
        if self.asset_id is None or self.original is None:
            raise InvalidTransitionError("no asset is open for editing")
        return self.asset_id, self.original

    def _reset(self) -> None:
        self.asset_id = None
        self.original = None
        self.form = {}
        self.errors = {}

    def open(self, asset: Mapping[str, Any]) -> None:
        self._transition(EditSessionState.EDITING)
        self.asset_id = int(asset["id"])
        self.original = MappingProxyType(copy.deepcopy(dict(asset)))
        self.form = form_values_from_asset(asset)
        self.errors = {}

    def set_field(self, name: str, value: Any) -> None:
        self._require(EditSessionState.EDITING)
        if name not in ASSET_FORM_FIELDS:
            raise KeyError(name)
        self.form[name] = value

    def update(self, **values: Any) -> None:
        for name, value in values.items():
            self.set_field(name, value)

    def edited_fields(self) -> list[str]:
        """Form inputs that differ from the baseline."""
        if self.original is None:
            return []
        baseline = form_values_from_asset(self.original)
        return changed_fields(baseline, self.form, ASSET_FORM_FIELDS)

    def validate(self) -> dict[str, str]:
        self._transition(EditSessionState.VALIDATING)
        _, self.errors = validate_asset_form(self.form)
        self._transition(EditSessionState.EDITING)
        return dict(self.errors)

    def _fail(self, exc: ClientError) -> None:
        self._transition(EditSessionState.EDITING)
        self._notifier.failure(SAVE_TITLE, exc)

    async def submit(self, *, force: bool = False) -> dict[str, Any] | None:
        """Validate and send the edit.

        Returns the saved asset, or ``None`` when the form was rejected by
        validation; the per-field messages are then in ``errors`` and the
        session is back in Editing. Every other failure is notified, leaves
        the form untouched and is re-raised.

        ``force`` skips both the client-side conflict check and the server's
        ``expected`` check, overwriting whatever the server currently holds.
        """
        asset_id, original = self._opened()
        self._transition(EditSessionState.VALIDATING)
        parsed, errors = validate_asset_form(self.form)
        if parsed is None:
            self.errors = errors
            self._transition(EditSessionState.EDITING)
            self._notifier.failure(SAVE_TITLE, ValidationError("asset form has invalid fields", errors))
            return None
        self.errors = {}
        payload = parsed.payload()
        changed = changed_fields(original, payload, UPDATABLE_ASSET_FIELDS)
        self._transition(EditSessionState.SUBMITTING)

        try:
            if not changed:
                updated = dict(original)
            else:
                expected: dict[str, Any] | None = None
                if not force:
                    latest = await self._api.get_asset(asset_id)
                    stale = [name for name in changed if not values_equal(original.get(name), latest.get(name), name)]
                    if stale:
                        logger.warning("asset %s changed on server since edit opened: %s", asset_id, stale)
                        raise ConflictError("asset was changed by someone else", fields=stale)
                    expected = {name: original.get(name) for name in changed}
                updated = await self._api.update_asset(
                    asset_id,
                    {name: payload[name] for name in changed},
                    expected,
                )
        except ValidationError as exc:
            self.errors = dict(exc.field_errors)
            self._fail(exc)
            return None
        except ClientError as exc:
            self._fail(exc)
            raise
        except Exception as exc:
            logger.exception("saving asset %s failed unexpectedly", asset_id)
            self._fail(ClientError(f"unexpected failure: {type(exc).__name__}"))
            raise
        except BaseException:
            # cancelled: the edit stays open
            self._transition(EditSessionState.EDITING)
            raise

        if changed:
            self._cache.invalidate(asset_key(asset_id))
        self._transition(EditSessionState.IDLE)
        self._reset()
        message = "Asset updated." if changed else "No changes to save."
        self._notifier.success(SAVE_TITLE, message)
        return updated

    async def rebase(self) -> list[str]:
        """Adopt the server's current copy as the baseline and reapply the user's edits.

        Returns the form inputs that were reapplied.
        """
        self._require(EditSessionState.EDITING)
        asset_id, _ = self._opened()
        edited = {name: self.form.get(name) for name in self.edited_fields()}
        try:
            latest = await self._api.get_asset(asset_id)
        except ClientError as exc:
            self._notifier.failure(RELOAD_TITLE, exc)
            raise
        self.original = MappingProxyType(copy.deepcopy(dict(latest)))
        self.form = form_values_from_asset(latest)
        self.form.update(edited)
        self.errors = {}
        return sorted(edited)

    def cancel(self) -> None:
        self._transition(EditSessionState.IDLE)
        self._reset()
