"""Read-only view over an asset's server-authored history.

``HistoryEntry`` objects can only be produced by ``parse_history_entries``,
which is fed the body of ``GET /api/assets/{id}/history``. Nothing in the
client builds, inserts or edits an entry.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import InitVar, dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any

from parksys.domain.labels import CHANGE_TYPE_LABELS, NOT_AVAILABLE
from parksys.domain.maintenance import as_instant
from parksys.domain.models import ChangeType

_PARSER_TOKEN = object()

OTHER_CHANGE_TYPE = "other"


@dataclass(frozen=True)
class HistoryEntry:
    id: int
    asset_id: int
    change_type: str
    description: str
    timestamp: datetime | None = None
    field_name: str | None = None
    previous_value: Any = None
    new_value: Any = None
    notes: str | None = None
    user_id: int | None = None
    user_name: str | None = None
    user_username: str | None = None
    _token: InitVar[object] = None

    def __post_init__(self, _token: object) -> None:
        if _token is not _PARSER_TOKEN:
            raise TypeError("HistoryEntry is created only by parse_history_entries()")

    @property
    def actor(self) -> str:
        return self.user_name or self.user_username or NOT_AVAILABLE


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list | tuple):
        return tuple(_freeze(item) for item in value)
    return value


def _optional_int(value: Any) -> int | None:
    return int(value) if value is not None else None


def parse_history_entries(payload: Any) -> tuple[HistoryEntry, ...]:
    """Build entries from a History-read response body, keeping server order."""
    if not isinstance(payload, list):
        raise ValueError("history payload must be a list")
    entries: list[HistoryEntry] = []
    for index, item in enumerate(payload):
        if not isinstance(item, Mapping):
            raise ValueError(f"history entry {index} is not an object")
        try:
            entry = HistoryEntry(
                id=int(item["id"]),
                asset_id=int(item["asset_id"]),
                change_type=str(item.get("change_type") or OTHER_CHANGE_TYPE),
                description=str(item.get("description") or ""),
                timestamp=as_instant(item.get("timestamp")),
                field_name=item.get("field_name"),
                previous_value=_freeze(item.get("previous_value")),
                new_value=_freeze(item.get("new_value")),
                notes=item.get("notes"),
                user_id=_optional_int(item.get("user_id")),
                user_name=item.get("user_name"),
                user_username=item.get("user_username"),
                _token=_PARSER_TOKEN,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"history entry {index} is malformed") from exc
        entries.append(entry)
    return tuple(entries)


@dataclass(frozen=True)
class ChangePresentation:
    icon: str
    display_label: str
    color_class: str


_OTHER_PRESENTATION = ChangePresentation("history", "Other", "bg-gray-500")

CHANGE_PRESENTATIONS: dict[str, ChangePresentation] = {
    ChangeType.CREATION: ChangePresentation("check", CHANGE_TYPE_LABELS[ChangeType.CREATION], "bg-green-500"),
    ChangeType.ACQUISITION: ChangePresentation("check", CHANGE_TYPE_LABELS[ChangeType.ACQUISITION], "bg-green-500"),
    ChangeType.UPDATED: ChangePresentation("edit", CHANGE_TYPE_LABELS[ChangeType.UPDATED], "bg-blue-500"),
    ChangeType.MODIFICATION: ChangePresentation("edit", CHANGE_TYPE_LABELS[ChangeType.MODIFICATION], "bg-blue-500"),
    ChangeType.MAINTENANCE: ChangePresentation("wrench", CHANGE_TYPE_LABELS[ChangeType.MAINTENANCE], "bg-yellow-500"),
    ChangeType.RETIREMENT: ChangePresentation("trash", CHANGE_TYPE_LABELS[ChangeType.RETIREMENT], "bg-red-500"),
    ChangeType.DELETION: ChangePresentation("trash", CHANGE_TYPE_LABELS[ChangeType.DELETION], "bg-red-500"),
    OTHER_CHANGE_TYPE: _OTHER_PRESENTATION,
}


def classify_change_type(entry: HistoryEntry | str) -> ChangePresentation:
    change_type = entry.change_type if isinstance(entry, HistoryEntry) else entry
    key = str(change_type or "").strip().lower()
    return CHANGE_PRESENTATIONS.get(key, _OTHER_PRESENTATION)


def _plain(value: Any, active: set[int]) -> Any:
    # Containers become dicts and lists; a container seen again on the current path is a cycle.
    if isinstance(value, Mapping) or (isinstance(value, Sequence) and not isinstance(value, str | bytes)):
        marker = id(value)
        if marker in active:
            raise ValueError("circular structure")
        active.add(marker)
        try:
            if isinstance(value, Mapping):
                return {str(key): _plain(item, active) for key, item in value.items()}
            return [_plain(item, active) for item in value]
        finally:
            active.discard(marker)
    return value


def _safe_repr(value: Any) -> str:
    try:
        return repr(value)
    except Exception:
        return object.__repr__(value)


def format_diff_value(value: Any) -> str:
    """Render one side of a field-level diff. Never raises."""
    if value is None:
        return NOT_AVAILABLE
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping | list | tuple | set | frozenset):
        if isinstance(value, set | frozenset):
            return _safe_repr(value)
        try:
            return json.dumps(_plain(value, set()), sort_keys=True, default=str, ensure_ascii=False)
        except (TypeError, ValueError, RecursionError):
            return _safe_repr(value)
    try:
        return str(value)
    except Exception:
        return _safe_repr(value)


class HistoryLedger:
    """Entries in the order the server returned them. There are no mutators."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[HistoryEntry] = ()) -> None:
        self._entries = tuple(entries)

    @classmethod
    def from_payload(cls, payload: Any) -> HistoryLedger:
        return cls(parse_history_entries(payload))

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return self._entries

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> HistoryEntry:
        return self._entries[index]

    def presentations(self) -> list[tuple[HistoryEntry, ChangePresentation]]:
        return [(entry, classify_change_type(entry)) for entry in self._entries]

    def of_type(self, *change_types: str) -> tuple[HistoryEntry, ...]:
        wanted = {str(item).lower() for item in change_types}
        return tuple(entry for entry in self._entries if entry.change_type.lower() in wanted)

    def field_changes(self, field_name: str) -> tuple[HistoryEntry, ...]:
        return tuple(entry for entry in self._entries if entry.field_name == field_name)
