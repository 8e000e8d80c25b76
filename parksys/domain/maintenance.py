"""Maintenance status derived from an asset's maintenance records.

Nothing here is stored: the last/next dates and the due flag are recomputed
from the full record list on every read, so they cannot drift from it.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from parksys.domain.models import MaintenanceStatus, now_utc


class ScheduleState(StrEnum):
    OVERDUE = "overdue"
    SCHEDULED = "scheduled"
    UNSCHEDULED = "unscheduled"


@dataclass(frozen=True)
class MaintenanceSummary:
    last_maintenance_date: datetime | None
    next_maintenance_date: datetime | None
    is_maintenance_due: bool

    @property
    def schedule_state(self) -> ScheduleState:
        if self.next_maintenance_date is None:
            return ScheduleState.UNSCHEDULED
        if self.is_maintenance_due:
            return ScheduleState.OVERDUE
        return ScheduleState.SCHEDULED


EMPTY_SUMMARY = MaintenanceSummary(
    last_maintenance_date=None,
    next_maintenance_date=None,
    is_maintenance_due=False,
)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def as_instant(value: Any) -> datetime | None:
    """Coerce a date-like value to an aware UTC datetime; anything malformed is ``None``.

    A bare date means midnight UTC of that day and naive datetimes are read as UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)
    if isinstance(value, dt.date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed.replace(tzinfo=UTC) if parsed.tzinfo is None else parsed.astimezone(UTC)
    return None


def _sort_id(record: Any) -> int:
    raw = _field(record, "id")
    try:
        return int(raw)
    except (TypeError, ValueError):
        return -1


def last_maintenance_date(records: Iterable[Any]) -> datetime | None:
    """Latest ``date`` among completed records; ties go to the highest record id."""
    candidates: list[tuple[datetime, int]] = []
    for record in records:
        if _field(record, "status") != MaintenanceStatus.COMPLETED:
            continue
        performed = as_instant(_field(record, "date"))
        if performed is None:
            continue
        candidates.append((performed, _sort_id(record)))
    if not candidates:
        return None
    return max(candidates)[0]


def next_maintenance_date(records: Iterable[Any]) -> datetime | None:
    """Soonest ``next_maintenance_date`` among all records, whatever their status."""
    candidates = [
        scheduled
        for scheduled in (as_instant(_field(record, "next_maintenance_date")) for record in records)
        if scheduled is not None
    ]
    if not candidates:
        return None
    return min(candidates)


def derive_maintenance_status(
    records: Iterable[Any] | None,
    now: datetime | None = None,
) -> MaintenanceSummary:
    if records is None:
        raise TypeError("maintenance records have not been loaded")
    snapshot = list(records)
    if not snapshot:
        return EMPTY_SUMMARY
    last = last_maintenance_date(snapshot)
    upcoming = next_maintenance_date(snapshot)
    reference = as_instant(now) if now is not None else now_utc()
    due = upcoming is not None and reference is not None and upcoming < reference
    return MaintenanceSummary(
        last_maintenance_date=last,
        next_maintenance_date=upcoming,
        is_maintenance_due=due,
    )
