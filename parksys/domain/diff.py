from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

NUMERIC_FIELDS = frozenset(
    {
        "acquisition_cost",
        "current_value",
        "cost",
        "coordinate",
        "latitude",
        "longitude",
    }
)


def is_numeric_field(name: str | None) -> bool:
    if name is None:
        return False
    return name in NUMERIC_FIELDS or name.endswith("_id")


def _number(text: str) -> Any:
    try:
        number = float(text)
    except ValueError:
        return text
    if not math.isfinite(number):
        return text
    return int(number) if number.is_integer() else number


def normalize_value(value: Any, *, numeric: bool = False) -> Any:
    """Collapse equivalent wire representations before comparing two values.

    ``None`` and empty or whitespace-only strings are the same "unset" value
    and text is compared stripped. Only with ``numeric`` do numeric strings
    compare as numbers, so ``"007"`` and ``"7"`` stay distinct serial numbers.
    """
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        if stripped == "":
            return None
        return _number(stripped) if numeric else stripped
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Mapping):
        return {key: normalize_value(item, numeric=numeric) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [normalize_value(item, numeric=numeric) for item in value]
    return value


def values_equal(left: Any, right: Any, field_name: str | None = None) -> bool:
    numeric = is_numeric_field(field_name)
    return normalize_value(left, numeric=numeric) == normalize_value(right, numeric=numeric)


def changed_fields(
    before: Mapping[str, Any],
    after: Mapping[str, Any],
    fields: Iterable[str],
) -> list[str]:
    return [name for name in fields if not values_equal(before.get(name), after.get(name), name)]
