from __future__ import annotations

from parksys.domain.diff import changed_fields, normalize_value, values_equal
from parksys.domain.labels import (
    NOT_AVAILABLE,
    STATUS_LABELS,
    field_label,
    format_field_value,
    label_for,
)
from parksys.domain.models import AssetStatus


def test_label_lookup_shared_table() -> None:
    assert label_for(AssetStatus.MAINTENANCE, STATUS_LABELS) == "In maintenance"
    assert label_for("storage", STATUS_LABELS) == "In storage"
    assert label_for("legacy", STATUS_LABELS) == "legacy"
    assert label_for(None, STATUS_LABELS) == NOT_AVAILABLE


def test_format_field_value() -> None:
    assert field_label("acquisition_cost") == "Acquisition cost"
    assert field_label("unknown_field") == "unknown_field"
    assert format_field_value("acquisition_cost", 1234.5) == "$1,234.50"
    assert format_field_value("condition", "poor") == "Poor"
    assert format_field_value("coordinate", {"lat": 19.4, "lng": -99.1}) == "19.4, -99.1"
    assert format_field_value("notes", "") == NOT_AVAILABLE


def test_normalize_value_equivalences() -> None:
    assert normalize_value("   ") is None
    assert normalize_value(" abc ") == "abc"
    assert normalize_value("1500") == "1500"
    assert normalize_value("1500", numeric=True) == 1500
    assert normalize_value(1500.0) == 1500
    assert normalize_value("12.50", numeric=True) == 12.5
    assert normalize_value("abc", numeric=True) == "abc"
    assert values_equal(None, "")
    assert values_equal("100", 100.0, "acquisition_cost")
    assert not values_equal("100", 101, "acquisition_cost")
    assert values_equal("3", 3, "park_id")
    assert values_equal({"lat": 1.0, "lng": "2"}, {"lat": 1, "lng": 2}, "coordinate")


def test_numeric_looking_text_is_compared_as_text() -> None:
    assert not values_equal("007", "7", "serial_number")
    assert not values_equal("1.0", "1", "model")
    assert values_equal("SW-7 ", "SW-7", "serial_number")
    assert changed_fields({"model": "1.0"}, {"model": "1"}, ["model"]) == ["model"]
    assert changed_fields({"serial_number": "007"}, {"serial_number": "7"}, ["serial_number"]) == ["serial_number"]


def test_changed_fields_only_reports_real_changes() -> None:
    before = {"name": "Bench", "notes": None, "acquisition_cost": 100.0, "status": "active"}
    after = {"name": "Bench", "notes": "", "acquisition_cost": "100", "status": "damaged"}

    assert changed_fields(before, after, ["name", "notes", "acquisition_cost", "status"]) == ["status"]
