from __future__ import annotations

from parksys.client.forms import (
    form_values_from_asset,
    validate_asset_form,
    validate_maintenance_form,
)


def _form(**overrides: object) -> dict[str, object]:
    values: dict[str, object] = {
        "name": "Swing set",
        "category_id": "2",
        "park_id": 3,
        "status": "active",
        "condition": "good",
        "acquisition_cost": "",
        "latitude": "",
        "longitude": "",
    }
    values.update(overrides)
    return values


def test_blank_acquisition_cost_normalises_to_none() -> None:
    form, errors = validate_asset_form(_form())

    assert errors == {}
    assert form is not None
    assert form.acquisition_cost is None
    assert form.payload()["acquisition_cost"] is None
    assert form.category_id == 2


def test_non_numeric_and_nan_costs_normalise_to_none() -> None:
    for raw in ("abc", "nan", float("nan")):
        form, errors = validate_asset_form(_form(acquisition_cost=raw))
        assert errors == {}
        assert form is not None and form.acquisition_cost is None


def test_negative_or_infinite_cost_is_rejected() -> None:
    _, errors = validate_asset_form(_form(acquisition_cost="-5"))
    assert "acquisition_cost" in errors
    _, errors = validate_asset_form(_form(acquisition_cost="inf"))
    assert "acquisition_cost" in errors


def test_required_fields_reported_per_field() -> None:
    form, errors = validate_asset_form(
        _form(name="  ", park_id=0, category_id="x", status="lost", condition=None)
    )

    assert form is None
    assert errors["name"] == "name is required"
    assert set(errors) >= {"name", "park_id", "category_id", "status", "condition"}


def test_coordinates_are_both_or_neither() -> None:
    _, errors = validate_asset_form(_form(latitude="19.4", longitude=""))
    assert errors == {"coordinate": "latitude and longitude must be set together"}

    _, errors = validate_asset_form(_form(latitude="95", longitude="10"))
    assert "latitude" in errors

    form, errors = validate_asset_form(_form(latitude="19.4", longitude="-99.1"))
    assert errors == {}
    assert form is not None
    assert form.payload()["coordinate"] == {"lat": 19.4, "lng": -99.1}


def test_form_values_round_trip_from_server_asset() -> None:
    asset = {
        "id": 7,
        "name": "Swing set",
        "category_id": 2,
        "park_id": 3,
        "status": "active",
        "condition": "good",
        "coordinate": {"lat": 19.4, "lng": -99.1},
        "acquisition_cost": 1500.0,
    }

    values = form_values_from_asset(asset)
    form, errors = validate_asset_form(values)

    assert values["latitude"] == 19.4
    assert "coordinate" not in values
    assert errors == {}
    assert form is not None and form.payload()["coordinate"] == asset["coordinate"]


def test_maintenance_form_validation() -> None:
    form, errors = validate_maintenance_form(
        {
            "date": "2024-06-01",
            "maintenance_type": "preventive",
            "description": "Tightened bolts",
            "cost": "",
            "next_maintenance_date": "",
        }
    )
    assert errors == {}
    assert form is not None
    payload = form.payload()
    assert payload["status"] == "completed"
    assert payload["cost"] is None
    assert payload["next_maintenance_date"] is None

    _, errors = validate_maintenance_form({"date": "", "maintenance_type": "polish", "description": " "})
    assert set(errors) == {"date", "maintenance_type", "description"}
