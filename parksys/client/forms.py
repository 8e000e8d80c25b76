"""Form models for the asset edit dialog and the maintenance form.

Forms accept what a user typed (strings, blanks) and coerce it with pydantic.
``validate_*`` helpers turn pydantic failures into a ``{field: message}`` map.
"""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import Field as PydanticField
from pydantic import ValidationError as PydanticValidationError

from parksys.domain.models import (
    UPDATABLE_ASSET_FIELDS,
    AssetCondition,
    AssetStatus,
    MaintenanceFrequency,
    MaintenanceStatus,
    MaintenanceType,
)

# Editable form inputs; the coordinate is edited as two inputs.
ASSET_FORM_FIELDS: tuple[str, ...] = tuple(
    name for name in UPDATABLE_ASSET_FIELDS if name != "coordinate"
) + ("latitude", "longitude")

_OPTIONAL_TYPED_FIELDS = (
    "subcategory_id",
    "amenity_id",
    "responsible_person_id",
    "latitude",
    "longitude",
    "acquisition_date",
    "maintenance_frequency",
)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _lenient_amount(value: Any) -> Any:
    """Blank, non-numeric and NaN amounts mean "not set"; infinities stay to be rejected."""
    value = _blank_to_none(value)
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


class AssetEditForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    description: str | None = None
    serial_number: str | None = None
    category_id: int = PydanticField(gt=0)
    subcategory_id: int | None = PydanticField(default=None, gt=0)
    park_id: int = PydanticField(gt=0)
    amenity_id: int | None = PydanticField(default=None, gt=0)
    location_description: str | None = None
    latitude: float | None = PydanticField(default=None, ge=-90, le=90)
    longitude: float | None = PydanticField(default=None, ge=-180, le=180)
    acquisition_date: dt.date | None = None
    acquisition_cost: float | None = PydanticField(default=None, ge=0, allow_inf_nan=False)
    current_value: float | None = PydanticField(default=None, ge=0, allow_inf_nan=False)
    manufacturer: str | None = None
    model: str | None = None
    maintenance_frequency: MaintenanceFrequency | None = None
    status: AssetStatus
    condition: AssetCondition
    responsible_person_id: int | None = PydanticField(default=None, gt=0)
    notes: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _name_required(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("name is required")
        return value.strip() if isinstance(value, str) else value

    @field_validator(*_OPTIONAL_TYPED_FIELDS, mode="before")
    @classmethod
    def _optional_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("acquisition_cost", "current_value", mode="before")
    @classmethod
    def _amount(cls, value: Any) -> Any:
        return _lenient_amount(value)

    def payload(self) -> dict[str, Any]:
        """Values in the wire shape of ``PUT /api/assets/{id}``."""
        values = self.model_dump(mode="json", exclude={"latitude", "longitude"})
        if self.latitude is None or self.longitude is None:
            values["coordinate"] = None
        else:
            values["coordinate"] = {"lat": self.latitude, "lng": self.longitude}
        return values


class MaintenanceForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: dt.date
    maintenance_type: MaintenanceType
    description: str
    cost: float | None = PydanticField(default=None, ge=0, allow_inf_nan=False)
    performed_by: str | None = None
    performer_id: int | None = PydanticField(default=None, gt=0)
    next_maintenance_date: dt.date | None = None
    status: MaintenanceStatus = MaintenanceStatus.COMPLETED
    findings: str | None = None
    actions: str | None = None
    notes: str | None = None

    @field_validator("description", mode="before")
    @classmethod
    def _description_required(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("description is required")
        return value

    @field_validator("performer_id", "next_maintenance_date", mode="before")
    @classmethod
    def _optional_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("cost", mode="before")
    @classmethod
    def _amount(cls, value: Any) -> Any:
        return _lenient_amount(value)

    def payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def field_errors(exc: PydanticValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ("__root__",)
        message = str(error.get("msg", "invalid value"))
        errors.setdefault(str(loc[0]), message.removeprefix("Value error, "))
    return errors


def validate_asset_form(values: Mapping[str, Any]) -> tuple[AssetEditForm | None, dict[str, str]]:
    try:
        form = AssetEditForm.model_validate(dict(values))
    except PydanticValidationError as exc:
        errors = field_errors(exc)
    else:
        errors = {}
    latitude = _blank_to_none(values.get("latitude"))
    longitude = _blank_to_none(values.get("longitude"))
    if (latitude is None) != (longitude is None):
        errors.setdefault("coordinate", "latitude and longitude must be set together")
    if errors:
        return None, errors
    return form, {}


def validate_maintenance_form(values: Mapping[str, Any]) -> tuple[MaintenanceForm | None, dict[str, str]]:
    try:
        return MaintenanceForm.model_validate(dict(values)), {}
    except PydanticValidationError as exc:
        return None, field_errors(exc)


def form_values_from_asset(asset: Mapping[str, Any]) -> dict[str, Any]:
    """Editable form values for an asset as returned by the server."""
    values = {name: asset.get(name) for name in ASSET_FORM_FIELDS if name not in ("latitude", "longitude")}
    coordinate = asset.get("coordinate")
    values["latitude"] = coordinate.get("lat") if isinstance(coordinate, Mapping) else None
    values["longitude"] = coordinate.get("lng") if isinstance(coordinate, Mapping) else None
    return values
