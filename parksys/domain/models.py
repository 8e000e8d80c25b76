from __future__ import annotations

import datetime as dt
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic import Field as PydanticField
from sqlalchemy import JSON, Column, Index
from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    return datetime.now(UTC)


class AssetStatus(StrEnum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"
    DAMAGED = "damaged"
    STORAGE = "storage"


class AssetCondition(StrEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class MaintenanceFrequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    BIANNUAL = "biannual"
    YEARLY = "yearly"


class MaintenanceType(StrEnum):
    PREVENTIVE = "preventive"
    CORRECTIVE = "corrective"
    PREDICTIVE = "predictive"
    INSPECTION = "inspection"
    EMERGENCY = "emergency"
    OTHER = "other"


class MaintenanceStatus(StrEnum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ChangeType(StrEnum):
    CREATION = "creation"
    ACQUISITION = "acquisition"
    UPDATED = "updated"
    MODIFICATION = "modification"
    MAINTENANCE = "maintenance"
    RETIREMENT = "retirement"
    DELETION = "deletion"


class EventRecord(SQLModel, table=True):
    __tablename__ = "events"

    event_id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    event_type: str = Field(index=True)
    ts: datetime = Field(default_factory=now_utc, index=True)
    actor_id: str | None = Field(default=None, index=True)
    correlation_id: str | None = Field(default=None, index=True)
    payload: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )


class AuditLog(SQLModel, table=True):
    __tablename__ = "audit_logs"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    actor_id: str | None = Field(default=None, index=True)
    action: str
    resource: str
    method: str
    status_code: int
    ts: datetime = Field(default_factory=now_utc, index=True)
    detail: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    full_name: str | None = None
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)


class Park(SQLModel, table=True):
    __tablename__ = "parks"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=200, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)


class AssetCategory(SQLModel, table=True):
    __tablename__ = "asset_categories"

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=200, index=True, unique=True)
    description: str | None = None
    icon: str | None = None
    color: str | None = None
    parent_id: int | None = Field(default=None, foreign_key="asset_categories.id", index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = PydanticField(ge=-90, le=90)
    lng: float = PydanticField(ge=-180, le=180)


class Asset(SQLModel, table=True):
    __tablename__ = "assets"
    __table_args__ = (
        Index("ix_assets_park_id_status", "park_id", "status"),
    )

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(max_length=200, index=True)
    description: str | None = None
    serial_number: str | None = Field(default=None, index=True)
    category_id: int = Field(foreign_key="asset_categories.id", index=True)
    subcategory_id: int | None = Field(default=None, foreign_key="asset_categories.id")
    park_id: int = Field(foreign_key="parks.id", index=True)
    amenity_id: int | None = Field(default=None, index=True)
    location_description: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    acquisition_date: dt.date | None = None
    acquisition_cost: float | None = None
    current_value: float | None = None
    manufacturer: str | None = None
    model: str | None = None
    maintenance_frequency: MaintenanceFrequency | None = None
    status: AssetStatus = Field(default=AssetStatus.ACTIVE, index=True)
    condition: AssetCondition = Field(default=AssetCondition.GOOD, index=True)
    responsible_person_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    notes: str | None = None
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc, index=True)

    @property
    def coordinate(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(lat=self.latitude, lng=self.longitude)


class AssetMaintenance(SQLModel, table=True):
    __tablename__ = "asset_maintenances"
    __table_args__ = (
        Index("ix_asset_maintenances_asset_id_date", "asset_id", "date"),
    )

    id: int | None = Field(default=None, primary_key=True)
    asset_id: int = Field(foreign_key="assets.id", index=True)
    date: dt.date
    maintenance_type: MaintenanceType = Field(index=True)
    description: str
    cost: float | None = None
    performed_by: str | None = None
    performer_id: int | None = Field(default=None, foreign_key="users.id", index=True)
    next_maintenance_date: dt.date | None = Field(default=None, index=True)
    status: MaintenanceStatus = Field(default=MaintenanceStatus.COMPLETED, index=True)
    findings: str | None = None
    actions: str | None = None
    notes: str | None = None
    created_by: int | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc, index=True)


class AssetHistory(SQLModel, table=True):
    __tablename__ = "asset_history"
    __table_args__ = (
        Index("ix_asset_history_asset_id_timestamp", "asset_id", "timestamp"),
    )

    # No foreign key to assets: entries outlive a deleted asset.
    id: int | None = Field(default=None, primary_key=True)
    asset_id: int = Field(index=True)
    change_type: str = Field(max_length=50, index=True)
    field_name: str | None = Field(default=None, max_length=100)
    previous_value: Any = Field(default=None, sa_column=Column(JSON(none_as_null=True), nullable=True))
    new_value: Any = Field(default=None, sa_column=Column(JSON(none_as_null=True), nullable=True))
    description: str
    notes: str | None = None
    user_id: int | None = Field(default=None, index=True)
    timestamp: datetime = Field(default_factory=now_utc, index=True)


class EventEnvelope(BaseModel):
    event_id: str = PydanticField(default_factory=lambda: str(uuid4()))
    event_type: str
    ts: datetime = PydanticField(default_factory=now_utc)
    actor_id: str | None = None
    correlation_id: str | None = None
    payload: dict[str, Any]


class ORMReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Fields a client may change through PUT /api/assets/{id}; history diffs track the same set.
UPDATABLE_ASSET_FIELDS: tuple[str, ...] = (
    "name",
    "description",
    "serial_number",
    "category_id",
    "subcategory_id",
    "park_id",
    "amenity_id",
    "location_description",
    "coordinate",
    "acquisition_date",
    "acquisition_cost",
    "current_value",
    "manufacturer",
    "model",
    "maintenance_frequency",
    "status",
    "condition",
    "responsible_person_id",
    "notes",
)

REQUIRED_ASSET_FIELDS = frozenset({"name", "category_id", "park_id", "status", "condition"})


class AssetCreate(BaseModel):
    name: str = PydanticField(min_length=1, max_length=200)
    description: str | None = None
    serial_number: str | None = None
    category_id: int = PydanticField(gt=0)
    subcategory_id: int | None = PydanticField(default=None, gt=0)
    park_id: int = PydanticField(gt=0)
    amenity_id: int | None = PydanticField(default=None, gt=0)
    location_description: str | None = None
    coordinate: Coordinate | None = None
    acquisition_date: dt.date | None = None
    acquisition_cost: float | None = PydanticField(default=None, ge=0, allow_inf_nan=False)
    current_value: float | None = PydanticField(default=None, ge=0, allow_inf_nan=False)
    manufacturer: str | None = None
    model: str | None = None
    maintenance_frequency: MaintenanceFrequency | None = None
    status: AssetStatus = AssetStatus.ACTIVE
    condition: AssetCondition = AssetCondition.GOOD
    responsible_person_id: int | None = PydanticField(default=None, gt=0)
    notes: str | None = None


class AssetUpdate(BaseModel):
    name: str | None = PydanticField(default=None, min_length=1, max_length=200)
    description: str | None = None
    serial_number: str | None = None
    category_id: int | None = PydanticField(default=None, gt=0)
    subcategory_id: int | None = PydanticField(default=None, gt=0)
    park_id: int | None = PydanticField(default=None, gt=0)
    amenity_id: int | None = PydanticField(default=None, gt=0)
    location_description: str | None = None
    coordinate: Coordinate | None = None
    acquisition_date: dt.date | None = None
    acquisition_cost: float | None = PydanticField(default=None, ge=0, allow_inf_nan=False)
    current_value: float | None = PydanticField(default=None, ge=0, allow_inf_nan=False)
    manufacturer: str | None = None
    model: str | None = None
    maintenance_frequency: MaintenanceFrequency | None = None
    status: AssetStatus | None = None
    condition: AssetCondition | None = None
    responsible_person_id: int | None = PydanticField(default=None, gt=0)
    notes: str | None = None
    expected: dict[str, Any] = PydanticField(default_factory=dict)

    @field_validator("expected")
    @classmethod
    def _expected_fields_known(cls, value: dict[str, Any]) -> dict[str, Any]:
        unknown = sorted(set(value) - set(UPDATABLE_ASSET_FIELDS))
        if unknown:
            raise ValueError(f"unknown fields in expected: {', '.join(unknown)}")
        return value

    @model_validator(mode="after")
    def _required_fields_not_null(self) -> AssetUpdate:
        nulled = sorted(
            name for name in self.model_fields_set & REQUIRED_ASSET_FIELDS if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"fields cannot be null: {', '.join(nulled)}")
        return self

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"expected"})


class AssetRead(ORMReadModel):
    id: int
    name: str
    description: str | None = None
    serial_number: str | None = None
    category_id: int
    subcategory_id: int | None = None
    park_id: int
    amenity_id: int | None = None
    location_description: str | None = None
    coordinate: Coordinate | None = None
    acquisition_date: dt.date | None = None
    acquisition_cost: float | None = None
    current_value: float | None = None
    manufacturer: str | None = None
    model: str | None = None
    maintenance_frequency: MaintenanceFrequency | None = None
    status: AssetStatus
    condition: AssetCondition
    responsible_person_id: int | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class MaintenanceCreate(BaseModel):
    date: dt.date
    maintenance_type: MaintenanceType
    description: str = PydanticField(min_length=1)
    cost: float | None = PydanticField(default=None, ge=0, allow_inf_nan=False)
    performed_by: str | None = None
    performer_id: int | None = PydanticField(default=None, gt=0)
    next_maintenance_date: dt.date | None = None
    status: MaintenanceStatus = MaintenanceStatus.COMPLETED
    findings: str | None = None
    actions: str | None = None
    notes: str | None = None

    @field_validator("description")
    @classmethod
    def _description_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("description must not be blank")
        return value


class MaintenanceRead(ORMReadModel):
    id: int
    asset_id: int
    date: dt.date
    maintenance_type: MaintenanceType
    description: str
    cost: float | None = None
    performed_by: str | None = None
    performer_id: int | None = None
    performer_name: str | None = None
    next_maintenance_date: dt.date | None = None
    status: MaintenanceStatus
    findings: str | None = None
    actions: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class HistoryEntryRead(BaseModel):
    id: int
    asset_id: int
    change_type: str
    field_name: str | None = None
    previous_value: Any = None
    new_value: Any = None
    description: str
    notes: str | None = None
    user_id: int | None = None
    user_name: str | None = None
    user_username: str | None = None
    timestamp: datetime


class RecentHistoryRead(BaseModel):
    id: int
    asset_id: int
    asset_name: str | None = None
    change_type: str
    description: str
    user_name: str | None = None
    timestamp: datetime


class MessageRead(BaseModel):
    message: str
