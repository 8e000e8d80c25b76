"""Display labels shared by forms, read-only views and server-authored history text.

Each enum has exactly one label table here; nothing else keeps its own copy.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from parksys.domain.models import (
    AssetCondition,
    AssetStatus,
    ChangeType,
    MaintenanceFrequency,
    MaintenanceStatus,
    MaintenanceType,
)

NOT_AVAILABLE = "N/A"

STATUS_LABELS: dict[AssetStatus, str] = {
    AssetStatus.ACTIVE: "Active",
    AssetStatus.MAINTENANCE: "In maintenance",
    AssetStatus.RETIRED: "Retired",
    AssetStatus.DAMAGED: "Damaged",
    AssetStatus.STORAGE: "In storage",
}

CONDITION_LABELS: dict[AssetCondition, str] = {
    AssetCondition.EXCELLENT: "Excellent",
    AssetCondition.GOOD: "Good",
    AssetCondition.FAIR: "Fair",
    AssetCondition.POOR: "Poor",
    AssetCondition.CRITICAL: "Critical",
}

MAINTENANCE_FREQUENCY_LABELS: dict[MaintenanceFrequency, str] = {
    MaintenanceFrequency.DAILY: "Daily",
    MaintenanceFrequency.WEEKLY: "Weekly",
    MaintenanceFrequency.MONTHLY: "Monthly",
    MaintenanceFrequency.QUARTERLY: "Quarterly",
    MaintenanceFrequency.BIANNUAL: "Every six months",
    MaintenanceFrequency.YEARLY: "Yearly",
}

MAINTENANCE_TYPE_LABELS: dict[MaintenanceType, str] = {
    MaintenanceType.PREVENTIVE: "Preventive",
    MaintenanceType.CORRECTIVE: "Corrective",
    MaintenanceType.PREDICTIVE: "Predictive",
    MaintenanceType.INSPECTION: "Inspection",
    MaintenanceType.EMERGENCY: "Emergency",
    MaintenanceType.OTHER: "Other",
}

MAINTENANCE_STATUS_LABELS: dict[MaintenanceStatus, str] = {
    MaintenanceStatus.SCHEDULED: "Scheduled",
    MaintenanceStatus.IN_PROGRESS: "In progress",
    MaintenanceStatus.COMPLETED: "Completed",
}

CHANGE_TYPE_LABELS: dict[ChangeType, str] = {
    ChangeType.CREATION: "Creation",
    ChangeType.ACQUISITION: "Acquisition",
    ChangeType.UPDATED: "Update",
    ChangeType.MODIFICATION: "Modification",
    ChangeType.MAINTENANCE: "Maintenance",
    ChangeType.RETIREMENT: "Retirement",
    ChangeType.DELETION: "Deletion",
}

FIELD_LABELS: dict[str, str] = {
    "name": "Name",
    "description": "Description",
    "serial_number": "Serial number",
    "category_id": "Category",
    "subcategory_id": "Subcategory",
    "park_id": "Park",
    "amenity_id": "Amenity",
    "location_description": "Location description",
    "coordinate": "Coordinates",
    "acquisition_date": "Acquisition date",
    "acquisition_cost": "Acquisition cost",
    "current_value": "Current value",
    "manufacturer": "Manufacturer",
    "model": "Model",
    "maintenance_frequency": "Maintenance frequency",
    "status": "Status",
    "condition": "Condition",
    "responsible_person_id": "Responsible person",
    "notes": "Notes",
    "maintenance_type": "Maintenance type",
}

# Fields whose raw values are looked up in a label table before display.
FIELD_VALUE_LABELS: dict[str, dict[Any, str]] = {
    "status": STATUS_LABELS,
    "condition": CONDITION_LABELS,
    "maintenance_frequency": MAINTENANCE_FREQUENCY_LABELS,
    "maintenance_type": MAINTENANCE_TYPE_LABELS,
}

CURRENCY_FIELDS = frozenset({"acquisition_cost", "current_value", "cost"})


def label_for(value: StrEnum | str | None, table: dict[Any, str]) -> str:
    """Return the display label for an enum member or its raw value.

    Unknown values are shown as-is so legacy rows never render blank.
    """
    if value is None or value == "":
        return NOT_AVAILABLE
    return table.get(value, str(value))


def field_label(field_name: str) -> str:
    return FIELD_LABELS.get(field_name, field_name)


def format_field_value(field_name: str, value: Any) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    table = FIELD_VALUE_LABELS.get(field_name)
    if table is not None:
        return label_for(value, table)
    if field_name in CURRENCY_FIELDS:
        try:
            return f"${float(value):,.2f}"
        except (TypeError, ValueError):
            return str(value)
    if isinstance(value, dict) and {"lat", "lng"} <= set(value):
        return f"{value['lat']}, {value['lng']}"
    return str(value)
