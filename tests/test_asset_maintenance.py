from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine, select

from parksys import main as app_main
from parksys.domain.models import EventRecord, User
from parksys.domain.permissions import PERM_WILDCARD
from parksys.infra import audit, db, events
from parksys.infra.auth import create_access_token
from parksys.infra.seed import seed_reference_data


@pytest.fixture()
def maintenance_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> Generator[TestClient, None, None]:
    db_path = tmp_path / "asset_maintenance_test.db"
    test_engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(test_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: object, _connection_record: object) -> None:
        cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    SQLModel.metadata.create_all(test_engine)
    monkeypatch.setattr(db, "engine", test_engine)
    monkeypatch.setattr(audit, "engine", test_engine)
    monkeypatch.setattr(events, "engine", test_engine)
    client = TestClient(app_main.app)
    yield client
    client.close()


def _auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _create_asset(client: TestClient, token: str, category_id: int, park_id: int) -> int:
    response = client.post(
        "/api/assets",
        json={"name": "Slide", "category_id": category_id, "park_id": park_id},
        headers=_auth_header(token),
    )
    assert response.status_code == 201
    return response.json()["id"]


def test_maintenance_record_and_list(maintenance_client: TestClient) -> None:
    seed = seed_reference_data()
    token = create_access_token(user_id=seed.admin_user_id, permissions=[PERM_WILDCARD])
    headers = _auth_header(token)
    asset_id = _create_asset(maintenance_client, token, seed.category_id, seed.park_id)

    with Session(db.engine, expire_on_commit=False) as session:
        technician = User(username="tech", full_name="Luis Tech")
        session.add(technician)
        session.commit()

    first = maintenance_client.post(
        f"/api/assets/{asset_id}/maintenances",
        json={
            "date": "2024-03-01",
            "maintenance_type": "preventive",
            "description": "Checked bolts",
            "cost": 80,
            "performed_by": "Contractor",
            "performer_id": technician.id,
            "next_maintenance_date": "2024-09-01",
        },
        headers=headers,
    )
    assert first.status_code == 201, first.text
    assert first.json()["status"] == "completed"
    assert first.json()["performer_name"] == "Luis Tech"

    second = maintenance_client.post(
        f"/api/assets/{asset_id}/maintenances",
        json={
            "date": "2024-05-01",
            "maintenance_type": "inspection",
            "description": "Visual inspection",
            "status": "scheduled",
        },
        headers=headers,
    )
    assert second.status_code == 201

    list_resp = maintenance_client.get(f"/api/assets/{asset_id}/maintenances", headers=headers)
    assert list_resp.status_code == 200
    rows = list_resp.json()
    assert [row["date"] for row in rows] == ["2024-05-01", "2024-03-01"]
    assert rows[1]["performer_name"] == "Luis Tech"
    assert rows[0]["performer_name"] is None

    history = maintenance_client.get(f"/api/assets/{asset_id}/history", headers=headers).json()
    maintenance_entries = [item for item in history if item["change_type"] == "maintenance"]
    assert [item["new_value"] for item in maintenance_entries] == ["preventive", "inspection"]
    assert maintenance_entries[0]["description"] == "Maintenance recorded: Preventive"
    assert maintenance_entries[0]["notes"] == "Description: Checked bolts, Cost: $80.00"

    with Session(db.engine) as session:
        recorded = session.exec(
            select(EventRecord).where(EventRecord.event_type == "asset.maintenance.recorded")
        ).all()
    assert len(recorded) == 2


def test_maintenance_rejections(maintenance_client: TestClient) -> None:
    seed = seed_reference_data()
    token = create_access_token(user_id=seed.admin_user_id, permissions=[PERM_WILDCARD])
    headers = _auth_header(token)
    asset_id = _create_asset(maintenance_client, token, seed.category_id, seed.park_id)

    blank = maintenance_client.post(
        f"/api/assets/{asset_id}/maintenances",
        json={"date": "2024-03-01", "maintenance_type": "preventive", "description": "   "},
        headers=headers,
    )
    assert blank.status_code == 422

    missing = maintenance_client.post(
        "/api/assets/999/maintenances",
        json={"date": "2024-03-01", "maintenance_type": "preventive", "description": "x"},
        headers=headers,
    )
    assert missing.status_code == 404
    assert maintenance_client.get("/api/assets/999/maintenances", headers=headers).status_code == 404

    retire = maintenance_client.put(f"/api/assets/{asset_id}", json={"status": "retired"}, headers=headers)
    assert retire.status_code == 200
    retired = maintenance_client.post(
        f"/api/assets/{asset_id}/maintenances",
        json={"date": "2024-03-01", "maintenance_type": "corrective", "description": "Repair"},
        headers=headers,
    )
    assert retired.status_code == 409
