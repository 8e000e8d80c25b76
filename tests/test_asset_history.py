from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlmodel import SQLModel, create_engine

from parksys import main as app_main
from parksys.domain.permissions import PERM_WILDCARD
from parksys.infra import audit, db, events
from parksys.infra.auth import create_access_token
from parksys.infra.seed import seed_reference_data


@pytest.fixture()
def history_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> Generator[TestClient, None, None]:
    db_path = tmp_path / "asset_history_test.db"
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


def test_history_cannot_be_written_over_http(history_client: TestClient) -> None:
    seed = seed_reference_data()
    headers = _auth_header(create_access_token(user_id=seed.admin_user_id, permissions=[PERM_WILDCARD]))
    created = history_client.post(
        "/api/assets",
        json={"name": "Fountain", "category_id": seed.category_id, "park_id": seed.park_id},
        headers=headers,
    )
    asset_id = created.json()["id"]

    forged = history_client.post(
        f"/api/assets/{asset_id}/history",
        json={"change_type": "updated", "description": "forged"},
        headers=headers,
    )
    assert forged.status_code == 405

    history = history_client.get(f"/api/assets/{asset_id}/history", headers=headers).json()
    assert [item["change_type"] for item in history] == ["creation"]


def test_recent_history_across_assets(history_client: TestClient) -> None:
    seed = seed_reference_data()
    headers = _auth_header(create_access_token(user_id=seed.admin_user_id, permissions=[PERM_WILDCARD]))
    ids = []
    for name in ("Fountain", "Gazebo", "Bench"):
        response = history_client.post(
            "/api/assets",
            json={"name": name, "category_id": seed.category_id, "park_id": seed.park_id},
            headers=headers,
        )
        assert response.status_code == 201
        ids.append(response.json()["id"])
    history_client.put(f"/api/assets/{ids[0]}", json={"condition": "fair"}, headers=headers)

    recent = history_client.get("/api/assets/history/recent", params={"limit": 2}, headers=headers)
    assert recent.status_code == 200
    rows = recent.json()
    assert len(rows) == 2
    assert rows[0]["asset_id"] == ids[0]
    assert rows[0]["change_type"] == "updated"
    assert rows[0]["asset_name"] == "Fountain"
    assert rows[0]["user_name"] == "Administrator"
    assert rows[1]["asset_name"] == "Bench"

    too_many = history_client.get("/api/assets/history/recent", params={"limit": 1000}, headers=headers)
    assert too_many.status_code == 422
