from __future__ import annotations

import asyncio
from collections.abc import Generator
from pathlib import Path

import httpx
import pytest
from sqlalchemy import event
from sqlmodel import SQLModel, create_engine

from parksys import main as app_main
from parksys.client.api import ParkSysApi, create_client
from parksys.client.cache import asset_key, history_key, maintenances_key
from parksys.client.controller import INVENTORY_PATH, AssetDetailController
from parksys.client.errors import (
    ConfirmationRequiredError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from parksys.client.notifications import NotificationLevel
from parksys.domain.permissions import PERM_WILDCARD
from parksys.domain.state_machine import EditSessionState
from parksys.infra import audit, db, events
from parksys.infra.auth import create_access_token
from parksys.infra.seed import SeedResult, seed_reference_data


@pytest.fixture()
def seeded(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> Generator[SeedResult, None, None]:
    db_path = tmp_path / "client_test.db"
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
    yield seed_reference_data()


def _http(seed: SeedResult) -> httpx.AsyncClient:
    token = create_access_token(user_id=seed.admin_user_id, permissions=[PERM_WILDCARD])
    return create_client(
        token,
        base_url="http://testserver",
        transport=httpx.ASGITransport(app=app_main.app),
    )


async def _register(http: httpx.AsyncClient, seed: SeedResult) -> int:
    response = await http.post(
        "/api/assets",
        json={
            "name": "Swing set",
            "category_id": seed.category_id,
            "park_id": seed.park_id,
            "status": "active",
            "condition": "good",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


def test_happy_path_edit_invalidates_queries_and_returns_to_idle(seeded: SeedResult) -> None:
    async def _run() -> None:
        async with _http(seeded) as http:
            asset_id = await _register(http, seeded)
            controller = AssetDetailController(ParkSysApi(http), asset_id)
            view = await controller.load()
            assert view.asset.ok and view.maintenances.ok and view.history.ok
            assert controller.cache.peek(history_key(asset_id)) is not None

            session = controller.open_edit()
            assert session.state == EditSessionState.EDITING
            session.set_field("condition", "poor")
            assert session.edited_fields() == ["condition"]
            updated = await session.submit()

            assert updated["condition"] == "poor"
            assert session.state == EditSessionState.IDLE
            assert session.form == {}
            assert controller.cache.peek(asset_key(asset_id)) is None
            assert controller.cache.peek(maintenances_key(asset_id)) is None
            assert controller.cache.peek(history_key(asset_id)) is None
            assert controller.notifier.last is not None
            assert controller.notifier.last.level == NotificationLevel.SUCCESS

            view = await controller.load()
            assert view.asset.data is not None and view.asset.data["condition"] == "poor"
            assert view.history.data is not None
            entries = list(view.history.data)
            assert [entry.change_type for entry in entries] == ["creation", "updated"]
            assert entries[1].field_name == "condition"

    asyncio.run(_run())


def test_concurrent_change_to_edited_field_is_a_conflict(seeded: SeedResult) -> None:
    async def _run() -> None:
        async with _http(seeded) as http, _http(seeded) as other:
            asset_id = await _register(http, seeded)
            controller = AssetDetailController(ParkSysApi(http), asset_id)
            await controller.load()
            session = controller.open_edit()
            session.update(status="storage", condition="fair")

            concurrent = await other.put(f"/api/assets/{asset_id}", json={"status": "damaged"})
            assert concurrent.status_code == 200

            before = dict(session.form)
            with pytest.raises(ConflictError) as exc_info:
                await session.submit()

            assert exc_info.value.fields == ["status"]
            assert session.state == EditSessionState.EDITING
            assert session.form == before
            assert controller.notifier.last is not None
            assert controller.notifier.last.error_kind == "conflict"
            current = (await other.get(f"/api/assets/{asset_id}")).json()
            assert current["status"] == "damaged"
            assert current["condition"] == "good"

            reapplied = await session.rebase()
            assert reapplied == ["condition", "status"]
            assert session.original is not None and session.original["status"] == "damaged"
            updated = await session.submit()
            assert updated["status"] == "storage"
            assert updated["condition"] == "fair"

    asyncio.run(_run())


def test_concurrent_change_to_other_field_is_preserved(seeded: SeedResult) -> None:
    async def _run() -> None:
        async with _http(seeded) as http, _http(seeded) as other:
            asset_id = await _register(http, seeded)
            controller = AssetDetailController(ParkSysApi(http), asset_id)
            await controller.load()
            session = controller.open_edit()
            session.set_field("condition", "poor")

            await other.put(f"/api/assets/{asset_id}", json={"status": "damaged"})
            updated = await session.submit()

            assert updated["condition"] == "poor"
            assert updated["status"] == "damaged"

    asyncio.run(_run())


def test_server_rejects_stale_expected_values(seeded: SeedResult) -> None:
    async def _run() -> None:
        async with _http(seeded) as http:
            asset_id = await _register(http, seeded)
            api = ParkSysApi(http)
            await api.update_asset(asset_id, {"status": "damaged"})

            with pytest.raises(ConflictError) as exc_info:
                await api.update_asset(asset_id, {"status": "storage"}, expected={"status": "active"})
            assert exc_info.value.fields == ["status"]

            with pytest.raises(ValidationError) as invalid:
                await api.update_asset(asset_id, {"park_id": -1})
            assert "park_id" in invalid.value.field_errors

            with pytest.raises(NotFoundError):
                await api.get_asset(asset_id + 100)

    asyncio.run(_run())


def test_record_maintenance_leaves_open_edit_untouched(seeded: SeedResult) -> None:
    async def _run() -> None:
        async with _http(seeded) as http:
            asset_id = await _register(http, seeded)
            controller = AssetDetailController(ParkSysApi(http), asset_id)
            await controller.load()
            session = controller.open_edit()
            session.set_field("notes", "repaint before summer")
            form_before = dict(session.form)

            created = await controller.record_maintenance(
                {
                    "date": "2024-06-01",
                    "maintenance_type": "preventive",
                    "description": "Replaced chains",
                    "cost": "",
                    "next_maintenance_date": "2024-12-01",
                }
            )

            assert created["status"] == "completed"
            assert session.state == EditSessionState.EDITING
            assert session.form == form_before
            summary = controller.view.maintenance_summary
            assert summary is not None
            assert summary.last_maintenance_date is not None
            assert summary.last_maintenance_date.date().isoformat() == "2024-06-01"
            assert summary.next_maintenance_date is not None
            assert summary.next_maintenance_date.date().isoformat() == "2024-12-01"
            history = controller.view.history.data
            assert history is not None
            assert [entry.change_type for entry in history] == ["creation", "maintenance"]

            assert await controller.record_maintenance({"date": "2024-06-01", "maintenance_type": "preventive"}) is None
            assert set(controller.maintenance_errors) == {"description"}
            assert controller.notifier.last is not None
            assert controller.notifier.last.error_kind == "validation"

    asyncio.run(_run())


def test_delete_requires_confirmation(seeded: SeedResult) -> None:
    async def _run() -> None:
        async with _http(seeded) as http:
            asset_id = await _register(http, seeded)
            controller = AssetDetailController(ParkSysApi(http), asset_id)
            await controller.load()

            with pytest.raises(ConfirmationRequiredError):
                await controller.delete()
            assert (await http.get(f"/api/assets/{asset_id}")).status_code == 200
            assert controller.redirect_to is None

            await controller.delete(confirmed=True)
            assert controller.redirect_to == INVENTORY_PATH
            assert controller.notifier.last is not None
            assert controller.notifier.last.level == NotificationLevel.SUCCESS

            view = await controller.load()
            assert isinstance(view.asset.error, NotFoundError)
            assert isinstance(view.history.error, NotFoundError)

    asyncio.run(_run())


def test_failed_load_keeps_other_results(seeded: SeedResult) -> None:
    async def _run() -> None:
        async with _http(seeded) as http:
            controller = AssetDetailController(ParkSysApi(http), 999)
            view = await controller.load()

            assert isinstance(view.asset.error, NotFoundError)
            assert not view.asset.loading
            assert view.maintenance_summary is None
            with pytest.raises(RuntimeError):
                controller.open_edit()

    asyncio.run(_run())
