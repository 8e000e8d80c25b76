from __future__ import annotations

import asyncio
import os
import time
from uuid import uuid4

import httpx

from parksys.client.api import ParkSysApi, create_client
from parksys.client.controller import AssetDetailController
from parksys.client.errors import ConfirmationRequiredError
from parksys.domain.permissions import PERM_WILDCARD
from parksys.infra.auth import create_access_token
from parksys.infra.seed import seed_reference_data


def assert_status(response: httpx.Response, expected: int | tuple[int, ...]) -> None:
    expected_codes = (expected,) if isinstance(expected, int) else expected
    if response.status_code not in expected_codes:
        raise RuntimeError(
            f"{response.request.method} {response.request.url} expected {expected_codes}, "
            f"got {response.status_code}: {response.text}"
        )


async def wait_ok(client: httpx.AsyncClient, path: str, timeout_seconds: float = 60.0) -> None:
    deadline = time.monotonic() + timeout_seconds
    while time.monotonic() < deadline:
        try:
            response = await client.get(path)
            if response.status_code == 200:
                return
        except httpx.HTTPError:
            pass
        await asyncio.sleep(1.0)
    raise RuntimeError(f"timeout waiting for {path}")


async def _run() -> None:
    base_url = os.getenv("PARKSYS_API_URL", "http://app:8000").rstrip("/")
    seed = seed_reference_data()
    token = create_access_token(user_id=seed.admin_user_id, permissions=[PERM_WILDCARD])

    async with create_client(token, base_url=base_url, timeout=20.0) as client:
        await wait_ok(client, "/healthz")
        await wait_ok(client, "/readyz")

        asset_resp = await client.post(
            "/api/assets",
            json={
                "name": f"demo-swing-{uuid4().hex[:6]}",
                "category_id": seed.category_id,
                "park_id": seed.park_id,
                "acquisition_cost": 1200,
                "maintenance_frequency": "monthly",
            },
        )
        assert_status(asset_resp, 201)
        asset_id = asset_resp.json()["id"]

        controller = AssetDetailController(ParkSysApi(client), asset_id)
        view = await controller.load()
        if view.maintenance_summary is None or view.maintenance_summary.next_maintenance_date is not None:
            raise RuntimeError("fresh asset should be unscheduled")

        await controller.record_maintenance(
            {
                "date": "2026-01-10",
                "maintenance_type": "inspection",
                "description": "quarterly safety inspection",
                "cost": "85",
                "next_maintenance_date": "2026-04-10",
            }
        )
        summary = controller.view.maintenance_summary
        if summary is None or summary.last_maintenance_date is None:
            raise RuntimeError("maintenance summary missing after record")

        session = controller.open_edit()
        session.set_field("condition", "poor")
        await controller.submit_edit()

        history = controller.view.history.data
        if history is None or [entry.change_type for entry in history] != ["creation", "maintenance", "updated"]:
            raise RuntimeError(f"unexpected history: {history}")

        try:
            await controller.delete()
        except ConfirmationRequiredError:
            pass
        await controller.delete(confirmed=True)
        if controller.redirect_to != "/admin/assets":
            raise RuntimeError("delete should leave the detail view")

    print(f"demo_asset_maintenance passed asset_id={asset_id} schedule={summary.schedule_state}")


if __name__ == "__main__":
    asyncio.run(_run())
