from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from parksys.client.errors import (
    ClientError,
    ConflictError,
    NetworkError,
    NotFoundError,
    ServerError,
    ValidationError,
)

PARKSYS_API_URL = os.getenv("PARKSYS_API_URL", "http://localhost:8000")
PARKSYS_HTTP_TIMEOUT_S = float(os.getenv("PARKSYS_HTTP_TIMEOUT_S", "10"))

logger = logging.getLogger(__name__)


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def create_client(
    token: str,
    *,
    base_url: str = PARKSYS_API_URL,
    timeout: float = PARKSYS_HTTP_TIMEOUT_S,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url,
        headers=auth_headers(token),
        timeout=httpx.Timeout(timeout),
        transport=transport,
    )


def _detail(response: httpx.Response) -> Any:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and "detail" in body:
        return body["detail"]
    return body


def _field_errors(detail: Any) -> dict[str, str]:
    # FastAPI request validation: [{"loc": ["body", "name"], "msg": "..."}, ...]
    errors: dict[str, str] = {}
    if not isinstance(detail, list):
        return errors
    for item in detail:
        if not isinstance(item, dict):
            continue
        loc = [str(part) for part in item.get("loc", []) if part != "body"]
        errors.setdefault(".".join(loc) or "__root__", str(item.get("msg", "invalid value")))
    return errors


def raise_for_response(response: httpx.Response) -> None:
    """Translate a non-2xx response into the client error taxonomy."""
    if response.is_success:
        return
    detail = _detail(response)
    code = response.status_code
    if code == 404:
        raise NotFoundError(str(detail))
    if code == 409:
        if isinstance(detail, dict):
            raise ConflictError(str(detail.get("message", "conflict")), fields=detail.get("fields") or [])
        raise ConflictError(str(detail))
    if code in (400, 422):
        field_errors = _field_errors(detail)
        message = "request rejected by server" if field_errors else str(detail)
        raise ValidationError(message, field_errors)
    if code >= 500:
        raise ServerError(f"server error {code}", status_code=code)
    raise ClientError(f"unexpected response {code}: {detail}")


class ParkSysApi:
    """Thin async wrapper over the ParkSys REST endpoints.

    Every call goes through ``_request`` so timeouts and transport failures
    always surface as ``NetworkError``.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out", method, path)
            raise NetworkError(f"request timed out: {method} {path}") from exc
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkError(f"could not reach server: {method} {path}") from exc
        raise_for_response(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("%s %s answered %s with a non-JSON body", method, path, response.status_code)
            raise ServerError(
                f"unreadable response: {method} {path}",
                status_code=response.status_code,
            ) from exc

    async def get_asset(self, asset_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/api/assets/{asset_id}")

    async def update_asset(
        self,
        asset_id: int,
        changes: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        body = dict(changes)
        if expected:
            body["expected"] = expected
        return await self._request("PUT", f"/api/assets/{asset_id}", json=body)

    async def delete_asset(self, asset_id: int) -> None:
        await self._request("DELETE", f"/api/assets/{asset_id}")

    async def list_maintenances(self, asset_id: int) -> list[dict[str, Any]]:
        return await self._request("GET", f"/api/assets/{asset_id}/maintenances")

    async def create_maintenance(self, asset_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", f"/api/assets/{asset_id}/maintenances", json=payload)

    async def list_history(self, asset_id: int) -> list[dict[str, Any]]:
        return await self._request("GET", f"/api/assets/{asset_id}/history")
