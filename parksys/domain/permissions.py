from __future__ import annotations

from typing import Any

PERM_WILDCARD = "*"
PERM_ASSET_READ = "asset.read"
PERM_ASSET_WRITE = "asset.write"


def has_permission(claims: dict[str, Any], permission: str) -> bool:
    permissions = claims.get("permissions", [])
    if not isinstance(permissions, list):
        return False
    return permission in permissions or PERM_WILDCARD in permissions
