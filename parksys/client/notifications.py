from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from parksys.client.errors import ClientError

logger = logging.getLogger(__name__)


class NotificationLevel(StrEnum):
    SUCCESS = "success"
    ERROR = "error"


# One message per error kind, so a user can tell what went wrong.
FAILURE_MESSAGES: dict[str, str] = {
    "validation": "Some fields are invalid. Review the highlighted fields and try again.",
    "not_found": "The asset no longer exists. Return to the asset inventory.",
    "conflict": "Someone else changed this asset. Reload it and reapply your changes.",
    "network": "Could not reach the server. Your changes were kept, try again.",
    "server": "The server failed to process the request. Your changes were kept, try again later.",
    "confirmation_required": "Confirm the action before it is carried out.",
}


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    title: str
    message: str
    error_kind: str | None = None


class Notifier:
    def __init__(self) -> None:
        self._items: list[Notification] = []

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    @property
    def last(self) -> Notification | None:
        return self._items[-1] if self._items else None

    def success(self, title: str, message: str) -> Notification:
        notification = Notification(NotificationLevel.SUCCESS, title, message)
        self._items.append(notification)
        return notification

    def failure(self, title: str, exc: ClientError) -> Notification:
        message = FAILURE_MESSAGES.get(exc.kind, "The request failed.")
        detail = str(exc)
        if detail:
            message = f"{message} ({detail})"
        notification = Notification(NotificationLevel.ERROR, title, message, error_kind=exc.kind)
        self._items.append(notification)
        logger.info("%s failed: %s error: %s", title, exc.kind, detail)
        return notification

    def drain(self) -> list[Notification]:
        items, self._items = self._items, []
        return items
