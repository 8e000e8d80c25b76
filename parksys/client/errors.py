"""Error kinds surfaced to the user by the ParkSys client.

Only ``ValidationError`` is resolved locally; every other kind is reported
through a notification while local state (form edits) is kept as-is.
"""

from __future__ import annotations


class ClientError(Exception):
    kind = "client"


class ValidationError(ClientError):
    kind = "validation"

    def __init__(self, message: str, field_errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.field_errors = dict(field_errors or {})


class NotFoundError(ClientError):
    kind = "not_found"


class ConflictError(ClientError):
    kind = "conflict"

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = list(fields or [])


class NetworkError(ClientError):
    """Timeout or transport failure. Safe to retry."""

    kind = "network"


class ServerError(ClientError):
    kind = "server"

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfirmationRequiredError(ClientError):
    kind = "confirmation_required"
