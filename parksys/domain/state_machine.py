from __future__ import annotations

from enum import StrEnum


class EditSessionState(StrEnum):
    IDLE = "IDLE"
    EDITING = "EDITING"
    VALIDATING = "VALIDATING"
    SUBMITTING = "SUBMITTING"


ALLOWED_TRANSITIONS: dict[EditSessionState, set[EditSessionState]] = {
    EditSessionState.IDLE: {EditSessionState.EDITING},
    EditSessionState.EDITING: {EditSessionState.VALIDATING, EditSessionState.IDLE},
    EditSessionState.VALIDATING: {EditSessionState.SUBMITTING, EditSessionState.EDITING},
    EditSessionState.SUBMITTING: {EditSessionState.IDLE, EditSessionState.EDITING},
}


def can_transition(source: EditSessionState, target: EditSessionState) -> bool:
    return target in ALLOWED_TRANSITIONS.get(source, set())
