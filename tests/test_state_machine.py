from __future__ import annotations

from parksys.domain.state_machine import ALLOWED_TRANSITIONS, EditSessionState, can_transition


def test_edit_session_transitions() -> None:
    assert can_transition(EditSessionState.IDLE, EditSessionState.EDITING)
    assert can_transition(EditSessionState.EDITING, EditSessionState.VALIDATING)
    assert can_transition(EditSessionState.VALIDATING, EditSessionState.SUBMITTING)
    assert can_transition(EditSessionState.VALIDATING, EditSessionState.EDITING)
    assert can_transition(EditSessionState.SUBMITTING, EditSessionState.IDLE)
    assert can_transition(EditSessionState.SUBMITTING, EditSessionState.EDITING)
    assert not can_transition(EditSessionState.IDLE, EditSessionState.SUBMITTING)
    assert not can_transition(EditSessionState.EDITING, EditSessionState.SUBMITTING)
    assert not can_transition(EditSessionState.SUBMITTING, EditSessionState.VALIDATING)


def test_every_state_has_a_way_back_to_idle() -> None:
    assert set(ALLOWED_TRANSITIONS) == set(EditSessionState)
    for state in EditSessionState:
        reachable = {state}
        frontier = [state]
        while frontier:
            current = frontier.pop()
            for target in ALLOWED_TRANSITIONS[current]:
                if target not in reachable:
                    reachable.add(target)
                    frontier.append(target)
        assert EditSessionState.IDLE in reachable
