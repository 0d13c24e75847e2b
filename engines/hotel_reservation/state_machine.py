"""
Hotelius Hotel Reservation Engine — Booking State Machine
===========================================================
Pure transition table lookups. No I/O, no clock, no store.

    pending ──PAYMENT_RECEIVED──▶ confirmed ──CHECK_IN──▶ checked_in ──CHECK_OUT──▶ checked_out
       │                             │
       ├─PAYMENT_FAILED / CANCEL─▶ cancelled ◀──CANCEL──┤
       └─PAYMENT_TIMEOUT / EXPIRE─▶ expired              └─MARK_NO_SHOW─▶ no_show
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

from engines.hotel_reservation.events import STATE_TRANSITIONS, TERMINAL_STATES


@dataclass(frozen=True)
class TransitionValidation:
    """
    Outcome of validate_transition().

    ok=True carries next_state; ok=False carries a message and the
    events that ARE legal from the current state.
    """

    ok: bool
    state: str
    event: str
    next_state: Optional[str] = None
    error: Optional[str] = None
    available_actions: FrozenSet[str] = frozenset()

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "state": self.state,
            "event": self.event,
            "next_state": self.next_state,
            "error": self.error,
            "available_actions": sorted(self.available_actions),
        }


def next_state(state: str, event: str) -> Optional[str]:
    """Target state for (state, event), or None if the event is illegal."""
    transitions = STATE_TRANSITIONS.get(state)
    if transitions is None:
        return None
    return transitions.get(event)


def can_transition(state: str, event: str) -> bool:
    return next_state(state, event) is not None


def is_terminal(state: str) -> bool:
    return state in TERMINAL_STATES


def available_actions(state: str) -> FrozenSet[str]:
    """Events legal from `state` (empty for terminal or unknown states)."""
    transitions = STATE_TRANSITIONS.get(state)
    return frozenset(transitions) if transitions else frozenset()


def possible_next_states(state: str) -> FrozenSet[str]:
    transitions = STATE_TRANSITIONS.get(state)
    return frozenset(transitions.values()) if transitions else frozenset()


def validate_transition(state: str, event: str) -> TransitionValidation:
    if is_terminal(state):
        return TransitionValidation(
            ok=False, state=state, event=event,
            error=f"Cannot apply '{event}': '{state}' is a terminal state.",
        )

    target = next_state(state, event)
    if target is None:
        legal = available_actions(state)
        return TransitionValidation(
            ok=False, state=state, event=event,
            error=(
                f"Invalid event '{event}' for state '{state}'. "
                f"Available actions: {', '.join(sorted(legal)) or 'none'}"
            ),
            available_actions=legal,
        )

    return TransitionValidation(ok=True, state=state, event=event, next_state=target)
