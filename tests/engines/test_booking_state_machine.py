"""
Tests — Booking State Machine
================================
Transition table, terminal states, available actions, metadata.
"""

from __future__ import annotations

import pytest

from engines.hotel_reservation.events import (
    BOOKING_EVENTS,
    BOOKING_STATES,
    EVENT_METADATA,
    STATE_METADATA,
    TERMINAL_STATES,
    event_label,
    is_automated_event,
    requires_payment_reference,
    requires_reason,
    state_label,
)
from engines.hotel_reservation.state_machine import (
    available_actions,
    can_transition,
    is_terminal,
    next_state,
    possible_next_states,
    validate_transition,
)


# ══════════════════════════════════════════════════════════════
# TABLE PROPERTIES
# ══════════════════════════════════════════════════════════════


class TestTransitionTable:
    @pytest.mark.parametrize("state", BOOKING_STATES)
    def test_next_state_defined_iff_event_available(self, state):
        for event in BOOKING_EVENTS:
            has_target = next_state(state, event) is not None
            assert has_target == (event in available_actions(state))
            assert has_target == can_transition(state, event)

    @pytest.mark.parametrize("state", sorted(TERMINAL_STATES))
    def test_terminal_states_have_no_exits(self, state):
        assert is_terminal(state)
        assert available_actions(state) == frozenset()
        assert possible_next_states(state) == frozenset()
        for event in BOOKING_EVENTS:
            assert next_state(state, event) is None

    def test_available_action_counts(self):
        assert len(available_actions("pending")) == 5
        assert len(available_actions("confirmed")) == 3
        assert len(available_actions("checked_in")) == 1

    def test_every_state_reachable_from_pending(self):
        seen = {"pending"}
        frontier = ["pending"]
        while frontier:
            state = frontier.pop()
            for target in possible_next_states(state):
                if target not in seen:
                    seen.add(target)
                    frontier.append(target)
        assert seen == set(BOOKING_STATES)

    def test_unknown_state_has_no_actions(self):
        assert available_actions("archived") == frozenset()
        assert next_state("archived", "CANCEL") is None


class TestLifecyclePaths:
    def test_happy_path(self):
        state = "pending"
        for event in ("PAYMENT_RECEIVED", "CHECK_IN", "CHECK_OUT"):
            state = next_state(state, event)
        assert state == "checked_out"
        assert is_terminal(state)

    def test_cancel_from_pending_and_confirmed(self):
        assert next_state("pending", "CANCEL") == "cancelled"
        assert next_state("confirmed", "CANCEL") == "cancelled"

    def test_cannot_cancel_after_check_in(self):
        assert next_state("checked_in", "CANCEL") is None

    def test_payment_failures_and_timeouts(self):
        assert next_state("pending", "PAYMENT_FAILED") == "cancelled"
        assert next_state("pending", "PAYMENT_TIMEOUT") == "expired"
        assert next_state("pending", "EXPIRE") == "expired"
        assert next_state("confirmed", "MARK_NO_SHOW") == "no_show"


# ══════════════════════════════════════════════════════════════
# VALIDATION
# ══════════════════════════════════════════════════════════════


class TestValidateTransition:
    def test_ok_carries_next_state(self):
        result = validate_transition("pending", "PAYMENT_RECEIVED")
        assert result.ok is True
        assert result.next_state == "confirmed"
        assert result.error is None

    def test_illegal_event_lists_legal_actions(self):
        result = validate_transition("checked_in", "CANCEL")
        assert result.ok is False
        assert result.available_actions == frozenset({"CHECK_OUT"})
        assert "Available actions: CHECK_OUT" in result.error

    def test_terminal_state_error(self):
        result = validate_transition("cancelled", "CANCEL")
        assert result.ok is False
        assert "terminal" in result.error
        assert result.available_actions == frozenset()

    def test_to_dict(self):
        data = validate_transition("confirmed", "PAYMENT_RECEIVED").to_dict()
        assert data["ok"] is False
        assert data["available_actions"] == ["CANCEL", "CHECK_IN", "MARK_NO_SHOW"]


# ══════════════════════════════════════════════════════════════
# METADATA
# ══════════════════════════════════════════════════════════════


class TestMetadata:
    def test_every_event_and_state_described(self):
        assert set(EVENT_METADATA) == set(BOOKING_EVENTS)
        assert set(STATE_METADATA) == set(BOOKING_STATES)

    def test_automated_events(self):
        automated = {e for e in BOOKING_EVENTS if is_automated_event(e)}
        assert automated == {"PAYMENT_TIMEOUT", "EXPIRE"}

    def test_reason_and_reference_requirements(self):
        assert {e for e in BOOKING_EVENTS if requires_reason(e)} == {"CANCEL", "PAYMENT_FAILED"}
        assert {e for e in BOOKING_EVENTS if requires_payment_reference(e)} == {"PAYMENT_RECEIVED"}

    def test_no_event_requires_both(self):
        for event in BOOKING_EVENTS:
            assert not (requires_reason(event) and requires_payment_reference(event))

    def test_active_states_are_non_terminal(self):
        for state, meta in STATE_METADATA.items():
            assert meta["is_active"] == (state not in TERMINAL_STATES)

    def test_labels(self):
        assert event_label("MARK_NO_SHOW") == "Mark as No-Show"
        assert state_label("pending") == "Pending Payment"
        assert state_label("unknown") == "unknown"
