"""
Unit tests for the promo session state machine.

Run with:
    pytest tests/utils/unit/test_promo_state_machine.py -v
"""

import logging
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../..')))

from enums.promo_session_state import PromoSessionState
from utils.promo_state_machine import PromoStateMachine

IDLE = PromoSessionState.IDLE
VALIDATING = PromoSessionState.VALIDATING
NEEDS_ACTION = PromoSessionState.NEEDS_ACTION
APPLIED = PromoSessionState.APPLIED
REJECTED = PromoSessionState.REJECTED


class TestTransitions:

    @pytest.mark.parametrize("from_state,to_state", [
        (IDLE, VALIDATING),
        (VALIDATING, APPLIED),
        (VALIDATING, NEEDS_ACTION),
        (VALIDATING, REJECTED),
        (NEEDS_ACTION, VALIDATING),
        (APPLIED, VALIDATING),
        (REJECTED, VALIDATING),
    ])
    def test_valid(self, from_state, to_state):
        assert PromoStateMachine.is_valid_transition(from_state, to_state)

    @pytest.mark.parametrize("from_state,to_state", [
        (IDLE, APPLIED),
        (IDLE, REJECTED),
        (NEEDS_ACTION, APPLIED),
        (APPLIED, REJECTED),
        (REJECTED, APPLIED),
    ])
    def test_invalid(self, from_state, to_state):
        # Every settled state must go through a validation round trip
        assert not PromoStateMachine.is_valid_transition(from_state, to_state)

    @pytest.mark.parametrize("state", list(PromoSessionState))
    def test_removal_always_allowed(self, state):
        assert PromoStateMachine.is_valid_transition(state, IDLE)

    @pytest.mark.parametrize("state", list(PromoSessionState))
    def test_same_state_allowed(self, state):
        assert PromoStateMachine.is_valid_transition(state, state)

    def test_valid_transitions_from_validating(self):
        assert PromoStateMachine.get_valid_transitions(VALIDATING) == [APPLIED, IDLE, NEEDS_ACTION, REJECTED]

    def test_valid_transitions_from_idle(self):
        assert PromoStateMachine.get_valid_transitions(IDLE) == [IDLE, VALIDATING]


class TestDescriptions:

    def test_known_transition(self):
        assert PromoStateMachine.get_transition_description(VALIDATING, NEEDS_ACTION) == \
            "Promo eligible, more input required"

    def test_removal(self):
        assert PromoStateMachine.get_transition_description(APPLIED, IDLE) == "Promo removed"

    def test_fallback(self):
        assert PromoStateMachine.get_transition_description(APPLIED, APPLIED) == "Transition from APPLIED to APPLIED"


class TestValidateAndLog:

    def test_logs_state_change(self, caplog):
        with caplog.at_level(logging.INFO, logger="utils.promo_state_machine"):
            assert PromoStateMachine.validate_and_log_transition("cart-1", IDLE, VALIDATING, code="SAVE15")

        assert "PROMO_STATE_TRANSITION: Session cart-1 IDLE -> VALIDATING (SAVE15): Promo code submitted" \
            in caplog.text

    def test_same_state_is_silent(self, caplog):
        with caplog.at_level(logging.INFO, logger="utils.promo_state_machine"):
            assert PromoStateMachine.validate_and_log_transition("cart-1", APPLIED, APPLIED)

        assert "PROMO_STATE_TRANSITION" not in caplog.text

    def test_invalid_transition_logged_as_error(self, caplog):
        with caplog.at_level(logging.INFO, logger="utils.promo_state_machine"):
            assert not PromoStateMachine.validate_and_log_transition("cart-1", IDLE, APPLIED)

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "Invalid transition for session cart-1: IDLE -> APPLIED" in errors[0].getMessage()
