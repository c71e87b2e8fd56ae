"""
Promo State Machine for validating promo session transitions.

This module implements the finite state machine behind PromoSession and logs
every state change so a customer's promo attempts can be reconstructed from
the logs.
"""

import logging

from enums.promo_session_state import PromoSessionState

logger = logging.getLogger(__name__)


class PromoStateTransition:
    """Represents a valid state transition with metadata"""

    def __init__(self, from_state: PromoSessionState, to_state: PromoSessionState, description: str = ""):
        self.from_state = from_state
        self.to_state = to_state
        self.description = description

    def __repr__(self):
        return f"{self.from_state.value} -> {self.to_state.value}"


class PromoStateMachine:
    """
    Finite state machine for promo session transitions.

    Valid transitions:
    - IDLE -> VALIDATING (code entered)
    - VALIDATING -> APPLIED | NEEDS_ACTION | REJECTED (round trip settled)
    - NEEDS_ACTION -> VALIDATING (variant / add-on chosen, items added)
    - APPLIED -> VALIDATING (cart changed, re-validate)
    - REJECTED -> VALIDATING (user retries)
    - any -> IDLE (promo removed)
    """

    VALID_TRANSITIONS: list[PromoStateTransition] = [
        PromoStateTransition(
            PromoSessionState.IDLE,
            PromoSessionState.VALIDATING,
            description="Promo code submitted"
        ),
        PromoStateTransition(
            PromoSessionState.VALIDATING,
            PromoSessionState.APPLIED,
            description="Discount resolved"
        ),
        PromoStateTransition(
            PromoSessionState.VALIDATING,
            PromoSessionState.NEEDS_ACTION,
            description="Promo eligible, more input required"
        ),
        PromoStateTransition(
            PromoSessionState.VALIDATING,
            PromoSessionState.REJECTED,
            description="Promo rejected"
        ),
        PromoStateTransition(
            PromoSessionState.NEEDS_ACTION,
            PromoSessionState.VALIDATING,
            description="Required input supplied"
        ),
        PromoStateTransition(
            PromoSessionState.APPLIED,
            PromoSessionState.VALIDATING,
            description="Re-validating applied promo"
        ),
        PromoStateTransition(
            PromoSessionState.REJECTED,
            PromoSessionState.VALIDATING,
            description="Retrying after rejection"
        ),
    ]

    _transition_map: dict[PromoSessionState, set[PromoSessionState]] = {}
    _transition_descriptions: dict[tuple, str] = {}

    @classmethod
    def _build_transition_map(cls):
        """Build internal transition maps for lookup"""
        if cls._transition_map:
            return

        for transition in cls.VALID_TRANSITIONS:
            cls._transition_map.setdefault(transition.from_state, set()).add(transition.to_state)
            cls._transition_descriptions[(transition.from_state, transition.to_state)] = transition.description

    @classmethod
    def is_valid_transition(cls, from_state: PromoSessionState, to_state: PromoSessionState) -> bool:
        """
        Check if a state transition is valid.

        Staying in the same state and returning to IDLE are always allowed.
        """
        cls._build_transition_map()

        if from_state == to_state or to_state == PromoSessionState.IDLE:
            return True

        return to_state in cls._transition_map.get(from_state, set())

    @classmethod
    def get_valid_transitions(cls, from_state: PromoSessionState) -> list[PromoSessionState]:
        """All states reachable from from_state in one step (IDLE included)."""
        cls._build_transition_map()
        return sorted(cls._transition_map.get(from_state, set()) | {PromoSessionState.IDLE},
                      key=lambda state: state.value)

    @classmethod
    def get_transition_description(cls, from_state: PromoSessionState, to_state: PromoSessionState) -> str:
        cls._build_transition_map()
        if to_state == PromoSessionState.IDLE and from_state != to_state:
            return "Promo removed"
        return cls._transition_descriptions.get(
            (from_state, to_state),
            f"Transition from {from_state.value} to {to_state.value}"
        )

    @classmethod
    def validate_and_log_transition(cls, session_id: str, from_state: PromoSessionState,
                                    to_state: PromoSessionState, code: str | None = None) -> bool:
        """
        Validate a state transition and write the audit log line.

        Args:
            session_id: Identifier of the promo session (cart)
            from_state: Current state
            to_state: Desired new state
            code: Promo code involved, if any

        Returns:
            True if transition is valid and logged, False otherwise
        """
        if not cls.is_valid_transition(from_state, to_state):
            logger.error(
                f"[PromoState] Invalid transition for session {session_id}: "
                f"{from_state.value} -> {to_state.value}"
            )
            return False

        if from_state == to_state:
            return True

        description = cls.get_transition_description(from_state, to_state)
        logger.info(
            f"PROMO_STATE_TRANSITION: Session {session_id} {from_state.value} -> {to_state.value}"
            f"{f' ({code})' if code else ''}: {description}"
        )
        return True
