"""
Promo Session

Per-cart orchestration of the two-phase promo protocol:

    IDLE -> VALIDATING -> APPLIED
                       -> NEEDS_ACTION -> VALIDATING -> ...
                       -> REJECTED

The session never retries on its own. Every validation attempt is tagged with
a sequence number; a result that arrives after remove(), invalidate() or a
newer apply() is discarded instead of being applied.
"""

import logging
import uuid
from typing import Protocol

from pydantic import BaseModel

import config
from db import get_db_session
from enums.promo_error_kind import PromoErrorKind
from enums.promo_session_state import PromoSessionState
from exceptions.promo import PromoInputException, PromoTransientException
from models.cart import CartItemDTO
from models.promo_application import (PromoApplicationRequestDTO, PromoApplicationResultDTO,
                                      AppliedPromoDTO, RequiresActionDTO)
from services.promo import PromoService
from services.promo_rpc import PromoRpcClient
from utils.promo_state_machine import PromoStateMachine

logger = logging.getLogger(__name__)


class PromoValidator(Protocol):
    """Anything that answers validate_apply_promo: the local mirror or the server RPC."""

    async def validate_apply(self, request: PromoApplicationRequestDTO) -> PromoApplicationResultDTO:
        ...


class LocalPromoValidator:
    """Runs PromoService.validate_apply on its own database session."""

    async def validate_apply(self, request: PromoApplicationRequestDTO) -> PromoApplicationResultDTO:
        async with get_db_session() as session:
            return await PromoService.validate_apply(request, session)


def create_default_validator() -> PromoValidator:
    """Pick the validator from PROMO_VALIDATION_MODE ('local' or 'server')."""
    if config.PROMO_VALIDATION_MODE == "server":
        return PromoRpcClient()
    return LocalPromoValidator()


class PromoSessionResult(BaseModel):
    """
    Outcome of one apply() call.

    stale=True means a newer action superseded this attempt; state and
    result are informational only and the session was not changed.
    """
    state: PromoSessionState
    result: PromoApplicationResultDTO | None = None
    error_kind: PromoErrorKind | None = None
    stale: bool = False


class PromoSession:
    """Promo state of one cart."""

    def __init__(self, validator: PromoValidator | None = None, session_id: str | None = None):
        self.validator = validator or create_default_validator()
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self.state = PromoSessionState.IDLE
        self._seq = 0
        self._clear()

    def _clear(self):
        self.code: str | None = None
        self.applied_promo: AppliedPromoDTO | None = None
        self.discount_cents = 0
        self.requires_action: RequiresActionDTO | None = None
        self.errors: list[str] = []
        self.error_kind: PromoErrorKind | None = None
        self.last_result: PromoApplicationResultDTO | None = None

    def _transition(self, to_state: PromoSessionState):
        if PromoStateMachine.validate_and_log_transition(self.session_id, self.state, to_state, self.code):
            self.state = to_state

    @property
    def sequence(self) -> int:
        return self._seq

    @property
    def error_message(self) -> str | None:
        return ", ".join(self.errors) if self.errors else None

    def total_cents(self, subtotal_cents: int) -> int:
        """Cart total after the applied discount, never negative."""
        return max(0, subtotal_cents - self.discount_cents)

    def _reject(self, kind: PromoErrorKind, errors: list[str],
                result: PromoApplicationResultDTO | None = None) -> PromoSessionResult:
        self.applied_promo = None
        self.discount_cents = 0
        self.requires_action = None
        self.errors = errors
        self.error_kind = kind
        self.last_result = result
        self._transition(PromoSessionState.REJECTED)
        return PromoSessionResult(state=self.state, result=result, error_kind=kind)

    def _settle(self, result: PromoApplicationResultDTO) -> PromoSessionResult:
        self.last_result = result

        if result.success:
            self.applied_promo = result.applied_promo
            self.discount_cents = result.discount_cents
            self.requires_action = None
            self.errors = []
            self.error_kind = None
            self._transition(PromoSessionState.APPLIED)
            return PromoSessionResult(state=self.state, result=result)

        if result.requires_action is not None:
            self.applied_promo = None
            self.discount_cents = 0
            self.requires_action = result.requires_action
            self.errors = list(result.errors)
            self.error_kind = None
            self._transition(PromoSessionState.NEEDS_ACTION)
            return PromoSessionResult(state=self.state, result=result)

        return self._reject(
            PromoErrorKind.NOT_ELIGIBLE,
            list(result.errors) or ["Invalid promo code"],
            result
        )

    async def apply(
        self,
        code: str,
        subtotal_cents: int,
        cart_items: list[CartItemDTO],
        selected_variant_id: str | None = None,
        selected_addon_id: str | None = None,
        customer_identifier: str | None = None
    ) -> PromoSessionResult:
        """
        Validate a code against the cart and move the session accordingly.

        Re-invoke with selected_variant_id / selected_addon_id after a
        NEEDS_ACTION result, or after adding items for add_items.
        """
        self._seq += 1
        seq = self._seq

        normalized = (code or "").strip().upper()
        self.code = normalized or None
        self._transition(PromoSessionState.VALIDATING)

        if not normalized:
            error = PromoInputException()
            return self._reject(PromoErrorKind.INPUT, [str(error)])
        if any(char.isspace() for char in normalized):
            error = PromoInputException("Invalid promo code", normalized)
            return self._reject(PromoErrorKind.INPUT, [str(error)])

        request = PromoApplicationRequestDTO(
            code=normalized,
            subtotal_cents=subtotal_cents,
            cart_items=cart_items,
            selected_variant_id=selected_variant_id,
            selected_addon_id=selected_addon_id,
            customer_identifier=customer_identifier,
        )

        try:
            result = await self.validator.validate_apply(request)
        except PromoTransientException as e:
            if seq != self._seq:
                logger.info(f"[Promo] Discarding stale failure #{seq} for {normalized}")
                return PromoSessionResult(state=self.state, error_kind=PromoErrorKind.TRANSIENT, stale=True)
            logger.error(f"[Promo] Validation of {normalized} unavailable: {e.operation}")
            return self._reject(PromoErrorKind.TRANSIENT, [str(e)])

        if seq != self._seq:
            logger.info(f"[Promo] Discarding stale result #{seq} for {normalized} (latest #{self._seq})")
            return PromoSessionResult(state=self.state, result=result, stale=True)

        return self._settle(result)

    def remove(self):
        """Drop the promo and return to IDLE. Safe to call in any state, any number of times."""
        self._seq += 1
        self._transition(PromoSessionState.IDLE)
        self._clear()

    def invalidate(self):
        """
        Discard whatever validation is in flight (cart edited mid round trip).

        An interrupted VALIDATING session goes back to IDLE; settled states
        are kept and re-validating them is up to the caller.
        """
        self._seq += 1
        if self.state == PromoSessionState.VALIDATING:
            self._transition(PromoSessionState.IDLE)
            self._clear()
