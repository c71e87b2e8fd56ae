"""
Promo RPC Client

Calls the authoritative validate_apply_promo procedure on the backend
(PostgREST-style RPC endpoint). The server result is what an order is
committed with; the local mirror in services/promo.py is only a preview.
"""

import asyncio
import logging

import aiohttp
from pydantic import ValidationError

import config
from exceptions.promo import PromoTransientException
from models.promo_application import PromoApplicationRequestDTO, PromoApplicationResultDTO

logger = logging.getLogger(__name__)


class PromoRpcClient:
    """
    Async client for the validate_apply_promo procedure.

    Network failures, timeouts, non-2xx responses and unparseable bodies all
    raise PromoTransientException so the caller can tell "try again" from
    "this code is not eligible".
    """

    def __init__(self, url: str | None = None, api_key: str | None = None,
                 timeout_seconds: float | None = None):
        self.url = url or config.PROMO_RPC_URL
        self.api_key = api_key if api_key is not None else config.PROMO_RPC_API_KEY
        self.timeout_seconds = timeout_seconds or config.PROMO_RPC_TIMEOUT_SECONDS

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @staticmethod
    def build_payload(request: PromoApplicationRequestDTO) -> dict:
        """Procedure arguments, p_-prefixed like the SQL function signature."""
        return {
            "p_code": request.normalized_code,
            "p_subtotal_cents": request.subtotal_cents,
            "p_cart_items": [item.to_rpc_payload() for item in request.cart_items],
            "p_selected_variant_id": request.selected_variant_id,
            "p_selected_addon_id": request.selected_addon_id,
            "p_customer_identifier": request.customer_identifier,
        }

    async def validate_apply(self, request: PromoApplicationRequestDTO) -> PromoApplicationResultDTO:
        """
        Validate and price a promo on the server.

        Raises:
            PromoTransientException: Server unreachable, timed out or returned garbage
        """
        payload = self.build_payload(request)
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as http:
                async with http.post(self.url, json=payload, headers=self._headers()) as response:
                    if response.status >= 400:
                        body = await response.text()
                        logger.error(f"[PromoRPC] HTTP {response.status} for {payload['p_code']}: {body[:200]}")
                        raise PromoTransientException("validate_apply_promo")
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"[PromoRPC] Request failed for {payload['p_code']}: {e!r}")
            raise PromoTransientException("validate_apply_promo", e)

        # Some gateways wrap a scalar function result in a one-element list
        if isinstance(data, list) and len(data) == 1:
            data = data[0]

        try:
            result = PromoApplicationResultDTO.model_validate(data)
        except ValidationError as e:
            logger.error(f"[PromoRPC] Unexpected response for {payload['p_code']}: {e}")
            raise PromoTransientException("validate_apply_promo", e)

        logger.info(
            f"[PromoRPC] {payload['p_code']}: success={result.success} discount={result.discount_cents}"
        )
        return result
