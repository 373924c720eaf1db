"""
HTTP fetch with automatic x402 payment handling.

Flow for one call:
1. Send the request
2. Anything but 402 goes straight back to the caller
3. On 402: parse challenge, select offer, enforce ceiling
4. Sign a payment proof
5. Resend once with the x-payment header
6. Decode the settlement header if present

At most two round-trips happen per call. A second 402 is an error, never
another retry.
"""

from __future__ import annotations

import inspect
import json as jsonlib
import logging
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from .config import Callback, DexfraConfig, PaymentCallbacks
from .constants import PAYMENT_HEADER, PAYMENT_REQUIRED_STATUS, SETTLEMENT_HEADER
from .errors import (
    DexfraError,
    InvalidChallengeError,
    PaymentProcessingError,
    PaymentRejectedError,
)
from .guard import enforce_ceiling, select_offer
from .proof import build_payment_proof
from .protocol import parse_challenge
from .settlement import parse_settlement
from .signers import PaymentSigner

logger = logging.getLogger(__name__)

__all__ = ["PaymentCallbacks", "PaymentFetcher", "dexfra_fetch"]


class PaymentFetcher:
    """Issues HTTP requests and pays x402 challenges with ``signer``."""

    def __init__(
        self,
        signer: PaymentSigner,
        config: Optional[DexfraConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.signer = signer
        self.config = config or DexfraConfig()
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(timeout=self.config.timeout_seconds)

        if self.config.max_amount is None:
            logger.warning("No spending ceiling configured; x402 payments are unrestricted")

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        content: Optional[bytes | str] = None,
        json: Any = None,
        callbacks: Optional[PaymentCallbacks] = None,
    ) -> httpx.Response:
        """Send a request, paying for it if the server answers 402."""
        callbacks = callbacks or self.config.fetch_callbacks()
        req_headers = {**self.config.default_headers, **(headers or {})}
        send_kwargs = {"params": params, "content": content, "json": json}

        response = await self._send(method, url, req_headers, send_kwargs)
        if response.status_code != PAYMENT_REQUIRED_STATUS:
            return response

        try:
            return await self._pay_and_retry(method, url, req_headers, send_kwargs, response, callbacks)
        except DexfraError as e:
            await _notify_error(callbacks.on_payment_error, e)
            raise
        except Exception as e:
            wrapped = PaymentProcessingError(f"Payment processing failed: {type(e).__name__}: {e}", cause=e)
            await _notify_error(callbacks.on_payment_error, wrapped)
            raise wrapped from e

    async def get(self, url: str, params: Optional[dict[str, Any]] = None, **kwargs) -> httpx.Response:
        return await self.request("GET", url, params=params, **kwargs)

    async def post(self, url: str, body: Any = None, **kwargs) -> httpx.Response:
        headers = {"Content-Type": "application/json", **(kwargs.pop("headers", None) or {})}
        content = jsonlib.dumps(body) if body is not None else None
        return await self.request("POST", url, headers=headers, content=content, **kwargs)

    async def _pay_and_retry(
        self,
        method: str,
        url: str,
        req_headers: dict[str, str],
        send_kwargs: dict[str, Any],
        challenge_response: httpx.Response,
        callbacks: PaymentCallbacks,
    ) -> httpx.Response:
        try:
            body = challenge_response.json()
        except (ValueError, UnicodeDecodeError) as e:
            raise InvalidChallengeError(f"402 response body is not JSON: {e}") from e

        challenge = parse_challenge(body)
        offer = select_offer(challenge.accepts, self.config.network)
        enforce_ceiling(offer, self.config.max_amount)

        logger.info(
            "Payment required for %s: %s base units on %s to %s",
            _display_url(url), offer.max_amount_required, offer.network, offer.recipient,
        )
        await _notify(callbacks.on_payment_required, offer.max_amount_required, name="on_payment_required")

        proof = await build_payment_proof(self.signer, challenge.x402_version, offer)
        logger.info("Retrying %s with payment from %s", _display_url(url), self.signer.address)

        paid_response = await self._send(method, url, {**req_headers, PAYMENT_HEADER: proof}, send_kwargs)
        if paid_response.status_code == PAYMENT_REQUIRED_STATUS:
            raise PaymentRejectedError(offer.max_amount_required, list(challenge.accepts))

        settlement = parse_settlement(paid_response.headers.get(SETTLEMENT_HEADER))
        if settlement is not None:
            logger.info("Payment settled: tx %s on %s", settlement.transaction_id, settlement.network)
            await _notify(callbacks.on_payment_success, settlement.transaction_id, name="on_payment_success")
        return paid_response

    async def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        send_kwargs: dict[str, Any],
    ) -> httpx.Response:
        request = self._http.build_request(method, url, headers=headers, **send_kwargs)
        return await self._http.send(request)

    async def aclose(self):
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()


async def dexfra_fetch(
    url: str,
    signer: PaymentSigner,
    config: Optional[DexfraConfig] = None,
    method: str = "GET",
    **kwargs,
) -> httpx.Response:
    """One-shot paid request on a short-lived client."""
    async with PaymentFetcher(signer, config) as fetcher:
        response = await fetcher.request(method, url, **kwargs)
        await response.aread()
        return response


async def _notify(callback: Optional[Callback], *args: Any, name: str) -> None:
    if callback is None:
        return
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.warning("Payment callback %s raised; continuing", name, exc_info=True)


async def _notify_error(callback: Optional[Callback], error: DexfraError) -> None:
    if callback is None:
        return
    try:
        result = callback(error)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.warning("Payment callback on_payment_error raised", exc_info=True)


def _display_url(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.netloc}{parsed.path}" or url
