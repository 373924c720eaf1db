"""
x402 wire types.

A 402 response body looks like::

    {"x402Version": 1,
     "accepts": [{"scheme": "exact", "network": "base-sepolia",
                  "recipient": "0x...", "maxAmountRequired": "1000",
                  "token": "0x...", "extra": {...}}],
     "message": "Payment required"}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .constants import SUPPORTED_SCHEMES
from .errors import InvalidChallengeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentOffer:
    """One acceptable way to pay, as offered by the resource server."""

    scheme: str
    network: str
    recipient: str
    max_amount_required: str  # base units, decimal string
    token: Optional[str] = None
    extra: Optional[dict[str, Any]] = None

    @property
    def required_base_units(self) -> int:
        return int(self.max_amount_required)

    @classmethod
    def from_dict(cls, data: Any) -> "PaymentOffer":
        if not isinstance(data, dict):
            raise InvalidChallengeError("Payment requirement must be an object", data)

        scheme = data.get("scheme")
        if scheme not in SUPPORTED_SCHEMES:
            raise InvalidChallengeError(f"Unsupported payment scheme: {scheme!r}", data)

        network = data.get("network")
        recipient = data.get("recipient")
        if not isinstance(network, str) or not network:
            raise InvalidChallengeError("Payment requirement missing network", data)
        if not isinstance(recipient, str) or not recipient:
            raise InvalidChallengeError("Payment requirement missing recipient", data)

        amount = data.get("maxAmountRequired")
        if isinstance(amount, int) and not isinstance(amount, bool):
            amount = str(amount)
        if not isinstance(amount, str) or not (amount.isascii() and amount.isdigit()):
            raise InvalidChallengeError(f"Invalid maxAmountRequired: {amount!r}", data)

        token = data.get("token")
        extra = data.get("extra")
        return cls(
            scheme=scheme,
            network=network,
            recipient=recipient,
            max_amount_required=amount,
            token=token if isinstance(token, str) else None,
            extra=extra if isinstance(extra, dict) else None,
        )

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "scheme": self.scheme,
            "network": self.network,
            "recipient": self.recipient,
            "maxAmountRequired": self.max_amount_required,
        }
        if self.token is not None:
            d["token"] = self.token
        if self.extra is not None:
            d["extra"] = self.extra
        return d


@dataclass(frozen=True)
class PaymentChallenge:
    x402_version: int
    accepts: tuple[PaymentOffer, ...]
    message: Optional[str] = None

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "x402Version": self.x402_version,
            "accepts": [offer.to_dict() for offer in self.accepts],
        }
        if self.message is not None:
            d["message"] = self.message
        return d


def parse_challenge(body: Any) -> PaymentChallenge:
    """Validate a decoded 402 body. Raises InvalidChallengeError."""
    if not isinstance(body, dict):
        raise InvalidChallengeError("Invalid 402 Payment Required response", body)

    version = body.get("x402Version")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise InvalidChallengeError("Invalid 402 Payment Required response: missing x402Version", body)

    accepts = body.get("accepts")
    if not isinstance(accepts, list) or not accepts:
        raise InvalidChallengeError("Invalid 402 Payment Required response: no payment requirements", body)

    offers = []
    for item in accepts:
        try:
            offers.append(PaymentOffer.from_dict(item))
        except InvalidChallengeError as e:
            logger.warning("Skipping unusable payment requirement: %s", e)
    if not offers:
        raise InvalidChallengeError("Invalid 402 Payment Required response: no usable payment requirements", body)

    message = body.get("message")
    return PaymentChallenge(
        x402_version=version,
        accepts=tuple(offers),
        message=message if isinstance(message, str) else None,
    )


@dataclass(frozen=True)
class SettlementRecord:
    """Advisory post-payment confirmation from the x-payment-response header."""

    transaction_id: str
    network: Optional[str] = None
    amount: Optional[str] = None
    timestamp: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "SettlementRecord":
        if not isinstance(data, dict):
            raise ValueError("Settlement response must be an object")
        tx_id = data.get("transactionId")
        if not isinstance(tx_id, str) or not tx_id:
            raise ValueError("Settlement response missing transactionId")
        amount = data.get("amount")
        timestamp = data.get("timestamp")
        return cls(
            transaction_id=tx_id,
            network=data.get("network"),
            amount=str(amount) if amount is not None else None,
            timestamp=int(timestamp) if timestamp is not None else None,
        )

    def to_dict(self) -> dict:
        return {
            "transactionId": self.transaction_id,
            "network": self.network,
            "amount": self.amount,
            "timestamp": self.timestamp,
        }
