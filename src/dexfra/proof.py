"""
Payment proof construction.

The proof is a self-describing record signed by the payer and encoded as
base64 JSON for the ``x-payment`` header. It asserts intent to pay; the
facilitator verifies and relays it, this module does not touch the chain.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from typing import Any

from .errors import PaymentConstructionError
from .protocol import PaymentOffer
from .signers import PaymentSigner, recover_signer

logger = logging.getLogger(__name__)

_SIGNATURE_FIELDS = ("payer", "signature")


def payment_record(x402_version: int, offer: PaymentOffer) -> dict[str, Any]:
    return {
        "version": x402_version,
        "network": offer.network,
        "recipient": offer.recipient,
        "amount": offer.max_amount_required,
        "token": offer.token,
        "scheme": offer.scheme,
        "timestamp": int(time.time() * 1000),
    }


async def build_payment_proof(signer: PaymentSigner, x402_version: int, offer: PaymentOffer) -> str:
    """Sign the payment record for ``offer`` and return the header value."""
    try:
        signed = await signer.sign(payment_record(x402_version, offer))
        encoded = json.dumps(signed.to_dict(), separators=(",", ":"))
        header = base64.b64encode(encoded.encode()).decode("ascii")
    except Exception as e:
        raise PaymentConstructionError(
            f"Failed to create payment header: {type(e).__name__}: {e}", cause=e
        ) from e

    logger.debug("Built payment proof for %s on %s (payer %s)", offer.max_amount_required, offer.network, signed.signer)
    return header


def decode_payment_proof(header: str) -> dict[str, Any]:
    """Decode an x-payment header value. Raises ValueError if malformed."""
    try:
        data = json.loads(base64.b64decode(header, validate=True))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError(f"Malformed payment proof: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("Malformed payment proof: not an object")
    return data


def verify_payment_proof(header: str) -> bool:
    """True if the proof's signature was produced by its declared payer."""
    try:
        proof = decode_payment_proof(header)
        record = {k: v for k, v in proof.items() if k not in _SIGNATURE_FIELDS}
        recovered = recover_signer(record, proof["signature"])
    except Exception as e:
        logger.warning("Payment proof verification failed: %s", e)
        return False
    return recovered.lower() == str(proof.get("payer", "")).lower()
