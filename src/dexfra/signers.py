"""
Payment signers.

The proof builder only ever sees a ``PaymentSigner``: an address and a
coroutine that signs a payment record. Two implementations exist:

    LocalKeySigner   holds an eth-account key in process and signs inline.
    DelegatedSigner  forwards to an external signing backend (wallet service,
                     browser wallet bridge, remote agent) and awaits it.

Signers are not locked. If a backend cannot sign concurrently, the caller
serializes access.
"""

from __future__ import annotations

import inspect
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

from .errors import SignerCapabilityMissingError

logger = logging.getLogger(__name__)


def canonical_message(payload: dict[str, Any]) -> bytes:
    """Deterministic byte encoding of a payment record for signing."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()


def recover_signer(payload: dict[str, Any], signature: str) -> str:
    """Recover the address that produced ``signature`` over ``payload``."""
    return Account.recover_message(encode_defunct(canonical_message(payload)), signature=signature)


@dataclass(frozen=True)
class SignedPayload:
    payload: dict[str, Any]
    signer: str
    signature: str  # 0x-prefixed hex

    def to_dict(self) -> dict:
        return {**self.payload, "payer": self.signer, "signature": self.signature}


class PaymentSigner(ABC):
    """Capability the proof builder depends on."""

    @property
    @abstractmethod
    def address(self) -> str:
        ...

    @abstractmethod
    async def sign(self, payload: dict[str, Any]) -> SignedPayload:
        ...

    async def sign_many(self, payloads: Iterable[dict[str, Any]]) -> list[SignedPayload]:
        return [await self.sign(p) for p in payloads]


class LocalKeySigner(PaymentSigner):
    """Signs with an in-process eth-account key."""

    def __init__(self, account: LocalAccount):
        self._account = account

    @classmethod
    def from_private_key(cls, private_key: str) -> "LocalKeySigner":
        return cls(Account.from_key(private_key))

    @classmethod
    def generate(cls) -> "LocalKeySigner":
        return cls(Account.create())

    @property
    def address(self) -> str:
        return self._account.address

    async def sign(self, payload: dict[str, Any]) -> SignedPayload:
        signed = self._account.sign_message(encode_defunct(canonical_message(payload)))
        return SignedPayload(
            payload=dict(payload),
            signer=self._account.address,
            signature=_to_hex(signed.signature),
        )

    def __repr__(self) -> str:
        return f"LocalKeySigner(address={self.address})"


class DelegatedSigner(PaymentSigner):
    """
    Forwards signing to an external backend.

    The backend must expose ``address``. Optional operations:

        sign_message(message: bytes) -> bytes | str
        sign_messages(messages: list[bytes]) -> list[bytes | str]

    Either may be sync or async. A missing operation raises
    SignerCapabilityMissingError instead of silently doing nothing.
    """

    def __init__(self, backend: Any):
        address = getattr(backend, "address", None)
        if not isinstance(address, str) or not address:
            raise SignerCapabilityMissingError("address")
        self._backend = backend

    @property
    def address(self) -> str:
        return self._backend.address

    async def sign(self, payload: dict[str, Any]) -> SignedPayload:
        sign_message = self._require("sign_message")
        signature = await _maybe_await(sign_message(canonical_message(payload)))
        return SignedPayload(payload=dict(payload), signer=self.address, signature=_to_hex(signature))

    async def sign_many(self, payloads: Iterable[dict[str, Any]]) -> list[SignedPayload]:
        sign_messages = self._require("sign_messages")
        payloads = [dict(p) for p in payloads]
        signatures = await _maybe_await(sign_messages([canonical_message(p) for p in payloads]))
        if len(signatures) != len(payloads):
            raise ValueError(
                f"Backend returned {len(signatures)} signatures for {len(payloads)} payloads"
            )
        return [
            SignedPayload(payload=p, signer=self.address, signature=_to_hex(sig))
            for p, sig in zip(payloads, signatures)
        ]

    def _require(self, operation: str):
        method = getattr(self._backend, operation, None)
        if not callable(method):
            logger.warning("Delegated signer backend %r lacks %s", type(self._backend).__name__, operation)
            raise SignerCapabilityMissingError(operation)
        return method

    def __repr__(self) -> str:
        return f"DelegatedSigner(address={self.address}, backend={type(self._backend).__name__})"


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _to_hex(signature: Any) -> str:
    if isinstance(signature, (bytes, bytearray)):
        return "0x" + bytes(signature).hex()
    if isinstance(signature, str):
        return signature if signature.startswith("0x") else "0x" + signature
    raise TypeError(f"Unsupported signature type: {type(signature).__name__}")
