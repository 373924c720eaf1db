"""
Dexfra error types.

Every error carries a stable ``code`` and optional structured ``details``
so callers (and AI agents reading tool output) can branch on the failure
mode instead of parsing messages.
"""

from __future__ import annotations

from typing import Any, Optional


class DexfraError(Exception):
    """Base error for all Dexfra operations."""

    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        self.code = code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": str(self), "details": self.details}


# Payment protocol errors
class InvalidChallengeError(DexfraError):
    """402 response body is not a usable payment challenge."""
    def __init__(self, message: str, body: Optional[Any] = None):
        super().__init__(message, "INVALID_402_RESPONSE", body)


class CeilingExceededError(DexfraError):
    """Selected offer asks for more than the configured ceiling."""
    def __init__(self, required: str, max: str):
        self.required = required
        self.max = max
        super().__init__(
            f"Payment amount {required} exceeds max amount {max}",
            "MAX_AMOUNT_EXCEEDED",
            {"required": required, "max": max},
        )


class PaymentConstructionError(DexfraError):
    """Payment proof could not be assembled or signed."""
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, "PAYMENT_CREATION_FAILED", {"cause": repr(cause)} if cause else None)


class PaymentRejectedError(DexfraError):
    """Server answered the paid retry with another 402."""
    def __init__(self, amount: str, offers: Optional[list] = None):
        self.amount = amount
        self.offers = offers or []
        super().__init__(
            "Payment was not accepted",
            "PAYMENT_REJECTED",
            {"amount": amount, "offers": [o.to_dict() for o in self.offers]},
        )


class PaymentProcessingError(DexfraError):
    """Unexpected failure while handling a 402 challenge."""
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, "PAYMENT_PROCESSING_FAILED", {"cause": repr(cause)} if cause else None)


# Signer errors
class SignerCapabilityMissingError(DexfraError):
    """Delegated signer backend does not implement a requested operation."""
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Signer backend does not support {operation}",
            "SIGNER_CAPABILITY_MISSING",
            {"operation": operation},
        )


# Collaborator errors
class APINotFoundError(DexfraError):
    """Marketplace has no API with this ID."""
    def __init__(self, api_id: str):
        self.api_id = api_id
        super().__init__(f"API not found: {api_id}", "API_NOT_FOUND", {"api_id": api_id})


class NetworkNotSupportedError(DexfraError):
    """Network is unknown to this component."""
    def __init__(self, network: str):
        self.network = network
        super().__init__(f"Network not supported: {network}", "NETWORK_NOT_SUPPORTED", {"network": network})


# Action registry errors
class ActionConflictError(DexfraError):
    """Plugin, method or action name is already registered."""
    def __init__(self, kind: str, name: str, plugin: Optional[str] = None):
        self.kind = kind
        self.name = name
        suffix = f" (plugin {plugin})" if plugin else ""
        super().__init__(
            f"{kind.capitalize()} {name} already exists{suffix}",
            "ACTION_CONFLICT",
            {"kind": kind, "name": name, "plugin": plugin},
        )


class ActionValidationError(DexfraError):
    """Action parameters failed schema validation."""
    def __init__(self, action: str, errors: list):
        self.action = action
        self.errors = errors
        super().__init__(
            f"Invalid parameters for {action}: {len(errors)} error(s)",
            "INVALID_ACTION_PARAMS",
            {"action": action, "errors": errors},
        )
