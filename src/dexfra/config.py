"""
Dexfra client configuration.

Values come from keyword arguments or, via ``DexfraConfig.from_env()``,
from ``DEXFRA_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from .constants import (
    API_BASE_URL,
    DEFAULT_NETWORK,
    DEFAULT_RPC_URLS,
    FACILITATOR_URL,
    MARKETPLACE_URL,
)

# Callbacks may be plain functions or coroutine functions.
Callback = Callable[..., Union[None, Awaitable[None]]]


@dataclass
class PaymentCallbacks:
    """Hooks fired at most once each per paid call: required -> (success | error)."""
    on_payment_required: Optional[Callback] = None
    on_payment_success: Optional[Callback] = None
    on_payment_error: Optional[Callback] = None


@dataclass
class DexfraConfig:
    network: str = DEFAULT_NETWORK
    rpc_url: Optional[str] = None
    facilitator_url: str = FACILITATOR_URL
    marketplace_url: str = MARKETPLACE_URL
    api_base_url: str = API_BASE_URL
    # Per-payment ceiling in USDC. None means unrestricted spending.
    max_amount: Optional[float] = None
    timeout_seconds: float = 30.0
    default_headers: dict[str, str] = field(default_factory=dict)
    on_payment_required: Optional[Callback] = field(default=None, repr=False)
    on_payment_success: Optional[Callback] = field(default=None, repr=False)
    on_payment_error: Optional[Callback] = field(default=None, repr=False)

    def __post_init__(self):
        if self.max_amount is not None and self.max_amount < 0:
            raise ValueError(f"max_amount must be non-negative, got {self.max_amount}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")

    @classmethod
    def from_env(cls, **overrides: Any) -> "DexfraConfig":
        """Build a config from DEXFRA_* environment variables; kwargs win."""
        values: dict[str, Any] = {}
        env_map = {
            "network": "DEXFRA_NETWORK",
            "rpc_url": "DEXFRA_RPC_URL",
            "facilitator_url": "DEXFRA_FACILITATOR_URL",
            "marketplace_url": "DEXFRA_MARKETPLACE_URL",
            "api_base_url": "DEXFRA_API_BASE_URL",
        }
        for attr, var in env_map.items():
            value = os.getenv(var)
            if value:
                values[attr] = value

        max_amount = os.getenv("DEXFRA_MAX_AMOUNT")
        if max_amount:
            values["max_amount"] = float(max_amount)
        timeout = os.getenv("DEXFRA_TIMEOUT_SECONDS")
        if timeout:
            values["timeout_seconds"] = float(timeout)

        values.update(overrides)
        return cls(**values)

    @property
    def resolved_rpc_url(self) -> Optional[str]:
        return self.rpc_url or DEFAULT_RPC_URLS.get(self.network.lower())

    def fetch_callbacks(self) -> PaymentCallbacks:
        return PaymentCallbacks(
            on_payment_required=self.on_payment_required,
            on_payment_success=self.on_payment_success,
            on_payment_error=self.on_payment_error,
        )
