"""
Dexfra — pay-per-call API access for AI agents.

Automatic x402 payments with a hard per-call ceiling:
402 challenge → ceiling check → signed proof → one paid retry.
"""

__version__ = "0.1.0"

from .errors import (
    APINotFoundError,
    ActionConflictError,
    ActionValidationError,
    CeilingExceededError,
    DexfraError,
    InvalidChallengeError,
    NetworkNotSupportedError,
    PaymentConstructionError,
    PaymentProcessingError,
    PaymentRejectedError,
    SignerCapabilityMissingError,
)
from .config import DexfraConfig, PaymentCallbacks
from .protocol import PaymentChallenge, PaymentOffer, SettlementRecord, parse_challenge
from .signers import DelegatedSigner, LocalKeySigner, PaymentSigner, SignedPayload
from .guard import enforce_ceiling, select_offer
from .proof import build_payment_proof, decode_payment_proof, verify_payment_proof
from .settlement import encode_settlement, parse_settlement
from .fetch import PaymentFetcher, dexfra_fetch
from .discovery import DiscoveryFilters, DiscoveryPage, MarketplaceAPI, MarketplaceClient
from .balance import BalanceReader, BalanceResult
from .actions import Action, ActionExample, BUILTIN_ACTIONS
from .client import DexfraAgentKit, Plugin, compose_actions
from .tools import Tool, create_tool, create_tools, get_tool_stats

__all__ = [
    "DexfraError", "InvalidChallengeError", "CeilingExceededError", "PaymentConstructionError",
    "PaymentRejectedError", "PaymentProcessingError", "SignerCapabilityMissingError",
    "APINotFoundError", "NetworkNotSupportedError", "ActionConflictError", "ActionValidationError",
    "DexfraConfig", "PaymentCallbacks",
    "PaymentChallenge", "PaymentOffer", "SettlementRecord", "parse_challenge",
    "PaymentSigner", "LocalKeySigner", "DelegatedSigner", "SignedPayload",
    "select_offer", "enforce_ceiling",
    "build_payment_proof", "decode_payment_proof", "verify_payment_proof",
    "parse_settlement", "encode_settlement",
    "PaymentFetcher", "dexfra_fetch",
    "MarketplaceClient", "MarketplaceAPI", "DiscoveryFilters", "DiscoveryPage",
    "BalanceReader", "BalanceResult",
    "Action", "ActionExample", "BUILTIN_ACTIONS",
    "DexfraAgentKit", "Plugin", "compose_actions",
    "Tool", "create_tools", "create_tool", "get_tool_stats",
]
