"""
Wallet balance lookups over EVM JSON-RPC.

Native coin balances use ``eth_getBalance``; ERC-20 balances use
``eth_call`` against ``balanceOf(address)``. A token with no contract or
no holding reads as zero, not as an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

import httpx

from .constants import DEFAULT_RPC_URLS, NATIVE_SYMBOLS
from .errors import DexfraError, NetworkNotSupportedError
from .money import wei_to_eth

logger = logging.getLogger(__name__)

BALANCE_OF_SELECTOR = "0x70a08231"


@dataclass
class BalanceResult:
    balance: Decimal | int
    token: str
    formatted: str

    def to_dict(self) -> dict:
        balance = self.balance
        return {
            "balance": float(balance) if isinstance(balance, Decimal) else balance,
            "token": self.token,
            "formatted": self.formatted,
        }


class BalanceReader:
    """Reads native and ERC-20 balances for an address."""

    def __init__(
        self,
        network: str,
        rpc_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 10.0,
    ):
        resolved = rpc_url or DEFAULT_RPC_URLS.get(network.lower())
        if resolved is None:
            raise NetworkNotSupportedError(network)
        self.network = network
        self.rpc_url = resolved
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._request_id = 0

    async def get_balance(self, address: str, token: Optional[str] = None) -> BalanceResult:
        """Native balance when ``token`` is None, else the ERC-20 balance in base units."""
        try:
            if not token:
                wei = await self.get_native_balance(address)
                symbol = NATIVE_SYMBOLS.get(self.network.lower(), "ETH")
                eth = wei_to_eth(wei)
                return BalanceResult(balance=eth, token=symbol, formatted=f"{eth:.9f} {symbol}")

            amount = await self.get_token_balance(address, token)
            return BalanceResult(balance=amount, token=token, formatted=f"{amount} tokens")
        except Exception as e:
            cause = e.to_dict() if isinstance(e, DexfraError) else repr(e)
            raise DexfraError(
                f"Failed to get balance: {e}",
                "BALANCE_FETCH_FAILED",
                {"address": address, "token": token, "network": self.network, "error": cause},
            ) from e

    async def get_native_balance(self, address: str) -> int:
        result = await self._rpc("eth_getBalance", [address, "latest"])
        return int(result, 16)

    async def get_token_balance(self, address: str, token: str) -> int:
        data = BALANCE_OF_SELECTOR + address.lower().removeprefix("0x").rjust(64, "0")
        result = await self._rpc("eth_call", [{"to": token, "data": data}, "latest"])
        if result in (None, "", "0x"):
            logger.debug("No token account for %s on %s; balance is 0", address, token)
            return 0
        return int(result, 16)

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        self._request_id += 1
        response = await self._http.post(
            self.rpc_url,
            json={"jsonrpc": "2.0", "method": method, "params": params, "id": self._request_id},
        )
        response.raise_for_status()

        body = response.json()
        if "error" in body:
            raise DexfraError(f"RPC error: {body['error']}", "RPC_ERROR", body["error"])
        if "result" not in body:
            raise DexfraError("Invalid RPC response: missing 'result' field", "RPC_ERROR", body)
        return body["result"]

    async def aclose(self):
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()
