"""
DexfraAgentKit — the top-level client.

Built-in capabilities (paid API calls, discovery, balances) live on the kit
itself. Extensions arrive as plugins through ``use()``, which composes a NEW
kit; the original kit is never mutated, and any name collision is rejected
at composition time. Composed kits share the signer and HTTP transport of
the kit they were built from; only the root kit closes that transport.

Usage:
    signer = LocalKeySigner.from_private_key(key)
    async with DexfraAgentKit(signer, DexfraConfig(max_amount=0.05)) as kit:
        response = await kit.call_api("https://api.dexfra.fun/v1/token/price")
        apis = await kit.discover_apis(DiscoveryFilters(category="Token Data"))
        extended = kit.use(my_plugin)
"""

from __future__ import annotations

import copy
import functools
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

import httpx

from .actions import BUILTIN_ACTIONS, Action
from .balance import BalanceReader, BalanceResult
from .config import DexfraConfig
from .discovery import DiscoveryFilters, DiscoveryPage, MarketplaceAPI, MarketplaceClient
from .errors import ActionConflictError
from .fetch import PaymentFetcher
from .signers import PaymentSigner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Plugin:
    """
    Optional extension.

    ``methods`` are called with the kit as their first argument; the kit
    exposes them already bound through ``kit.methods``.
    """

    name: str
    methods: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    actions: tuple[Action, ...] = ()
    initialize: Optional[Callable[["DexfraAgentKit"], None]] = None


def compose_actions(existing: tuple[Action, ...], added: tuple[Action, ...], plugin: Optional[str] = None) -> tuple[Action, ...]:
    """Union of two action sets. Raises ActionConflictError on a duplicate name."""
    names = {a.name for a in existing}
    for action in added:
        if action.name in names:
            raise ActionConflictError("action", action.name, plugin)
        names.add(action.name)
    return existing + tuple(added)


class DexfraAgentKit:
    def __init__(
        self,
        signer: PaymentSigner,
        config: Optional[DexfraConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.signer = signer
        self.config = config or DexfraConfig()
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.config.timeout_seconds)

        self.fetcher = PaymentFetcher(signer, self.config, client=self._http)
        self.marketplace = MarketplaceClient(self.config.marketplace_url, client=self._http)
        self._balance_reader: Optional[BalanceReader] = None

        self._actions: tuple[Action, ...] = compose_actions((), BUILTIN_ACTIONS)
        self._plugins: dict[str, Plugin] = {}
        self._methods: dict[str, Callable[..., Any]] = {}

    # ── built-in capabilities ────────────────────────────────────

    @property
    def address(self) -> str:
        return self.signer.address

    @property
    def network(self) -> str:
        return self.config.network

    async def call_api(
        self,
        url: str,
        method: str = "GET",
        params: Optional[dict[str, str]] = None,
        body: Any = None,
    ) -> httpx.Response:
        """Call an API, paying any x402 challenge within the configured ceiling."""
        if method.upper() == "POST":
            return await self.fetcher.post(url, body)
        return await self.fetcher.get(url, params=params)

    async def discover_apis(self, filters: Optional[DiscoveryFilters] = None) -> list[MarketplaceAPI]:
        return await self.marketplace.discover_apis(filters)

    async def search_apis(self, filters: Optional[DiscoveryFilters] = None) -> DiscoveryPage:
        return await self.marketplace.search_apis(filters)

    async def get_api_details(self, api_id: str) -> MarketplaceAPI:
        return await self.marketplace.get_api_details(api_id)

    async def get_balance(self, token: Optional[str] = None) -> BalanceResult:
        if self._balance_reader is None:
            self._balance_reader = BalanceReader(
                self.config.network, self.config.rpc_url, client=self._http
            )
        return await self._balance_reader.get_balance(self.address, token)

    # ── composition ──────────────────────────────────────────────

    @property
    def actions(self) -> tuple[Action, ...]:
        return self._actions

    @property
    def methods(self) -> Mapping[str, Callable[..., Any]]:
        return MappingProxyType(self._methods)

    def use(self, plugin: Plugin) -> "DexfraAgentKit":
        """Return a new kit extended with ``plugin``."""
        if plugin.name in self._plugins:
            raise ActionConflictError("plugin", plugin.name)
        for method_name in plugin.methods:
            if method_name in self._methods or hasattr(DexfraAgentKit, method_name):
                raise ActionConflictError("method", method_name, plugin.name)
        actions = compose_actions(self._actions, tuple(plugin.actions), plugin.name)

        kit = copy.copy(self)
        # Only the root kit closes the shared HTTP client
        kit._owns_client = False
        kit._actions = actions
        kit._plugins = {**self._plugins, plugin.name: plugin}
        # Earlier plugin methods are rebound so they see the new kit
        kit._methods = {name: functools.partial(bound.func, kit) for name, bound in self._methods.items()}
        for method_name, method in plugin.methods.items():
            kit._methods[method_name] = functools.partial(method, kit)

        if plugin.initialize is not None:
            plugin.initialize(kit)
        logger.info("Plugin %s composed (%d actions, %d methods)", plugin.name, len(plugin.actions), len(plugin.methods))
        return kit

    def get_plugin(self, name: str) -> Optional[Plugin]:
        return self._plugins.get(name)

    def has_plugin(self, name: str) -> bool:
        return name in self._plugins

    @property
    def plugin_names(self) -> list[str]:
        return list(self._plugins)

    # ── lifecycle ────────────────────────────────────────────────

    async def aclose(self):
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()
