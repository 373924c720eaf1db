"""
Agent actions.

An action is a uniform descriptor an AI framework can expose as a tool:
name, description, alternative phrasings (similes), a pydantic parameter
model, worked examples, and an async handler. ``Action.run`` validates raw
parameters into the model before the handler is called, so handlers only
ever receive typed, validated input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .constants import API_BASE_URL
from .discovery import DiscoveryFilters
from .errors import ActionValidationError

if TYPE_CHECKING:
    from .client import DexfraAgentKit


Handler = Callable[["DexfraAgentKit", Any], Awaitable[Any]]


@dataclass(frozen=True)
class ActionExample:
    input: dict[str, Any]
    output: dict[str, Any]
    explanation: str


@dataclass(frozen=True)
class Action:
    name: str
    description: str
    schema: type[BaseModel]
    handler: Handler
    similes: tuple[str, ...] = ()
    examples: tuple[ActionExample, ...] = field(default=())

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.schema.model_json_schema(by_alias=True)

    def validate(self, params: Optional[dict[str, Any]]) -> BaseModel:
        try:
            return self.schema.model_validate(params or {})
        except ValidationError as e:
            errors = [
                {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in e.errors()
            ]
            raise ActionValidationError(self.name, errors) from e

    async def run(self, kit: "DexfraAgentKit", params: Optional[dict[str, Any]] = None) -> Any:
        return await self.handler(kit, self.validate(params))


class _Params(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


# ── call_dexfra_api ───────────────────────────────────────────────

class CallAPIParams(_Params):
    api_id: str = Field(
        alias="apiId",
        min_length=1,
        description=(
            'Dexfra API ID (e.g., "6911956bea5afb9fc66607e4") or full URL '
            '(e.g., "https://api.dexfra.fun/v1/token/price")'
        ),
    )
    params: Optional[dict[str, Any]] = Field(
        default=None, description="Query parameters to pass to the API as key-value pairs"
    )
    method: Literal["GET", "POST"] = Field(default="GET", description="HTTP method to use for the request")


def resolve_api_url(api_id: str, api_base_url: str = API_BASE_URL) -> str:
    if api_id.startswith(("http://", "https://")):
        return api_id
    return f"{api_base_url.rstrip('/')}/api/{api_id}"


async def _call_api(kit: "DexfraAgentKit", params: CallAPIParams) -> Any:
    url = resolve_api_url(params.api_id, kit.config.api_base_url)
    if params.method == "POST":
        response = await kit.call_api(url, method="POST", body=params.params)
    else:
        query = {k: str(v) for k, v in (params.params or {}).items()}
        response = await kit.call_api(url, method="GET", params=query)
    return response.json()


call_api_action = Action(
    name="call_dexfra_api",
    description=(
        "Call a Dexfra API endpoint with automatic x402 payment handling. "
        "This action allows you to access any API from the Dexfra marketplace by providing "
        "either the API ID or full URL. The payment will be handled automatically using the "
        "wallet's USDC balance."
    ),
    schema=CallAPIParams,
    handler=_call_api,
    similes=(
        "call api",
        "fetch data",
        "get data from api",
        "query dexfra",
        "access dexfra api",
        "use dexfra service",
        "request api data",
        "retrieve from api",
        "fetch from dexfra",
        "call dexfra endpoint",
    ),
    examples=(
        ActionExample(
            input={"apiId": "6911956bea5afb9fc66607e4", "params": {"address": "0x4200000000000000000000000000000000000006"}, "method": "GET"},
            output={"symbol": "WETH", "name": "Wrapped Ether", "price": 3150.25},
            explanation="Get token price data for WETH from the Dexfra Token Data API",
        ),
        ActionExample(
            input={"apiId": "https://api.dexfra.fun/v1/meme/trending", "params": {"timeframe": "24h", "limit": "10"}, "method": "GET"},
            output={"trending": [{"name": "BONK", "symbol": "BONK", "change24h": 45.2}]},
            explanation="Get trending meme coins from the Dexfra Meme Factory API",
        ),
    ),
)


# ── discover_dexfra_apis ──────────────────────────────────────────

class DiscoverAPIsParams(_Params):
    category: Optional[str] = Field(
        default=None,
        description='Filter by category name (e.g., "Token Data", "Wallet Data", "Meme Factory", "Smart Money")',
    )
    category_id: Optional[str] = Field(
        default=None, alias="categoryId", description="Filter by category ID for more precise filtering"
    )
    search: Optional[str] = Field(default=None, description="Search term to find APIs by name or description")
    tags: Optional[list[str]] = Field(default=None, description='Filter by tags (e.g., ["price", "real-time"])')
    min_price: Optional[float] = Field(default=None, alias="minPrice", ge=0, description="Minimum price in USDC (inclusive)")
    max_price: Optional[float] = Field(default=None, alias="maxPrice", ge=0, description="Maximum price in USDC (inclusive)")
    limit: Optional[int] = Field(default=None, ge=1, description="Maximum number of results to return")


async def _discover_apis(kit: "DexfraAgentKit", params: DiscoverAPIsParams) -> dict:
    apis = await kit.discover_apis(
        DiscoveryFilters(
            category=params.category,
            category_id=params.category_id,
            search=params.search,
            tags=params.tags,
            min_price=params.min_price,
            max_price=params.max_price,
            limit=params.limit,
        )
    )
    return {"success": True, "apis": [api.to_dict() for api in apis], "total": len(apis)}


discover_apis_action = Action(
    name="discover_dexfra_apis",
    description=(
        "Search and discover available APIs in the Dexfra marketplace. "
        "You can filter by category, search by keywords, filter by tags, or set price limits. "
        "This helps you find the right API for your needs before calling it."
    ),
    schema=DiscoverAPIsParams,
    handler=_discover_apis,
    similes=(
        "find api",
        "search api",
        "list apis",
        "what apis are available",
        "discover services",
        "browse apis",
        "show me apis",
        "api marketplace",
    ),
    examples=(
        ActionExample(
            input={"category": "Token Data"},
            output={"success": True, "apis": [{"id": "6911956bea5afb9fc66607e4", "name": "Token Balance & Price API", "price": 0.001}], "total": 1},
            explanation="Find all APIs in the Token Data category",
        ),
        ActionExample(
            input={"maxPrice": 0.01, "limit": 5},
            output={"success": True, "apis": [{"id": "6910ceb89931921d7a492a44", "name": "Wallet Portfolio API", "price": 0.003}], "total": 1},
            explanation="Find affordable APIs at or under $0.01 per call, at most 5 results",
        ),
    ),
)


# ── get_balance ───────────────────────────────────────────────────

class GetBalanceParams(_Params):
    token: Optional[str] = Field(
        default=None,
        description=(
            "ERC-20 token contract address. Leave empty for the native coin balance. "
            "Example: 0x036CbD53842c5426634e7929541eC2318f3dCF7e for USDC on Base Sepolia"
        ),
    )


async def _get_balance(kit: "DexfraAgentKit", params: GetBalanceParams) -> dict:
    result = await kit.get_balance(params.token)
    return {"success": True, **result.to_dict()}


get_balance_action = Action(
    name="get_balance",
    description=(
        "Get the balance of the native coin or any ERC-20 token for the connected wallet. "
        "If no token address is provided, returns the native balance."
    ),
    schema=GetBalanceParams,
    handler=_get_balance,
    similes=(
        "check balance",
        "how much eth do i have",
        "what is my balance",
        "wallet balance",
        "token balance",
        "usdc balance",
    ),
    examples=(
        ActionExample(
            input={},
            output={"success": True, "balance": 0.5, "token": "ETH", "formatted": "0.500000000 ETH"},
            explanation="Native balance for the connected wallet",
        ),
        ActionExample(
            input={"token": "0x036CbD53842c5426634e7929541eC2318f3dCF7e"},
            output={"success": True, "balance": 0, "token": "0x036CbD53842c5426634e7929541eC2318f3dCF7e", "formatted": "0 tokens"},
            explanation="Token balance; 0 when the wallet holds none",
        ),
    ),
)


BUILTIN_ACTIONS = (call_api_action, discover_apis_action, get_balance_action)
