"""
Dexfra marketplace discovery.

The marketplace is queried with a single filtered list call. Category, tag
and price filters are re-applied client-side so a server that ignores a
query parameter cannot widen the result set.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from .constants import MARKETPLACE_URL
from .errors import APINotFoundError, DexfraError

logger = logging.getLogger(__name__)


@dataclass
class MarketplaceAPI:
    """API listing as published by the marketplace."""

    id: str
    name: str
    description: str = ""
    endpoint: str = ""
    method: str = "GET"
    category: str = ""
    category_id: str = ""
    tags: list[str] = field(default_factory=list)
    price: float = 0.0  # USDC per call
    price_formatted: str = ""
    input_schema: Optional[dict] = None
    output_schema: Optional[dict] = None
    example_request: Optional[dict] = None
    example_response: Optional[dict] = None
    rate_limit: Optional[dict] = None
    authentication: Optional[dict] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MarketplaceAPI":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            description=data.get("description") or "",
            endpoint=data.get("endpoint") or "",
            method=data.get("method") or "GET",
            category=data.get("category") or "",
            category_id=data.get("categoryId") or "",
            tags=[t for t in data.get("tags") or [] if isinstance(t, str)],
            price=float(data.get("price") or 0.0),
            price_formatted=data.get("priceFormatted") or "",
            input_schema=data.get("inputSchema"),
            output_schema=data.get("outputSchema"),
            example_request=data.get("exampleRequest"),
            example_response=data.get("exampleResponse"),
            rate_limit=data.get("rateLimit"),
            authentication=data.get("authentication"),
        )

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "endpoint": self.endpoint,
            "method": self.method,
            "category": self.category,
            "categoryId": self.category_id,
            "tags": self.tags,
            "price": self.price,
            "priceFormatted": self.price_formatted,
            "inputSchema": self.input_schema,
            "outputSchema": self.output_schema,
            "exampleRequest": self.example_request,
            "exampleResponse": self.example_response,
            "rateLimit": self.rate_limit,
            "authentication": self.authentication,
        }
        return {k: v for k, v in d.items() if v is not None}


@dataclass
class DiscoveryFilters:
    category: Optional[str] = None
    category_id: Optional[str] = None
    search: Optional[str] = None
    tags: Optional[list[str]] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    def to_query(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.category:
            params["category"] = self.category
        if self.category_id:
            params["categoryId"] = self.category_id
        if self.search:
            params["q"] = self.search
        if self.tags:
            params["tags"] = ",".join(self.tags)
        if self.min_price is not None:
            params["minPrice"] = str(self.min_price)
        if self.max_price is not None:
            params["maxPrice"] = str(self.max_price)
        if self.limit:
            params["limit"] = str(self.limit)
        if self.offset:
            params["offset"] = str(self.offset)
        return params

    def matches(self, api: MarketplaceAPI) -> bool:
        if self.category and api.category.lower() != self.category.lower():
            return False
        if self.category_id and api.category_id != self.category_id:
            return False
        if self.tags:
            api_tags = {t.lower() for t in api.tags}
            if not all(t.lower() in api_tags for t in self.tags):
                return False
        if self.min_price is not None and api.price < self.min_price:
            return False
        if self.max_price is not None and api.price > self.max_price:
            return False
        return True


@dataclass
class DiscoveryPage:
    apis: list[MarketplaceAPI]
    total: int
    limit: int
    offset: int

    def to_dict(self) -> dict:
        return {
            "apis": [a.to_dict() for a in self.apis],
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
        }


class MarketplaceClient:
    """Read-only client for the Dexfra API marketplace."""

    def __init__(
        self,
        marketplace_url: str = MARKETPLACE_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 30.0,
    ):
        self.marketplace_url = marketplace_url.rstrip("/")
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def search_apis(self, filters: Optional[DiscoveryFilters] = None) -> DiscoveryPage:
        """One list query; returns the filtered page envelope."""
        filters = filters or DiscoveryFilters()
        url = f"{self.marketplace_url}/api/v1/apis"
        try:
            response = await self._http.get(url, params=filters.to_query())
        except httpx.HTTPError as e:
            raise DexfraError(f"API search failed: {e}", "API_SEARCH_ERROR", {"error": repr(e)}) from e

        if not response.is_success:
            raise DexfraError(
                f"Failed to search APIs: {response.reason_phrase}",
                "API_SEARCH_FAILED",
                {"status": response.status_code, "status_text": response.reason_phrase},
            )

        try:
            data = response.json()
            raw_apis = data.get("apis") or []
            apis = [MarketplaceAPI.from_dict(item) for item in raw_apis]
        except (ValueError, AttributeError, TypeError) as e:
            raise DexfraError(f"API search failed: malformed response: {e}", "API_SEARCH_ERROR") from e

        matched = [api for api in apis if filters.matches(api)]
        total = int(data.get("total", len(matched)))
        if len(matched) != len(apis):
            logger.debug("Dropped %d listings outside discovery filters", len(apis) - len(matched))
            total = len(matched)
        if filters.limit:
            matched = matched[: filters.limit]

        return DiscoveryPage(
            apis=matched,
            total=total,
            limit=int(data.get("limit", filters.limit or len(matched))),
            offset=int(data.get("offset", filters.offset or 0)),
        )

    async def discover_apis(self, filters: Optional[DiscoveryFilters] = None) -> list[MarketplaceAPI]:
        page = await self.search_apis(filters)
        return page.apis

    async def get_api_details(self, api_id: str) -> MarketplaceAPI:
        url = f"{self.marketplace_url}/api/v1/apis/{api_id}"
        try:
            response = await self._http.get(url)
        except httpx.HTTPError as e:
            raise DexfraError(
                f"Failed to fetch API: {e}", "API_FETCH_ERROR", {"api_id": api_id, "error": repr(e)}
            ) from e

        if response.status_code == 404:
            raise APINotFoundError(api_id)
        if not response.is_success:
            raise DexfraError(
                f"Failed to get API: {response.reason_phrase}",
                "API_GET_FAILED",
                {"api_id": api_id, "status": response.status_code, "status_text": response.reason_phrase},
            )
        try:
            return MarketplaceAPI.from_dict(response.json())
        except (ValueError, AttributeError, TypeError) as e:
            raise DexfraError(f"Failed to fetch API: malformed response: {e}", "API_FETCH_ERROR") from e

    async def get_apis_by_category(self, category: str) -> list[MarketplaceAPI]:
        return await self.discover_apis(DiscoveryFilters(category=category))

    async def get_apis_by_tags(self, tags: list[str]) -> list[MarketplaceAPI]:
        return await self.discover_apis(DiscoveryFilters(tags=tags))

    async def get_multiple_apis(self, api_ids: list[str]) -> list[MarketplaceAPI]:
        """Fetch several listings concurrently; failed lookups are dropped."""
        results = await asyncio.gather(
            *(self.get_api_details(api_id) for api_id in api_ids),
            return_exceptions=True,
        )
        found = []
        for api_id, result in zip(api_ids, results):
            if isinstance(result, DexfraError):
                logger.info("Skipping API %s: %s", api_id, result.code)
                continue
            if isinstance(result, BaseException):
                raise result
            found.append(result)
        return found

    async def aclose(self):
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()
