"""Tests for the marketplace discovery client."""

import httpx
import pytest

from dexfra.discovery import DiscoveryFilters, MarketplaceAPI, MarketplaceClient
from dexfra.errors import APINotFoundError, DexfraError

MARKETPLACE = "https://market.test"

LISTINGS = [
    {"id": "a1", "name": "Token Price", "category": "Token Data", "categoryId": "cat-token",
     "tags": ["price", "real-time"], "price": 0.001},
    {"id": "a2", "name": "Wallet Portfolio", "category": "Wallet Data", "categoryId": "cat-wallet",
     "tags": ["portfolio"], "price": 0.003},
    {"id": "a3", "name": "Whale Alerts", "category": "Smart Money", "categoryId": "cat-smart",
     "tags": ["whales", "real-time"], "price": 0.01},
    {"id": "a4", "name": "Meme Launch", "category": "Meme Factory", "categoryId": "cat-meme",
     "tags": ["meme"], "price": 0.05},
]


class FakeMarketplace:
    """Ignores every query parameter and returns all listings."""

    def __init__(self, listings=LISTINGS, status=200):
        self.listings = listings
        self.status = status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status != 200:
            return httpx.Response(self.status)
        path = request.url.path
        if path == "/api/v1/apis":
            return httpx.Response(200, json={"apis": self.listings, "total": len(self.listings)})
        api_id = path.rsplit("/", 1)[-1]
        for item in self.listings:
            if item["id"] == api_id:
                return httpx.Response(200, json=item)
        return httpx.Response(404, json={"error": "not found"})


def make_client(server):
    http = httpx.AsyncClient(transport=httpx.MockTransport(server))
    return MarketplaceClient(MARKETPLACE, client=http)


class TestDiscoveryFilters:
    def test_to_query(self):
        filters = DiscoveryFilters(
            category="Token Data", search="price", tags=["a", "b"], min_price=0.001, max_price=0.01, limit=5
        )
        assert filters.to_query() == {
            "category": "Token Data",
            "q": "price",
            "tags": "a,b",
            "minPrice": "0.001",
            "maxPrice": "0.01",
            "limit": "5",
        }

    def test_empty_query(self):
        assert DiscoveryFilters().to_query() == {}

    def test_zero_min_price_is_sent(self):
        assert DiscoveryFilters(min_price=0).to_query() == {"minPrice": "0"}


class TestSearchAPIs:
    @pytest.mark.asyncio
    async def test_single_request_with_query(self):
        server = FakeMarketplace()
        client = make_client(server)

        await client.discover_apis(DiscoveryFilters(search="whale", limit=3))

        assert len(server.requests) == 1
        request = server.requests[0]
        assert request.url.path == "/api/v1/apis"
        assert request.url.params["q"] == "whale"
        assert request.url.params["limit"] == "3"

    @pytest.mark.asyncio
    async def test_no_filters_returns_everything(self):
        apis = await make_client(FakeMarketplace()).discover_apis()
        assert [a.id for a in apis] == ["a1", "a2", "a3", "a4"]

    @pytest.mark.asyncio
    async def test_price_bounds_are_inclusive(self):
        client = make_client(FakeMarketplace())
        apis = await client.discover_apis(DiscoveryFilters(min_price=0.003, max_price=0.01))
        assert [a.id for a in apis] == ["a2", "a3"]

    @pytest.mark.asyncio
    async def test_max_price_filters_client_side(self):
        apis = await make_client(FakeMarketplace()).discover_apis(DiscoveryFilters(max_price=0.01))
        assert all(a.price <= 0.01 for a in apis)
        assert "a4" not in [a.id for a in apis]

    @pytest.mark.asyncio
    async def test_category_is_case_insensitive(self):
        apis = await make_client(FakeMarketplace()).discover_apis(DiscoveryFilters(category="token data"))
        assert [a.id for a in apis] == ["a1"]

    @pytest.mark.asyncio
    async def test_get_apis_by_category(self):
        apis = await make_client(FakeMarketplace()).get_apis_by_category("Smart Money")
        assert [a.category_id for a in apis] == ["cat-smart"]

    @pytest.mark.asyncio
    async def test_tags_require_all(self):
        client = make_client(FakeMarketplace())
        assert [a.id for a in await client.get_apis_by_tags(["real-time"])] == ["a1", "a3"]
        assert [a.id for a in await client.get_apis_by_tags(["real-time", "whales"])] == ["a3"]

    @pytest.mark.asyncio
    async def test_limit_truncates(self):
        apis = await make_client(FakeMarketplace()).discover_apis(DiscoveryFilters(limit=2))
        assert len(apis) == 2

    @pytest.mark.asyncio
    async def test_page_envelope(self):
        page = await make_client(FakeMarketplace()).search_apis(DiscoveryFilters(max_price=0.003))
        assert [a.id for a in page.apis] == ["a1", "a2"]
        assert page.total == 2
        assert page.offset == 0
        assert page.to_dict()["apis"][0]["categoryId"] == "cat-token"

    @pytest.mark.asyncio
    async def test_total_from_server_when_nothing_filtered(self):
        page = await make_client(FakeMarketplace()).search_apis(DiscoveryFilters(limit=2))
        assert len(page.apis) == 2
        assert page.total == 4

    @pytest.mark.asyncio
    async def test_null_fields_in_listing(self):
        listings = [
            {"id": "n1", "name": None, "category": None, "categoryId": None, "tags": [None, "price"], "price": None},
            LISTINGS[0],
        ]
        client = make_client(FakeMarketplace(listings))

        apis = await client.discover_apis(DiscoveryFilters(category="Token Data", tags=["price"]))

        assert [a.id for a in apis] == ["a1"]
        everything = await client.discover_apis()
        assert everything[0].category == ""
        assert everything[0].tags == ["price"]

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        client = make_client(FakeMarketplace(status=503))
        with pytest.raises(DexfraError) as exc:
            await client.discover_apis()
        assert exc.value.code == "API_SEARCH_FAILED"
        assert exc.value.details["status"] == 503

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        with pytest.raises(DexfraError) as exc:
            await make_client(handler).discover_apis()
        assert exc.value.code == "API_SEARCH_ERROR"


class TestAPIDetails:
    @pytest.mark.asyncio
    async def test_get_api_details(self):
        api = await make_client(FakeMarketplace()).get_api_details("a2")
        assert isinstance(api, MarketplaceAPI)
        assert api.name == "Wallet Portfolio"
        assert api.tags == ["portfolio"]

    @pytest.mark.asyncio
    async def test_not_found(self):
        with pytest.raises(APINotFoundError) as exc:
            await make_client(FakeMarketplace()).get_api_details("missing")
        assert exc.value.code == "API_NOT_FOUND"
        assert exc.value.api_id == "missing"

    @pytest.mark.asyncio
    async def test_server_error(self):
        with pytest.raises(DexfraError) as exc:
            await make_client(FakeMarketplace(status=500)).get_api_details("a1")
        assert exc.value.code == "API_GET_FAILED"

    @pytest.mark.asyncio
    async def test_get_multiple_skips_missing(self):
        apis = await make_client(FakeMarketplace()).get_multiple_apis(["a3", "missing", "a1"])
        assert [a.id for a in apis] == ["a3", "a1"]


class TestMarketplaceAPI:
    def test_round_trip_drops_nones(self):
        api = MarketplaceAPI.from_dict(LISTINGS[0])
        d = api.to_dict()
        assert d["categoryId"] == "cat-token"
        assert "inputSchema" not in d
        assert MarketplaceAPI.from_dict(d) == api


class TestCombinedFilters:
    @pytest.mark.asyncio
    async def test_category_and_max_price(self):
        listings = LISTINGS + [
            {"id": "a5", "name": "Token Premium", "category": "Token Data", "price": 0.02},
            {"id": "a6", "name": "Token Edge", "category": "Token Data", "price": 0.01},
        ]
        client = make_client(FakeMarketplace(listings))
        apis = await client.discover_apis(DiscoveryFilters(category="Token Data", max_price=0.01))
        assert [a.id for a in apis] == ["a1", "a6"]
