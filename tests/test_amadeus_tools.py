import json

import httpx
import pytest
from mcp import types
from mcp.shared.exceptions import McpError

from core.catalog import load_catalog
from core.dispatcher import Dispatcher
from utils import amadeus

TOKEN_URL = "https://test.api.amadeus.com/v1/security/oauth2/token"
OFFERS_URL = "https://test.api.amadeus.com/v2/shopping/flight-offers"
PRICING_URL = "https://test.api.amadeus.com/v1/shopping/flight-offers/pricing"
ORDERS_URL = "https://test.api.amadeus.com/v1/booking/flight-orders"

SEARCH_ARGS = {"originLocationCode": "JFK", "destinationLocationCode": "LAX", "departureDate": "2024-06-01"}


def _base(request: httpx.Request) -> str:
    return f"{request.url.scheme}://{request.url.host}{request.url.path}"


class FakeAmadeus:
    """Routes requests to canned responses and records them."""

    def __init__(self):
        self.requests = []
        self.routes = {
            TOKEN_URL: httpx.Response(200, json={"access_token": "tok-123", "expires_in": 1799}),
            OFFERS_URL: httpx.Response(200, json={"data": [{"id": "1"}]}),
            PRICING_URL: httpx.Response(200, json={"data": {"type": "flight-offers-pricing"}}),
            ORDERS_URL: httpx.Response(201, json={"data": {"id": "order-1"}}),
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.routes.get(_base(request), httpx.Response(404, text="not found"))

    def last(self, url):
        return [r for r in self.requests if _base(r) == url][-1]


@pytest.fixture
def fake(monkeypatch):
    fake = FakeAmadeus()
    monkeypatch.setattr(amadeus, "new_client", lambda: httpx.AsyncClient(transport=httpx.MockTransport(fake)))
    monkeypatch.setenv("AMADEUS_CLIENT_ID", "id")
    monkeypatch.setenv("AMADEUS_CLIENT_SECRET", "secret")
    monkeypatch.delenv("AMADEUS_FOR_DEVELOPERS_S_PUBLIC_WORKSPACE_API_KEY", raising=False)
    return fake


@pytest.fixture
def dispatcher(amadeus_tools_dir):
    return Dispatcher(load_catalog(amadeus_tools_dir))


async def test_one_way_search_does_not_require_return_date(dispatcher, fake):
    result = await dispatcher.dispatch("search_flight_offers", SEARCH_ARGS)

    assert json.loads(result.content[0].text) == {"data": [{"id": "1"}]}
    request = fake.last(OFFERS_URL)
    assert request.headers["Authorization"] == "Bearer tok-123"
    assert request.url.params["adults"] == "2"
    assert request.url.params["max"] == "5"
    assert "returnDate" not in request.url.params


async def test_round_trip_search_requires_return_date(dispatcher, fake):
    with pytest.raises(McpError) as exc:
        await dispatcher.dispatch("search_round_trip_flight_offers", SEARCH_ARGS)

    assert exc.value.error.code == types.INVALID_PARAMS
    assert exc.value.error.message == "Missing required parameter: returnDate"
    assert fake.requests == []

    await dispatcher.dispatch("search_round_trip_flight_offers", {**SEARCH_ARGS, "returnDate": "2024-06-08"})
    assert fake.last(OFFERS_URL).url.params["returnDate"] == "2024-06-08"


async def test_search_reports_api_errors_as_payload(dispatcher, fake):
    fake.routes[OFFERS_URL] = httpx.Response(400, json={"errors": [{"code": 477}]})

    result = await dispatcher.dispatch("search_flight_offers", {**SEARCH_ARGS, "adults": 1})

    assert json.loads(result.content[0].text) == {
        "error": "Flight search failed",
        "status": 400,
        "details": {"errors": [{"code": 477}]},
    }


async def test_search_without_credentials_returns_error_payload(dispatcher, fake, monkeypatch):
    for var in amadeus.CLIENT_ID_VARS + amadeus.CLIENT_SECRET_VARS:
        monkeypatch.delenv(var, raising=False)

    result = await dispatcher.dispatch("search_flight_offers", SEARCH_ARGS)

    payload = json.loads(result.content[0].text)
    assert payload["error"] == "An error occurred while searching for flight offers."
    assert "Missing Amadeus credentials" in payload["details"]


async def test_request_access_token_uses_given_credentials(dispatcher, fake):
    result = await dispatcher.dispatch("request_access_token", {"client_id": "k", "client_secret": "s"})

    assert json.loads(result.content[0].text)["access_token"] == "tok-123"
    form = dict(httpx.QueryParams(fake.last(TOKEN_URL).content.decode()))
    assert form == {"client_id": "k", "client_secret": "s", "grant_type": "client_credentials"}


async def test_pricing_prefers_static_workspace_token(dispatcher, fake, monkeypatch):
    monkeypatch.setenv("AMADEUS_FOR_DEVELOPERS_S_PUBLIC_WORKSPACE_API_KEY", "static")

    await dispatcher.dispatch("get_flight_offers_pricing", {"flightOfferData": [{"id": "1"}]})

    request = fake.last(PRICING_URL)
    assert request.headers["Authorization"] == "Bearer static"
    assert request.headers["X-HTTP-Method-Override"] == "GET"
    assert json.loads(request.content) == {
        "data": {"type": "flight-offers-pricing", "flightOffers": [{"id": "1"}]}
    }
    assert all(str(r.url) != TOKEN_URL for r in fake.requests)


async def test_create_order_builds_booking_body(dispatcher, fake):
    args = {"flightOfferPriceData": [{"id": "1"}], "travelers": [{"id": "1"}], "contacts": [{"emailAddress": "a@b.c"}]}

    result = await dispatcher.dispatch("create_flight_order", args)

    assert json.loads(result.content[0].text) == {"data": {"id": "order-1"}}
    data = json.loads(fake.last(ORDERS_URL).content)["data"]
    assert data["type"] == "flight-order"
    assert data["travelers"] == [{"id": "1"}]
    assert data["ticketingAgreement"] == {"option": "DELAY_TO_CANCEL", "delay": "6D"}
    assert fake.last(ORDERS_URL).headers["Authorization"] == "Bearer tok-123"


async def test_create_order_failure_is_reported(dispatcher, fake):
    fake.routes[ORDERS_URL] = httpx.Response(500, text="<html>gateway error</html>")
    args = {"flightOfferPriceData": [], "travelers": [], "contacts": []}

    result = await dispatcher.dispatch("create_flight_order", args)

    payload = json.loads(result.content[0].text)
    assert payload["error"] == "An error occurred while creating the flight order."
    assert payload["status"] == 500
    assert payload["details"] == "<html>gateway error</html>"
