from typing import Any

import httpx

from utils import amadeus
from utils.get_endpoint import get_endpoint
from utils.response_utils import error_payload, read_body


async def get_flight_offers_pricing(args: dict[str, Any]) -> Any:
    """Confirm the price of flight offers returned by a search."""
    body = {
        "data": {
            "type": "flight-offers-pricing",
            "flightOffers": args["flightOfferData"],
        }
    }
    async with amadeus.new_client() as client:
        try:
            token = await amadeus.resolve_bearer_token(client)
            response = await client.post(
                get_endpoint("flight_offers_pricing"),
                json=body,
                headers=amadeus.auth_headers(token, **{"X-HTTP-Method-Override": "GET"}),
            )
        except httpx.HTTPError as e:
            return error_payload("An error occurred while fetching flight offers pricing.", details=str(e))

    if response.is_error:
        return error_payload("An error occurred while fetching flight offers pricing.", response)
    return read_body(response)


def get_tool() -> dict[str, Any]:
    return {
        "func": get_flight_offers_pricing,
        "definition": {
            "type": "function",
            "function": {
                "name": "get_flight_offers_pricing",
                "description": "Get pricing for flight offers from Amadeus API.",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "flightOfferData": {
                            "type": "array",
                            "description": "An array of flight offer objects to price.",
                        }
                    },
                    "required": ["flightOfferData"],
                },
            },
        },
    }
