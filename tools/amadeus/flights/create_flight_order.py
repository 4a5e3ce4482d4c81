from typing import Any

import httpx

from utils import amadeus
from utils.get_endpoint import get_endpoint
from utils.response_utils import error_payload, read_body

REMARKS = {
    "general": [
        {
            "subType": "GENERAL_MISCELLANEOUS",
            "text": "ONLINE BOOKING FROM INCREIBLE VIAJES",
        }
    ]
}
TICKETING_AGREEMENT = {"option": "DELAY_TO_CANCEL", "delay": "6D"}


def build_order(args: dict[str, Any]) -> dict[str, Any]:
    return {
        "data": {
            "type": "flight-order",
            "flightOffers": args["flightOfferPriceData"],
            "travelers": args["travelers"],
            "remarks": REMARKS,
            "ticketingAgreement": TICKETING_AGREEMENT,
            "contacts": args["contacts"],
        }
    }


async def create_flight_order(args: dict[str, Any]) -> Any:
    """Book priced flight offers for the given travelers."""
    async with amadeus.new_client() as client:
        try:
            token = await amadeus.resolve_bearer_token(client)
            response = await client.post(
                get_endpoint("flight_orders"), json=build_order(args), headers=amadeus.auth_headers(token)
            )
        except httpx.HTTPError as e:
            return error_payload("An error occurred while creating the flight order.", details=str(e))

    if response.is_error:
        return error_payload("An error occurred while creating the flight order.", response)
    return read_body(response)


def get_tool() -> dict[str, Any]:
    return {
        "func": create_flight_order,
        "definition": {
            "type": "function",
            "function": {
                "name": "create_flight_order",
                "description": "Create a flight order using the Amadeus API.",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "flightOfferPriceData": {
                            "type": "array",
                            "description": "The flight offer price data to be included in the order.",
                        },
                        "travelers": {
                            "type": "array",
                            "description": "An array of traveler objects containing traveler information.",
                        },
                        "contacts": {
                            "type": "array",
                            "description": "An array of contact objects containing contact information for the booking.",
                        },
                    },
                    "required": ["flightOfferPriceData", "travelers", "contacts"],
                },
            },
        },
    }
