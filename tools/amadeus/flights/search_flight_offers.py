from typing import Any

from tools.amadeus.flights._search import SEARCH_PROPERTIES, search_offers


async def search_flight_offers(args: dict[str, Any]) -> Any:
    """Search one-way or return flight offers; `returnDate` is optional."""
    return await search_offers(args)


def get_tool() -> dict[str, Any]:
    return {
        "func": search_flight_offers,
        "definition": {
            "type": "function",
            "function": {
                "name": "search_flight_offers",
                "description": "Search for flight offers using the Amadeus API.",
                "parameters": {
                    "type": "object",
                    "properties": dict(SEARCH_PROPERTIES),
                    "required": ["originLocationCode", "destinationLocationCode", "departureDate"],
                },
            },
        },
    }
