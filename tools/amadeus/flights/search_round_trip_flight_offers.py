from typing import Any

from tools.amadeus.flights._search import SEARCH_PROPERTIES, search_offers


async def search_round_trip_flight_offers(args: dict[str, Any]) -> Any:
    return await search_offers(args)


def get_tool() -> dict[str, Any]:
    return {
        "func": search_round_trip_flight_offers,
        "definition": {
            "type": "function",
            "function": {
                "name": "search_round_trip_flight_offers",
                "description": "Search for round-trip flight offers using the Amadeus API. A return date is required.",
                "parameters": {
                    "type": "object",
                    "properties": dict(SEARCH_PROPERTIES),
                    "required": ["originLocationCode", "destinationLocationCode", "departureDate", "returnDate"],
                },
            },
        },
    }
