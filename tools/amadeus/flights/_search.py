"""Flight Offers Search shared by the one-way and round-trip search tools."""
import logging
from typing import Any

import httpx

from utils import amadeus
from utils.get_endpoint import get_endpoint
from utils.response_utils import error_payload, read_body

logger = logging.getLogger(__name__)

DEFAULT_ADULTS = 2
DEFAULT_MAX_OFFERS = 5

SEARCH_PROPERTIES: dict[str, Any] = {
    "originLocationCode": {"type": "string", "description": "The IATA code of the origin location."},
    "destinationLocationCode": {"type": "string", "description": "The IATA code of the destination location."},
    "departureDate": {"type": "string", "description": "The departure date in YYYY-MM-DD format."},
    "returnDate": {"type": "string", "description": "The return date in YYYY-MM-DD format."},
    "adults": {"type": "integer", "description": "The number of adults traveling."},
    "max": {"type": "integer", "description": "The maximum number of flight offers to return."},
}


def build_query(args: dict[str, Any]) -> dict[str, str]:
    adults = args.get("adults")
    max_offers = args.get("max")
    query = {
        "originLocationCode": args["originLocationCode"],
        "destinationLocationCode": args["destinationLocationCode"],
        "departureDate": args["departureDate"],
        "adults": str(DEFAULT_ADULTS if adults is None else adults),
        "max": str(DEFAULT_MAX_OFFERS if max_offers is None else max_offers),
    }
    if args.get("returnDate"):
        query["returnDate"] = args["returnDate"]
    return query


async def search_offers(args: dict[str, Any]) -> Any:
    """GET /v2/shopping/flight-offers with a freshly fetched token."""
    query = build_query(args)
    async with amadeus.new_client() as client:
        try:
            logger.info("Getting access token...")
            token = await amadeus.get_access_token(client)
            logger.info("Searching flights %s -> %s", query["originLocationCode"], query["destinationLocationCode"])
            response = await client.get(
                get_endpoint("flight_offers"), params=query, headers=amadeus.auth_headers(token)
            )
        except (amadeus.AmadeusAuthError, httpx.HTTPError) as e:
            logger.error("Flight search error: %s", e)
            return error_payload("An error occurred while searching for flight offers.", details=str(e))

    if response.is_error:
        logger.error("Flight search failed with status %s", response.status_code)
        return error_payload("Flight search failed", response)
    return read_body(response)
