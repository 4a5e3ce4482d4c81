from typing import Any

import httpx

from utils import amadeus
from utils.response_utils import error_payload, read_body


async def request_access_token(args: dict[str, Any]) -> Any:
    """Request an OAuth2 access token for the given API key and secret."""
    async with amadeus.new_client() as client:
        try:
            response = await amadeus.request_token(client, args["client_id"], args["client_secret"])
        except httpx.HTTPError as e:
            return error_payload("An error occurred while requesting the access token.", details=str(e))
    if response.is_error:
        return error_payload("An error occurred while requesting the access token.", response)
    return read_body(response)


def get_tool() -> dict[str, Any]:
    return {
        "func": request_access_token,
        "definition": {
            "type": "function",
            "function": {
                "name": "request_access_token",
                "description": "Request an access token from the Amadeus API.",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "client_id": {"type": "string", "description": "Your API Key."},
                        "client_secret": {"type": "string", "description": "Your API Secret."},
                    },
                    "required": ["client_id", "client_secret"],
                },
            },
        },
    }
