"""Shared Amadeus client plumbing: credentials, OAuth2 tokens and authorized requests."""
from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from utils.get_endpoint import get_endpoint, get_timeout

logger = logging.getLogger(__name__)

CLIENT_ID_VARS = ("AMADEUS_CLIENT_ID", "AMADEUS_API_KEY")
CLIENT_SECRET_VARS = ("AMADEUS_CLIENT_SECRET", "AMADEUS_API_SECRET")
STATIC_TOKEN_VAR = "AMADEUS_FOR_DEVELOPERS_S_PUBLIC_WORKSPACE_API_KEY"


class AmadeusAuthError(Exception):
    """Credentials are missing or the token endpoint refused them."""


def _first_env(names: tuple[str, ...]) -> str | None:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


def get_credentials() -> tuple[str, str]:
    client_id = _first_env(CLIENT_ID_VARS)
    client_secret = _first_env(CLIENT_SECRET_VARS)
    if not client_id or not client_secret:
        raise AmadeusAuthError(
            "Missing Amadeus credentials. Please set AMADEUS_CLIENT_ID and AMADEUS_CLIENT_SECRET"
        )
    return client_id, client_secret


async def request_token(client: httpx.AsyncClient, client_id: str, client_secret: str) -> httpx.Response:
    """POST the client-credentials grant and return the raw response."""
    return await client.post(
        get_endpoint("token"),
        data={
            "client_id": client_id,
            "client_secret": client_secret,
            "grant_type": "client_credentials",
        },
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )


async def get_access_token(client: httpx.AsyncClient) -> str:
    """Fetch a fresh access token using the credentials from the environment."""
    client_id, client_secret = get_credentials()
    response = await request_token(client, client_id, client_secret)
    if response.is_error:
        raise AmadeusAuthError(f"Failed to get access token: {response.text}")
    return response.json()["access_token"]


async def resolve_bearer_token(client: httpx.AsyncClient) -> str | None:
    """Static workspace token if configured, else a fresh OAuth2 token, else None."""
    token = os.environ.get(STATIC_TOKEN_VAR)
    if token:
        return token
    try:
        return await get_access_token(client)
    except AmadeusAuthError as e:
        logger.warning("Calling Amadeus without authorization: %s", e)
        return None


def auth_headers(token: str | None, **extra: str) -> dict[str, str]:
    headers = {"Content-Type": "application/json", **extra}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def new_client(**kwargs: Any) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=get_timeout(), **kwargs)
