"""Helpers for turning Amadeus HTTP responses into JSON-compatible values.

Amadeus normally answers with JSON, but gateways in front of it can return
HTML or plain-text error pages. Tools must still hand something serializable
back to the dispatcher, so parsing never raises here.
"""
from __future__ import annotations

import json
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


def robust_parse_text(text: str) -> Any:
    """Parse `text` as JSON, else the first JSON value embedded in it, else return it unchanged."""
    try:
        return json.loads(text)
    except ValueError:
        pass

    start = min((i for i in (text.find("{"), text.find("[")) if i >= 0), default=-1)
    if start >= 0:
        try:
            obj, _ = json.JSONDecoder().raw_decode(text, start)
            return obj
        except ValueError:
            pass

    return text


def read_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        logger.warning(
            "Failed to decode JSON from %s: %s; returning parsed fallback", response.request.url, e
        )
        return robust_parse_text(response.text)


def error_payload(message: str, response: httpx.Response | None = None, **extra: Any) -> dict[str, Any]:
    """The ``{"error": ...}`` shape tools return instead of raising on API failures."""
    payload: dict[str, Any] = {"error": message}
    if response is not None:
        payload["status"] = response.status_code
        payload["details"] = read_body(response)
    payload.update(extra)
    return payload
