"""Request handling for the ``/api/download`` endpoint.

Framework-free: a hosting layer passes the method plus the parsed query and
JSON body, and serialises the returned ``Response``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from . import scraper

logger = logging.getLogger("tokkit")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

USAGE_MESSAGE = "URL parameter is required. Usage: /api/download?url=https://tiktok.com/..."


@dataclass
class Response:
    status: int
    body: Optional[dict] = None
    headers: dict[str, str] = field(default_factory=dict)


def _json(status: int, body: dict) -> Response:
    headers = {"Content-Type": "application/json", **CORS_HEADERS}
    return Response(status=status, body=body, headers=headers)


def _error(status: int, message: str) -> Response:
    return _json(status, {"status": "error", "message": message})


def handle_request(method: str, query: Optional[Mapping[str, Any]] = None,
                   body: Optional[Mapping[str, Any]] = None) -> Response:
    method = (method or "").upper()
    if method == "OPTIONS":
        return Response(status=200, headers=dict(CORS_HEADERS))
    if method not in ("GET", "POST"):
        return _error(405, "Method not allowed. Use GET or POST.")

    try:
        source = body if method == "POST" else query
        url = source.get("url") if isinstance(source, Mapping) else None

        if not url:
            return _error(400, USAGE_MESSAGE)
        if not isinstance(url, str):
            return _error(400, "URL must be a string")
        if "tiktok.com" not in url:
            return _error(400, "Invalid TikTok URL. Must contain tiktok.com")

        result = scraper.extract(url)
        return _json(200 if result.ok else 400, result.to_dict())
    except Exception as e:
        logger.exception(f"API error: {e}")
        payload = {"status": "error", "message": "Internal server error"}
        if scraper.ENVIRONMENT == "development":
            payload["error"] = str(e)
        return _json(500, payload)
