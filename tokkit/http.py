import atexit
import json
import logging
import os
from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx

logger = logging.getLogger("tokkit")

# ─── 请求配置 ──────────────────────────────────────────────────────────────────

DESKTOP_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

MOBILE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/17.0 Mobile/15E148 Safari/604.1"
)

ANDROID_UA = (
    "Mozilla/5.0 (Linux; Android 10; K) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Mobile Safari/537.36"
)

TIMEOUT = float(os.getenv("TOKKIT_TIMEOUT", "15.0"))
API_TIMEOUT = float(os.getenv("TOKKIT_API_TIMEOUT", "10.0"))
MAX_REDIRECTS = int(os.getenv("TOKKIT_MAX_REDIRECTS", "5"))

NETWORK_EXCEPTIONS = (
    httpx.HTTPError,
)

PARSE_EXCEPTIONS = (
    json.JSONDecodeError,
    ValueError,
    KeyError,
    IndexError,
    TypeError,
    AttributeError,
)

HANDLED_EXCEPTIONS = NETWORK_EXCEPTIONS + PARSE_EXCEPTIONS

# One profile per endpoint class; each mimics a legitimate client of it.
PROFILES = {
    "web": {
        "timeout": TIMEOUT,
        "headers": {
            "User-Agent": DESKTOP_UA,
            "Referer": "https://www.tiktok.com/",
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Accept-Encoding": "gzip, deflate, br",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
            "Sec-Fetch-Dest": "document",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-Site": "none",
            "Cache-Control": "max-age=0",
        },
    },
    "api": {
        "timeout": API_TIMEOUT,
        "headers": {
            "User-Agent": MOBILE_UA,
            "Accept": "application/json",
            "Referer": "https://www.tiktok.com/",
        },
    },
    "embed": {
        "timeout": API_TIMEOUT,
        "headers": {
            "User-Agent": ANDROID_UA,
            "Accept": "text/html",
        },
    },
}

_client_pool: dict[str, httpx.Client] = {}


def _headers(profile: str) -> dict[str, str]:
    return dict(PROFILES[profile]["headers"])


def _no_cookies() -> CookieJar:
    # Pooled clients are shared by every request; never let one request's
    # upstream cookies ride along on another.
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


def _get_client(profile: str = "web") -> httpx.Client:
    if profile not in PROFILES:
        raise ValueError(f"unknown request profile: {profile}")
    if profile not in _client_pool:
        _client_pool[profile] = httpx.Client(
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            timeout=PROFILES[profile]["timeout"],
            headers=_headers(profile),
            cookies=_no_cookies(),
        )
    return _client_pool[profile]


def _close_clients() -> None:
    for c in _client_pool.values():
        c.close()
    _client_pool.clear()


atexit.register(_close_clients)


def get(url: str, profile: str = "web") -> httpx.Response:
    """Single GET with the profile's client. Raises on transport errors and non-2xx."""
    client = _get_client(profile)
    logger.debug(f"GET {url} [{profile}]")
    resp = client.get(url)
    resp.raise_for_status()
    return resp


class ClientPool:
    """Scope for the per-profile clients: requests inside share connections,
    and every client opened in the scope is closed on exit.

        with ClientPool() as pool:
            extract(url)
            pool.active  # ["api", "web"]
    """

    def __enter__(self) -> "ClientPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def active(self) -> list[str]:
        return sorted(_client_pool)

    def client(self, profile: str = "web") -> httpx.Client:
        return _get_client(profile)

    def close(self) -> None:
        if _client_pool:
            logger.debug(f"Closing clients: {', '.join(self.active)}")
        _close_clients()


__all__ = [
    "DESKTOP_UA",
    "MOBILE_UA",
    "ANDROID_UA",
    "TIMEOUT",
    "API_TIMEOUT",
    "MAX_REDIRECTS",
    "NETWORK_EXCEPTIONS",
    "PARSE_EXCEPTIONS",
    "HANDLED_EXCEPTIONS",
    "PROFILES",
    "ClientPool",
    "get",
    "_headers",
    "_get_client",
    "_close_clients",
]
