import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import httpx

from .errors import InvalidURL
from .http import NETWORK_EXCEPTIONS, get

logger = logging.getLogger("tokkit")

# ─── 链接识别 ──────────────────────────────────────────────────────────────────

# (pattern, is_short_link); first match wins, group 1 is the identifier.
URL_PATTERNS = (
    (re.compile(r"tiktok\.com/@[\w.-]+/video/(\d+)"), False),
    (re.compile(r"tiktok\.com/@[\w.-]+/photo/(\d+)"), False),
    (re.compile(r"tiktok\.com/t/(\w+)"), True),
    (re.compile(r"vm\.tiktok\.com/(\w+)"), True),
    (re.compile(r"vt\.tiktok\.com/(\w+)"), True),
    (re.compile(r"tiktok\.com/video/(\d+)"), False),
    (re.compile(r"tiktok\.com/v/(\d+)"), False),
    (re.compile(r"tiktok\.com/embed(?:/v2)?/(\d+)"), False),
    (re.compile(r"tiktok\.com/.*/video/(\d+)"), False),
)

REDIRECT_HOSTS = frozenset({"vm.tiktok.com", "vt.tiktok.com"})


@dataclass(frozen=True)
class ContentIdentifier:
    value: str
    pending: bool = False  # short link, needs a redirect before it is a usable ID

    def __str__(self) -> str:
        return self.value


def normalize_url(url: str) -> str:
    """Strip whitespace and default to https when the scheme is missing."""
    url = url.strip()
    if "://" not in url:
        url = "https://" + url.lstrip("/")
    return url


def _host(url: str) -> str:
    return (urlparse(normalize_url(url)).hostname or "").lower()


def parse_url(url: str) -> ContentIdentifier:
    if not isinstance(url, str) or not url.strip():
        raise InvalidURL(f"Invalid URL: {url!r}")
    url = url.strip()
    for pattern, short in URL_PATTERNS:
        m = pattern.search(url)
        if m:
            return ContentIdentifier(m.group(1), pending=short)
    if _host(url) in REDIRECT_HOSTS:
        return ContentIdentifier("", pending=True)
    raise InvalidURL(f"Unrecognised TikTok URL: {url}")


def extract_video_id(url: str) -> str:
    return parse_url(url).value


def follow_redirects(url: str) -> Optional[str]:
    """Final URL after redirects, or None when the request never completed.

    A non-2xx landing page still counts: the redirect chain has already
    revealed where the short link points.
    """
    try:
        resp = get(url, profile="web")
    except httpx.HTTPStatusError as e:
        logger.debug(f"Landing page answered {e.response.status_code} for {url}")
        resp = e.response
    except NETWORK_EXCEPTIONS as e:
        logger.warning(f"Short link resolution failed for {url}: {e}")
        return None
    return str(resp.url)


def resolve_short_link(url: str, landing: Optional[str] = None) -> Optional[ContentIdentifier]:
    """Re-parse a short link's landing URL into a numeric identifier.

    ``landing`` is the final URL an earlier request already reached; without
    it the redirects are followed here. Returns None when the target carries
    no numeric ID or the request fails.
    """
    final_url = landing if landing is not None else follow_redirects(url)
    if final_url is None:
        return None
    try:
        ident = parse_url(final_url)
    except InvalidURL:
        logger.warning(f"Short link {url} landed on an unrecognised URL: {final_url}")
        return None
    if ident.pending:
        return None
    logger.debug(f"Resolved {url} -> {ident.value}")
    return ident
