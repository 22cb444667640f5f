import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from .assembler import assemble
from .errors import StrategyFailure
from .http import HANDLED_EXCEPTIONS, get
from .models import MediaRecord

logger = logging.getLogger("tokkit")

API_MIRRORS = (
    "https://api16-normal-c-useast1a.tiktokv.com/aweme/v1/feed/?aweme_id={video_id}",
    "https://api16-normal-c-useast2a.tiktokv.com/aweme/v1/feed/?aweme_id={video_id}",
    "https://api16-core-c-useast1a.tiktokv.com/aweme/v1/feed/?aweme_id={video_id}",
)

EMBED_URL = "https://www.tiktok.com/embed/{video_id}"


def _script_by_id(page: str, script_id: str) -> Optional[str]:
    m = re.search(
        r'<script[^>]*\bid=["\']' + re.escape(script_id) + r'["\'][^>]*>(.*?)</script>',
        page,
        re.DOTALL,
    )
    if not m:
        return None
    return m.group(1).strip() or None


def _dig(data: Any, *keys) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _nonempty_dict(v: Any) -> Optional[dict]:
    return v if isinstance(v, dict) and v else None

# ─── 基类 ──────────────────────────────────────────────────────────────────────

class BaseStrategy(ABC):
    """One independent way of retrieving a raw item record."""

    name: str = ""
    needs_id: bool = True  # False: receives the original URL instead of an ID

    @abstractmethod
    def fetch(self, target: str, landings: dict[str, str]) -> Optional[dict]:
        """Return the raw item record, or None when the upstream has none. May raise.

        Strategies that follow redirects record requested URL -> final URL in
        ``landings`` so the caller can reuse it.
        """
        ...

    def attempt(self, target: str, landings: Optional[dict[str, str]] = None) -> Optional[MediaRecord]:
        """Fetch and assemble. Never raises; any failure becomes None."""
        try:
            raw = self.fetch(target, {} if landings is None else landings)
            if raw is None:
                raise StrategyFailure(self.name, "no item record found")
            return assemble(raw)
        except StrategyFailure as e:
            logger.warning(f"Strategy failed: {e}")
        except HANDLED_EXCEPTIONS as e:
            logger.warning(f"Strategy failed: {StrategyFailure(self.name, e)}")
        except Exception as e:
            logger.warning(f"Strategy failed unexpectedly: {StrategyFailure(self.name, e)}", exc_info=True)
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

# ─── 网页 ──────────────────────────────────────────────────────────────────────

class WebPageStrategy(BaseStrategy):
    """Scrape the embedded hydration JSON from the public video page."""

    name = "web"
    needs_id = False

    def fetch(self, url: str, landings: dict[str, str]) -> Optional[dict]:
        try:
            resp = get(url, profile="web")
        except httpx.HTTPStatusError as e:
            landings[url] = str(e.response.url)
            raise
        landings[url] = str(resp.url)
        return self.locate(resp.text)

    def locate(self, page: str) -> Optional[dict]:
        containers = (
            ("__UNIVERSAL_DATA_FOR_REHYDRATION__", self._from_universal),
            ("__SIGI_STATE__", self._from_sigi),
            ("__NEXT_DATA__", self._from_next),
        )
        for script_id, resolve in containers:
            raw = _script_by_id(page, script_id)
            if not raw:
                continue
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.debug(f"{script_id} is not valid JSON: {e}")
                continue
            item = resolve(data)
            if item:
                logger.debug(f"Item located in {script_id}")
                return item
            logger.debug(f"{script_id} present but holds no item")
        return None

    @staticmethod
    def _from_universal(data: Any) -> Optional[dict]:
        scope = _dig(data, "__DEFAULT_SCOPE__", "webapp.video-detail")
        return (
            _nonempty_dict(_dig(scope, "itemInfo", "itemStruct"))
            or _nonempty_dict(_dig(data, "itemInfo", "itemStruct"))
        )

    @staticmethod
    def _from_sigi(data: Any) -> Optional[dict]:
        modules = _dig(data, "ItemModule")
        if not isinstance(modules, dict) or not modules:
            return None
        return _nonempty_dict(next(iter(modules.values())))

    @staticmethod
    def _from_next(data: Any) -> Optional[dict]:
        return _nonempty_dict(_dig(data, "props", "pageProps", "itemInfo", "itemStruct"))

# ─── 移动端 API ────────────────────────────────────────────────────────────────

class MobileApiStrategy(BaseStrategy):
    """Query the mobile feed API, one mirror after another."""

    name = "api"

    def __init__(self, mirrors: tuple[str, ...] = API_MIRRORS):
        self.mirrors = mirrors

    def fetch(self, video_id: str, landings: dict[str, str]) -> Optional[dict]:
        for template in self.mirrors:
            api = template.format(video_id=video_id)
            try:
                data = get(api, profile="api").json()
            except HANDLED_EXCEPTIONS as e:
                logger.debug(f"API mirror failed {api}: {e}")
                continue
            aweme_list = data.get("aweme_list") if isinstance(data, dict) else None
            if not isinstance(aweme_list, list) or not aweme_list:
                logger.debug(f"API mirror returned no items: {api}")
                continue
            return self._pick(aweme_list, video_id)
        return None

    @staticmethod
    def _pick(aweme_list: list, video_id: str) -> Optional[dict]:
        # The feed may lead with a different post; prefer the requested one.
        for item in aweme_list:
            if isinstance(item, dict) and str(item.get("aweme_id", "")) == video_id:
                return item
        first = aweme_list[0]
        return first if isinstance(first, dict) else None

# ─── 嵌入页 ────────────────────────────────────────────────────────────────────

class EmbedStrategy(BaseStrategy):
    """Last resort: the embed player page, reduced fields."""

    name = "embed"

    HYDRATED_DATA_RE = re.compile(
        r"<script[^>]*>\s*window\._SSR_HYDRATED_DATA\s*=\s*(\{.*?\})\s*;?\s*</script>",
        re.DOTALL,
    )

    def fetch(self, video_id: str, landings: dict[str, str]) -> Optional[dict]:
        page = get(EMBED_URL.format(video_id=video_id), profile="embed").text
        return self.locate(page)

    def locate(self, page: str) -> Optional[dict]:
        m = self.HYDRATED_DATA_RE.search(page)
        if not m:
            return None
        data = json.loads(m.group(1))
        return _nonempty_dict(_dig(data, "itemInfo", "itemStruct"))


STRATEGIES: tuple[BaseStrategy, ...] = (
    WebPageStrategy(),
    MobileApiStrategy(),
    EmbedStrategy(),
)
