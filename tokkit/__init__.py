"""tokkit - TikTok post metadata extraction.

    >>> import tokkit
    >>> result = tokkit.extract("https://www.tiktok.com/@user/video/7234567890123456789")
    >>> result.to_dict()["status"]
"""

from .assembler import assemble
from .errors import (
    AllStrategiesExhausted,
    ExtractionError,
    InvalidURL,
    StrategyFailure,
    UnexpectedFailure,
)
from .formatter import format_bytes, format_number, parse_region, safe_int, ts_to_iso
from .models import (
    Author,
    ImageVariant,
    MediaRecord,
    MediaVariant,
    Music,
    Result,
    Statistics,
    VideoSources,
)
from .scraper import extract
from .strategies import STRATEGIES, BaseStrategy, EmbedStrategy, MobileApiStrategy, WebPageStrategy
from .urls import ContentIdentifier, extract_video_id, normalize_url, parse_url, resolve_short_link

__version__ = "1.0.0"

__all__ = [
    "extract",
    "assemble",
    "parse_url",
    "extract_video_id",
    "resolve_short_link",
    "normalize_url",
    "ContentIdentifier",
    "format_number",
    "format_bytes",
    "parse_region",
    "safe_int",
    "ts_to_iso",
    "Author",
    "Statistics",
    "Music",
    "MediaVariant",
    "ImageVariant",
    "VideoSources",
    "MediaRecord",
    "Result",
    "BaseStrategy",
    "WebPageStrategy",
    "MobileApiStrategy",
    "EmbedStrategy",
    "STRATEGIES",
    "ExtractionError",
    "InvalidURL",
    "StrategyFailure",
    "AllStrategiesExhausted",
    "UnexpectedFailure",
]
