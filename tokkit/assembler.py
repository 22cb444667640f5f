"""Raw upstream item -> canonical MediaRecord.

TikTok serves the same post in several shapes: the web page uses camelCase
(``stats.diggCount``, ``video.playAddr``), the mobile API snake_case with
nested url lists (``statistics.digg_count``, ``video.play_addr.url_list``),
and older SSR state flattens author fields onto the item. Nothing here assumes
a schema; every field is read through a fixed, ordered list of dotted alias
paths and the first non-empty value wins.
"""

import logging
from typing import Any, Mapping, Optional

from .formatter import format_bytes, format_number, parse_region, safe_int, ts_to_iso
from .models import (
    Author,
    ImageVariant,
    MediaRecord,
    MediaVariant,
    Music,
    Statistics,
    VideoSources,
)

logger = logging.getLogger("tokkit")

QUALITY_RANK = {"1080p": 4, "720p": 3, "540p": 2, "480p": 1}
IMAGE_POST_TYPE = 150
DEFAULT_QUALITY = "540p"

# ─── 字段别名（按优先级） ──────────────────────────────────────────────────────

ID_PATHS = ("aweme_id", "id", "video_id", "item_id")
DESC_PATHS = ("desc", "description")
CREATED_PATHS = ("create_time", "createTime")
REGION_PATHS = ("region", "location_created", "locationCreated")
THUMBNAIL_PATHS = (
    "video.cover.url_list.0",
    "video.origin_cover.url_list.0",
    "video.dynamic_cover.url_list.0",
    "video.cover",
    "video.originCover",
    "video.dynamicCover",
)
DURATION_PATHS = ("video.duration", "video.video_length", "duration")

AUTHOR_NAME_PATHS = ("author.nickname", "nickname")
AUTHOR_USERNAME_PATHS = (
    "author.unique_id",
    "author.uniqueId",
    "author.uid",
    "author.sec_uid",
    "author.secUid",
    "author",  # SIGI state keeps only the handle here
)
AUTHOR_AVATAR_PATHS = (
    "author.avatar_larger.url_list.0",
    "author.avatar_thumb.url_list.0",
    "author.avatar_medium.url_list.0",
    "author.avatarLarger",
    "author.avatarMedium",
    "author.avatarThumb",
    "avatarThumb",
)

STAT_PATHS = {
    "likes": ("statistics.digg_count", "statistics.diggCount", "stats.diggCount", "stats.digg_count", "statsV2.diggCount"),
    "comments": ("statistics.comment_count", "statistics.commentCount", "stats.commentCount", "stats.comment_count", "statsV2.commentCount"),
    "shares": ("statistics.share_count", "statistics.shareCount", "stats.shareCount", "stats.share_count", "statsV2.shareCount"),
    "views": ("statistics.play_count", "statistics.playCount", "stats.playCount", "stats.play_count", "statsV2.playCount"),
}

MUSIC_TITLE_PATHS = ("music.title",)
MUSIC_AUTHOR_PATHS = ("music.author", "music.owner_nickname", "music.author_name", "music.authorName")
MUSIC_COVER_PATHS = (
    "music.cover_large.url_list.0",
    "music.cover_thumb.url_list.0",
    "music.cover_hd.url_list.0",
    "music.coverLarge",
    "music.coverMedium",
    "music.coverThumb",
)
MUSIC_URL_PATHS = ("music.play_url.url_list.0", "music.play_url.uri", "music.playUrl")
MUSIC_DURATION_PATHS = ("music.duration",)

PLAY_LIST_PATHS = ("video.play_addr.url_list", "video.PlayAddrStruct.UrlList")
PLAY_URL_PATHS = ("video.playAddr",)
WATERMARK_LIST_PATHS = ("video.download_addr.url_list",)
WATERMARK_URL_PATHS = ("video.downloadAddr",)
QUALITY_PATHS = ("video.ratio", "video.quality", "video.definition")
PLAY_SIZE_PATHS = ("video.play_addr.data_size", "video.PlayAddrStruct.DataSize")
BITRATE_LADDER_PATHS = ("video.bit_rate", "video.bitrateInfo")

LADDER_URL_PATHS = ("play_addr.url_list.0", "PlayAddr.UrlList.0")
LADDER_WIDTH_PATHS = ("play_addr.width", "width", "PlayAddr.Width")
LADDER_HEIGHT_PATHS = ("play_addr.height", "height", "PlayAddr.Height")
LADDER_SIZE_PATHS = ("play_addr.data_size", "data_size", "PlayAddr.DataSize")
LADDER_BITRATE_PATHS = ("bit_rate", "Bitrate")
LADDER_LABEL_PATHS = ("gear_name", "GearName", "quality")

IMAGE_LIST_PATHS = ("imagePost.images", "image_post_info.images", "images")
IMAGE_URL_PATHS = (
    "url_list.0",
    "display_image.url_list.0",
    "origin_image.url_list.0",
    "imageURL.urlList.0",
)
IMAGE_WIDTH_PATHS = ("width", "imageWidth", "display_image.width")
IMAGE_HEIGHT_PATHS = ("height", "imageHeight", "display_image.height")

# ─── 别名解析 ──────────────────────────────────────────────────────────────────

def _lookup(record: Any, path: str) -> Any:
    node = record
    for key in path.split("."):
        if isinstance(node, Mapping):
            node = node.get(key)
        elif isinstance(node, list) and key.isdigit():
            idx = int(key)
            node = node[idx] if idx < len(node) else None
        else:
            return None
        if node is None:
            return None
    return node


def _first_str(record: Any, paths: tuple) -> str:
    for path in paths:
        v = _lookup(record, path)
        if isinstance(v, str) and v:
            return v
    return ""


def _first_int(record: Any, paths: tuple) -> int:
    for path in paths:
        n = safe_int(_lookup(record, path))
        if n:
            return n
    return 0


def _first_list(record: Any, paths: tuple) -> list:
    for path in paths:
        v = _lookup(record, path)
        if isinstance(v, list) and v:
            return v
    return []


def _first_id(record: Any, paths: tuple) -> str:
    for path in paths:
        v = _lookup(record, path)
        if isinstance(v, bool):
            continue
        if isinstance(v, (str, int)) and v:
            return str(v)
    return ""


def _to_seconds(value) -> int:
    # Upstream mixes milliseconds (API) and seconds (web).
    n = safe_int(value)
    return n // 1000 or n

# ─── 组装 ──────────────────────────────────────────────────────────────────────

def _is_image_post(raw: Mapping) -> bool:
    if _first_list(raw, IMAGE_LIST_PATHS):
        return True
    return safe_int(raw.get("aweme_type")) == IMAGE_POST_TYPE


def _author(raw: Mapping) -> Author:
    verified = (
        safe_int(_lookup(raw, "author.verification_type")) == 1
        or bool(_lookup(raw, "author.is_verified"))
        or bool(_lookup(raw, "author.verified"))
    )
    return Author(
        name=_first_str(raw, AUTHOR_NAME_PATHS),
        username=_first_str(raw, AUTHOR_USERNAME_PATHS),
        avatar=_first_str(raw, AUTHOR_AVATAR_PATHS),
        verified=verified,
    )


def _statistics(raw: Mapping) -> Statistics:
    likes = _first_int(raw, STAT_PATHS["likes"])
    comments = _first_int(raw, STAT_PATHS["comments"])
    shares = _first_int(raw, STAT_PATHS["shares"])
    views = _first_int(raw, STAT_PATHS["views"])
    return Statistics(
        likes=format_number(likes),
        comments=format_number(comments),
        shares=format_number(shares),
        views=format_number(views),
        likes_raw=likes,
        comments_raw=comments,
        shares_raw=shares,
        views_raw=views,
    )


def _music(raw: Mapping) -> Music:
    return Music(
        title=_first_str(raw, MUSIC_TITLE_PATHS),
        author=_first_str(raw, MUSIC_AUTHOR_PATHS),
        cover=_first_str(raw, MUSIC_COVER_PATHS),
        url=_first_str(raw, MUSIC_URL_PATHS),
        duration=_to_seconds(_first_int(raw, MUSIC_DURATION_PATHS)),
    )


def _variant(url: str, quality: str, size_bytes: int, width: int, height: int, bitrate: int) -> MediaVariant:
    return MediaVariant(
        url=url,
        quality=quality or DEFAULT_QUALITY,
        size=format_bytes(size_bytes) if size_bytes else "Unknown",
        size_bytes=size_bytes,
        width=width or 576,
        height=height or 1024,
        bitrate=bitrate,
    )


def _url_pool(raw: Mapping, list_paths: tuple, url_paths: tuple) -> list[str]:
    urls = [u for u in _first_list(raw, list_paths) if isinstance(u, str) and u]
    if not urls:
        single = _first_str(raw, url_paths)
        if single:
            urls = [single]
    return urls


def _ladder_variant(entry: Any) -> Optional[MediaVariant]:
    url = _first_str(entry, LADDER_URL_PATHS)
    if not url:
        return None
    width = _first_int(entry, LADDER_WIDTH_PATHS)
    height = _first_int(entry, LADDER_HEIGHT_PATHS)
    label = f"{width}x{height}" if width and height else _first_str(entry, LADDER_LABEL_PATHS)
    return _variant(
        url,
        label,
        _first_int(entry, LADDER_SIZE_PATHS),
        width,
        height,
        _first_int(entry, LADDER_BITRATE_PATHS),
    )


def _dedupe(variants: list[MediaVariant]) -> list[MediaVariant]:
    seen = set()
    unique = []
    for v in variants:
        if v.url in seen:
            continue
        seen.add(v.url)
        unique.append(v)
    return unique


def quality_rank(variant: MediaVariant) -> int:
    return QUALITY_RANK.get(variant.quality, 0)


def select_hd(variants: list[MediaVariant]) -> Optional[str]:
    for v in variants:
        if "720" in v.quality or "1080" in v.quality:
            return v.url
    return variants[0].url if variants else None


def _video(raw: Mapping) -> VideoSources:
    quality = _first_str(raw, QUALITY_PATHS)
    width = _first_int(raw, ("video.width",))
    height = _first_int(raw, ("video.height",))
    bitrate = _first_int(raw, ("video.bitrate",))
    play_size = _first_int(raw, PLAY_SIZE_PATHS)

    candidates = [
        _variant(url, quality, play_size, width, height, bitrate)
        for url in _url_pool(raw, PLAY_LIST_PATHS, PLAY_URL_PATHS)
    ]
    for entry in _first_list(raw, BITRATE_LADDER_PATHS):
        v = _ladder_variant(entry)
        if v:
            candidates.append(v)

    watermarked = [
        _variant(url, quality, 0, width, height, bitrate)
        for url in _url_pool(raw, WATERMARK_LIST_PATHS, WATERMARK_URL_PATHS)
    ]

    no_watermark = sorted(_dedupe(candidates), key=quality_rank, reverse=True)
    return VideoSources(
        no_watermark=no_watermark,
        with_watermark=_dedupe(watermarked),
        hd=select_hd(no_watermark),
    )


def _images(raw: Mapping) -> list[ImageVariant]:
    images = []
    for img in _first_list(raw, IMAGE_LIST_PATHS):
        url = _first_str(img, IMAGE_URL_PATHS)
        if not url:
            continue
        images.append(ImageVariant(
            url=url,
            width=_first_int(img, IMAGE_WIDTH_PATHS) or 1080,
            height=_first_int(img, IMAGE_HEIGHT_PATHS) or 1920,
        ))
    return images


def assemble(raw: Mapping[str, Any]) -> MediaRecord:
    """Map one raw item record, whatever its shape, onto the canonical record."""
    if not isinstance(raw, Mapping):
        raise TypeError(f"raw item record must be a mapping, got {type(raw).__name__}")

    is_images = _is_image_post(raw)
    record = MediaRecord(
        type="images" if is_images else "video",
        id=_first_id(raw, ID_PATHS),
        desc=_first_str(raw, DESC_PATHS),
        thumbnail=_first_str(raw, THUMBNAIL_PATHS),
        author=_author(raw),
        statistics=_statistics(raw),
        duration=_to_seconds(_first_int(raw, DURATION_PATHS)),
        region=parse_region(_first_str(raw, REGION_PATHS)),
        created_at=ts_to_iso(_first_int(raw, CREATED_PATHS)),
        music=_music(raw),
    )
    if is_images:
        record.images = _images(raw)
    else:
        record.video = _video(raw)
    logger.debug(
        f"Assembled {record.type} {record.id}: "
        f"{len(record.images or []) if is_images else len(record.video.no_watermark)} media entries"
    )
    return record
