from dataclasses import dataclass, field
from typing import Optional

# ─── 数据结构 ───────────────────────────────────────────────────────────────────

@dataclass
class Author:
    name: str = ""
    username: str = ""
    avatar: str = ""
    verified: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "username": self.username,
            "avatar": self.avatar,
            "verified": self.verified,
        }

@dataclass
class Statistics:
    likes: str = "0"
    comments: str = "0"
    shares: str = "0"
    views: str = "0"
    likes_raw: int = 0
    comments_raw: int = 0
    shares_raw: int = 0
    views_raw: int = 0

    def to_dict(self) -> dict:
        return {
            "likes": self.likes,
            "comments": self.comments,
            "shares": self.shares,
            "views": self.views,
            "likesRaw": self.likes_raw,
            "commentsRaw": self.comments_raw,
            "sharesRaw": self.shares_raw,
            "viewsRaw": self.views_raw,
        }

@dataclass
class Music:
    title: str = ""
    author: str = ""
    cover: str = ""
    url: str = ""
    duration: int = 0

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "author": self.author,
            "cover": self.cover,
            "url": self.url,
            "duration": self.duration,
        }

@dataclass
class MediaVariant:
    url: str = ""
    quality: str = "540p"
    size: str = "Unknown"
    size_bytes: int = 0
    width: int = 576
    height: int = 1024
    bitrate: int = 0

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "quality": self.quality,
            "size": self.size,
            "sizeBytes": self.size_bytes,
            "width": self.width,
            "height": self.height,
            "bitrate": self.bitrate,
        }

@dataclass
class ImageVariant:
    url: str = ""
    width: int = 1080
    height: int = 1920

    def to_dict(self) -> dict:
        return {"url": self.url, "width": self.width, "height": self.height}

@dataclass
class VideoSources:
    no_watermark: list[MediaVariant] = field(default_factory=list)
    with_watermark: list[MediaVariant] = field(default_factory=list)
    hd: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "noWatermark": [v.to_dict() for v in self.no_watermark],
            "withWatermark": [v.to_dict() for v in self.with_watermark],
            "hd": self.hd,
        }

@dataclass
class MediaRecord:
    type: str = "video"  # video / images
    id: str = ""
    desc: str = ""
    thumbnail: str = ""
    author: Author = field(default_factory=Author)
    statistics: Statistics = field(default_factory=Statistics)
    duration: int = 0
    region: str = "Unknown"
    created_at: str = ""
    music: Music = field(default_factory=Music)
    video: Optional[VideoSources] = None
    images: Optional[list[ImageVariant]] = None

    def to_dict(self) -> dict:
        out = {
            "type": self.type,
            "id": self.id,
            "desc": self.desc,
            "thumbnail": self.thumbnail,
            "author": self.author.to_dict(),
            "statistics": self.statistics.to_dict(),
            "duration": self.duration,
            "region": self.region,
            "createdAt": self.created_at,
            "music": self.music.to_dict(),
        }
        # Exactly one media block, chosen by type.
        if self.type == "images":
            out["images"] = [i.to_dict() for i in (self.images or [])]
        else:
            out["video"] = (self.video or VideoSources()).to_dict()
        return out

# ─── 结果封装 ───────────────────────────────────────────────────────────────────

@dataclass
class Result:
    status: str  # success / error
    data: Optional[MediaRecord] = None
    message: Optional[str] = None
    error: Optional[str] = None  # raw detail, development mode only

    @classmethod
    def success(cls, data: MediaRecord) -> "Result":
        return cls(status="success", data=data)

    @classmethod
    def failure(cls, message: str, error: Optional[str] = None) -> "Result":
        return cls(status="error", message=message, error=error)

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> dict:
        if self.ok:
            return {"status": self.status, "data": self.data.to_dict()}
        out = {"status": self.status, "message": self.message}
        if self.error:
            out["error"] = self.error
        return out
