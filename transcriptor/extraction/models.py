"""Typed views of yt-dlp's --dump-single-json output.

WHY: yt-dlp prints a large, loosely typed JSON document per video. Callers
want a handful of descriptive fields and the chapter list, with missing or
wrongly typed values turned into None instead of surprises downstream.

HOW: from_ytdlp() constructors pick the known keys and check their types
before building frozen pydantic models.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def _str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _int(data: Dict[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def _bool(data: Dict[str, Any], key: str) -> Optional[bool]:
    value = data.get(key)
    return value if isinstance(value, bool) else None


def _str_list(data: Dict[str, Any], key: str) -> Optional[List[str]]:
    value = data.get(key)
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


class Thumbnail(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    width: Optional[int] = None
    height: Optional[int] = None
    id: Optional[str] = None


class VideoChapter(BaseModel):
    """One chapter marker, times in seconds."""

    model_config = ConfigDict(frozen=True)

    start_time: float = 0.0
    end_time: float = 0.0
    title: str

    @classmethod
    def from_ytdlp(cls, data: Dict[str, Any]) -> Optional[VideoChapter]:
        title = _str(data, "title")
        if title is None:
            return None
        start = data.get("start_time")
        end = data.get("end_time")
        return cls(
            start_time=float(start) if isinstance(start, (int, float)) else 0.0,
            end_time=float(end) if isinstance(end, (int, float)) else 0.0,
            title=title,
        )


class VideoInfo(BaseModel):
    """Descriptive metadata for one video."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    title: Optional[str] = None
    uploader: Optional[str] = None
    uploader_id: Optional[str] = None
    channel: Optional[str] = None
    channel_id: Optional[str] = None
    channel_url: Optional[str] = None
    duration: Optional[int] = Field(default=None, description="Length in seconds.")
    description: Optional[str] = None
    upload_date: Optional[str] = Field(default=None, description="YYYYMMDD as yt-dlp reports it.")
    webpage_url: Optional[str] = None
    view_count: Optional[int] = None
    like_count: Optional[int] = None
    comment_count: Optional[int] = None
    tags: Optional[List[str]] = None
    categories: Optional[List[str]] = None
    live_status: Optional[str] = None
    is_live: Optional[bool] = None
    was_live: Optional[bool] = None
    availability: Optional[str] = None
    thumbnail: Optional[str] = None
    thumbnails: Optional[List[Thumbnail]] = None

    @classmethod
    def from_ytdlp(cls, data: Dict[str, Any]) -> VideoInfo:
        thumbnails = None
        raw_thumbnails = data.get("thumbnails")
        if isinstance(raw_thumbnails, list):
            thumbnails = [
                Thumbnail(
                    url=_str(item, "url") or "",
                    width=_int(item, "width"),
                    height=_int(item, "height"),
                    id=_str(item, "id"),
                )
                for item in raw_thumbnails
                if isinstance(item, dict)
            ]

        return cls(
            id=_str(data, "id"),
            title=_str(data, "title"),
            uploader=_str(data, "uploader"),
            uploader_id=_str(data, "uploader_id"),
            channel=_str(data, "channel"),
            channel_id=_str(data, "channel_id"),
            channel_url=_str(data, "channel_url"),
            duration=_int(data, "duration"),
            description=_str(data, "description"),
            upload_date=_str(data, "upload_date"),
            webpage_url=_str(data, "webpage_url"),
            view_count=_int(data, "view_count"),
            like_count=_int(data, "like_count"),
            comment_count=_int(data, "comment_count"),
            tags=_str_list(data, "tags"),
            categories=_str_list(data, "categories"),
            live_status=_str(data, "live_status"),
            is_live=_bool(data, "is_live"),
            was_live=_bool(data, "was_live"),
            availability=_str(data, "availability"),
            thumbnail=_str(data, "thumbnail"),
            thumbnails=thumbnails,
        )
