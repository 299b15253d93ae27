"""
youtube.py — Pydantic models for the YouTube channel download API.

Separation of concerns:
  IngestionRequest  — what the client sends (camelCase keys, clamped count)
  VideoRecord       — one normalised video, the output unit
  IngestionResult   — the aggregate returned for one channel download
  FieldStats / ChannelStatsRequest / ChannelSummary — dataset analytics
"""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from channel_ingest.core.config import settings


# ── Request ───────────────────────────────────────────────────────────────────

class IngestionRequest(BaseModel):
    """
    Payload for POST /api/youtube/channel.

    channelUrl is not validated here. An empty URL is rejected by the
    ingestor with InvalidRequest (400) rather than a schema error (422).
    maxVideos never fails validation: junk falls back to the default and
    numbers are clamped into [1, max_videos_limit].
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    channel_url: str = Field(default="", alias="channelUrl")
    max_videos: int = Field(default=settings.default_max_videos, alias="maxVideos")

    @field_validator("channel_url", mode="before")
    @classmethod
    def _coerce_url(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("max_videos", mode="before")
    @classmethod
    def _clamp_max_videos(cls, value: Any) -> int:
        return clamp_max_videos(value)


def clamp_max_videos(value: Any) -> int:
    """Parse *value* as an integer count and clamp it into [1, max_videos_limit]."""
    try:
        count = int(value)
    except (TypeError, ValueError):
        count = 0
    if not count:
        count = settings.default_max_videos
    return min(max(count, 1), settings.max_videos_limit)


# ── Output ────────────────────────────────────────────────────────────────────

class VideoRecord(BaseModel):
    """One video. Unknown numbers stay None; zero is a real value."""
    video_id:         str
    title:            str = ""
    description:      str = ""
    transcript:       Optional[str] = None
    duration_seconds: Optional[Union[int, float]] = None
    published_at:     Optional[str] = None   # YYYY-MM-DD
    view_count:       Optional[int] = None
    like_count:       Optional[int] = None
    comment_count:    Optional[int] = None
    video_url:        str
    thumbnail_url:    Optional[str] = None


class IngestionResult(BaseModel):
    """Response body for a successful channel download."""
    channel_title: str = ""
    channel_url:   str
    downloaded_at: datetime
    videos:        list[VideoRecord] = Field(default_factory=list)


# ── Analytics ─────────────────────────────────────────────────────────────────

class FieldStats(BaseModel):
    field:  str
    count:  int
    mean:   float
    median: float
    std:    float
    min:    float
    max:    float


class ChannelStatsRequest(BaseModel):
    """Payload for POST /api/youtube/channel/stats."""
    channel: IngestionResult
    field:   str = Field(..., min_length=1, description="Numeric video field, e.g. view_count")


class ChannelSummary(BaseModel):
    summary:  str
    filename: str
