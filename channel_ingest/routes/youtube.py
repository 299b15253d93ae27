"""
youtube.py — YouTube channel download endpoints.

Routes:
  POST /api/youtube/channel
    Accepts {channelUrl, maxVideos}, runs yt-dlp against the channel's
    uploads, and returns {channel_title, channel_url, downloaded_at, videos}.
  POST /api/youtube/channel/stats
    Summary statistics for one numeric field of a downloaded dataset.
  POST /api/youtube/channel/summary
    Markdown overview of a downloaded dataset + suggested JSON filename.

Pipeline errors are IngestionError subclasses carrying their own status
code; they are re-raised as HTTPException so FastAPI serialises them as:
  { "detail": "..." }
"""

import logging

from fastapi import APIRouter, HTTPException, Request

from channel_ingest.core.config import settings
from channel_ingest.core.errors import IngestionError
from channel_ingest.core.rate_limit import limiter
from channel_ingest.models.youtube import (
    ChannelStatsRequest,
    ChannelSummary,
    FieldStats,
    IngestionRequest,
    IngestionResult,
)
from channel_ingest.services.channel_ingestor import ingest_channel
from channel_ingest.services.channel_stats import (
    build_channel_summary,
    compute_field_stats,
    export_filename,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/youtube", tags=["youtube"])


@router.post("/channel", response_model=IngestionResult, status_code=200)
@limiter.limit(lambda: settings.youtube_rate_limit)
async def download_channel(request: Request, payload: IngestionRequest):
    """
    Download metadata for the latest videos of a YouTube channel.

    maxVideos is clamped to [1, 100]. Transcripts are best-effort: a video
    without English captions simply has transcript = null. If yt-dlp fails
    part-way, whatever it emitted is returned as a normal (shorter) result.
    """
    try:
        return await ingest_channel(payload)
    except IngestionError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    except Exception as exc:
        logger.error("Channel download error for %s: %s", payload.channel_url, exc, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Channel download error: {exc}")


@router.post("/channel/stats", response_model=FieldStats)
async def channel_stats(payload: ChannelStatsRequest):
    """Mean, median, std, min and max of a numeric video field (e.g. view_count)."""
    stats = compute_field_stats(payload.channel.videos, payload.field)
    if stats is None:
        raise HTTPException(
            status_code=422,
            detail=(
                f'No numeric values found for field "{payload.field}". '
                "Make sure it exists on each video in the JSON."
            ),
        )
    return stats


@router.post("/channel/summary", response_model=ChannelSummary)
async def channel_summary(payload: IngestionResult):
    """Markdown overview for the chat context and a filename for saving the JSON."""
    return ChannelSummary(
        summary=build_channel_summary(payload),
        filename=export_filename(payload.channel_title),
    )
