"""
channel_ingestor.py — Download metadata (+ transcripts) for a channel's latest videos.

HOW THE DATA FLOWS
──────────────────
1. Validate the request. A blank channel URL is rejected before any I/O.
2. Normalise the URL so yt-dlp enumerates the uploads tab:
     https://www.youtube.com/@someone/  →  https://www.youtube.com/@someone/videos
3. process_runner.run_extraction() spawns yt-dlp and collects its stdout.
4. stream_parser.iter_records() yields one decoded record per JSON line.
5. For each record, strictly in emission order:
     a. record_normalizer.normalize_record()  — canonical VideoRecord
     b. transcript_enricher.fetch_transcript() — best-effort caption text
6. Returns IngestionResult with the channel title of the first record
   that reports one.

Records are enriched one at a time. That keeps output order equal to
yt-dlp's emission order and keeps at most one caption request in flight
against YouTube's timedtext endpoint.
"""

import logging
from datetime import datetime, timezone

import httpx

from channel_ingest.core.config import settings
from channel_ingest.core.errors import InvalidRequest
from channel_ingest.models.youtube import IngestionRequest, IngestionResult, VideoRecord
from channel_ingest.services.process_runner import run_extraction
from channel_ingest.services.record_normalizer import channel_name, has_identity, normalize_record
from channel_ingest.services.stream_parser import iter_records
from channel_ingest.services.transcript_enricher import fetch_transcript

logger = logging.getLogger(__name__)


def normalize_channel_url(channel_url: str) -> str:
    """
    Trim whitespace and trailing slashes; append '/videos' unless the URL
    already points at a videos listing or an explicit /channel/ path.
    """
    url = channel_url.strip().rstrip("/")
    if "/videos" not in url and "/channel/" not in url:
        url += "/videos"
    return url


async def ingest_channel(request: IngestionRequest) -> IngestionResult:
    """
    Run one channel download.

    Raises:
        InvalidRequest        — missing / blank channelUrl.
        ExtractionUnavailable — yt-dlp could not be launched.
        ExtractionFailed      — yt-dlp failed without producing any output.
    """
    if not request.channel_url.strip():
        raise InvalidRequest("channelUrl is required")

    downloaded_at = datetime.now(tz=timezone.utc)
    url = normalize_channel_url(request.channel_url)
    logger.info("Ingesting %s (max %d videos)", url, request.max_videos)

    outcome = await run_extraction(url, request.max_videos)

    channel_title = ""
    videos: list[VideoRecord] = []
    async with httpx.AsyncClient(
        timeout=settings.caption_timeout_seconds, follow_redirects=True
    ) as client:
        for raw in iter_records(outcome.stdout):
            if len(videos) >= request.max_videos:
                logger.debug("yt-dlp emitted more than %d records; ignoring the rest", request.max_videos)
                break
            if not has_identity(raw):
                logger.debug("Skipping record without id or webpage_url")
                continue

            if not channel_title:
                channel_title = channel_name(raw)

            video = normalize_record(raw)
            video.transcript = await fetch_transcript(raw, client)
            videos.append(video)

    with_transcript = sum(1 for v in videos if v.transcript)
    logger.info(
        "Ingested %d videos from %s (%d with transcripts, process %s)",
        len(videos), url, with_transcript, outcome.state.value,
    )

    return IngestionResult(
        channel_title=channel_title,
        channel_url=request.channel_url,
        downloaded_at=downloaded_at,
        videos=videos,
    )
