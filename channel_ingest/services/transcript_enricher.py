"""
transcript_enricher.py — Best-effort transcript text for one yt-dlp record.

Strategy:
  1. Pick a caption track: manual English → automatic English → 'en-orig'.
     The first non-empty track wins.
  2. From that track take the json3 format (structured caption events).
     vtt / srv / ttml are ignored.
  3. GET the json3 URL, concatenate every segment's text in event order,
     collapse whitespace, trim.

No track, no json3 entry, a 404, a timeout or a malformed payload all
give the same answer: None. Nothing here raises into the ingestion batch.
"""

import logging
import re
from typing import Any, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)

# (metadata key, language code) in priority order
CAPTION_SOURCES = (
    ("subtitles", "en"),
    ("automatic_captions", "en"),
    ("subtitles", "en-orig"),
)
CAPTION_FORMAT = "json3"

_WS_RE = re.compile(r"\s+")


def find_caption_url(raw: Mapping[str, Any]) -> Optional[str]:
    """Return the json3 caption URL for *raw*, or None when there isn't one."""
    track: list = []
    for key, lang in CAPTION_SOURCES:
        tracks = raw.get(key)
        if isinstance(tracks, Mapping) and tracks.get(lang):
            track = tracks[lang]
            break

    if not isinstance(track, list):
        return None
    for entry in track:
        if isinstance(entry, Mapping) and entry.get("ext") == CAPTION_FORMAT and entry.get("url"):
            return str(entry["url"])
    return None


def flatten_caption_events(payload: Any) -> Optional[str]:
    """
    Turn a json3 document into plain text.

    Raises TypeError / KeyError / AttributeError on a payload that isn't
    json3-shaped; fetch_transcript treats that like any other failure.
    """
    events = payload.get("events") or []
    parts = []
    for event in events:
        segs = event.get("segs")
        if not segs:
            continue
        parts.append("".join(seg.get("utf8") or "" for seg in segs))

    text = _WS_RE.sub(" ", " ".join(parts)).strip()
    return text or None


async def fetch_transcript(raw: Mapping[str, Any], client: httpx.AsyncClient) -> Optional[str]:
    """
    Fetch and flatten the transcript for one record.

    *client* is shared across the records of one ingestion call.
    Returns None when no transcript is available for any reason.
    """
    url = find_caption_url(raw)
    if url is None:
        return None

    video_id = raw.get("id", "?")
    try:
        resp = await client.get(url)
        resp.raise_for_status()
        return flatten_caption_events(resp.json())
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "Caption fetch for %s returned %s", video_id, exc.response.status_code
        )
    except Exception as exc:
        logger.warning("Transcript unavailable for %s: %s", video_id, exc)
    return None
