"""
record_normalizer.py — Map one raw yt-dlp metadata object to a VideoRecord.

Pure functions, no I/O. The same mapping is applied to a record that has
already been normalised (keys like video_id / published_at / video_url),
which makes normalisation idempotent:

    normalize_record(normalize_record(raw).model_dump()) == normalize_record(raw)
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping, Optional, Union

from channel_ingest.models.youtube import VideoRecord

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

_UPLOAD_DATE_RE = re.compile(r"^\d{8}$")
_ISO_DATE_RE    = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def format_upload_date(value: Any) -> Optional[str]:
    """'20230615' → '2023-06-15'. Anything else that isn't already ISO → None."""
    if value is None:
        return None
    text = str(value).strip()
    if _UPLOAD_DATE_RE.match(text):
        return f"{text[:4]}-{text[4:6]}-{text[6:8]}"
    if _ISO_DATE_RE.match(text):
        return text
    return None


def pick_thumbnail(raw: Mapping[str, Any]) -> Optional[str]:
    """
    Single `thumbnail` field first, else the last entry of `thumbnails`
    (yt-dlp orders them low → high resolution).
    """
    single = raw.get("thumbnail") or raw.get("thumbnail_url")
    if single:
        return str(single)
    thumbs = raw.get("thumbnails") or []
    if isinstance(thumbs, list) and thumbs:
        last = thumbs[-1]
        if isinstance(last, Mapping) and last.get("url"):
            return str(last["url"])
    return None


def channel_name(raw: Mapping[str, Any]) -> str:
    """Channel display name reported by a record, or '' if none."""
    return str(raw.get("channel") or raw.get("uploader") or "")


def video_id_of(raw: Mapping[str, Any]) -> str:
    return str(raw.get("id") or raw.get("video_id") or "")


def has_identity(raw: Mapping[str, Any]) -> bool:
    """A record needs an id or a page URL, otherwise no video_url can be built."""
    return bool(video_id_of(raw) or raw.get("webpage_url") or raw.get("video_url"))


def _number(value: Any) -> Optional[Union[int, float]]:
    # bool is an int subclass; a flag is never a count
    if value is None or isinstance(value, bool):
        return None
    try:
        number = value if isinstance(value, (int, float)) else float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _count(value: Any) -> Optional[int]:
    number = _number(value)
    return None if number is None else int(number)


def _first_present(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def normalize_record(raw: Mapping[str, Any]) -> VideoRecord:
    """Build the canonical VideoRecord for one raw (or already normalised) record."""
    video_id = video_id_of(raw)
    page_url = raw.get("webpage_url") or raw.get("video_url")

    return VideoRecord(
        video_id=video_id,
        title=str(raw.get("title") or ""),
        description=str(raw.get("description") or ""),
        transcript=raw.get("transcript") or None,
        duration_seconds=_number(_first_present(raw, "duration", "duration_seconds")),
        published_at=format_upload_date(_first_present(raw, "upload_date", "published_at")),
        view_count=_count(raw.get("view_count")),
        like_count=_count(raw.get("like_count")),
        comment_count=_count(raw.get("comment_count")),
        video_url=str(page_url) if page_url else WATCH_URL.format(video_id=video_id),
        thumbnail_url=pick_thumbnail(raw),
    )
