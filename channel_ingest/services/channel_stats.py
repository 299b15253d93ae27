"""
channel_stats.py — Summary statistics over a downloaded channel dataset.

Pure functions used by the chat side to ground answers about a channel
("average views?", "which fields can I plot?") without re-running yt-dlp.

USAGE
─────
    from channel_ingest.services.channel_stats import compute_field_stats

    stats = compute_field_stats(result.videos, "view_count")
    # stats.mean, stats.median, stats.std (population), stats.min, stats.max
"""

from __future__ import annotations

import math
import re
import statistics
from typing import Any, Iterable

from channel_ingest.models.youtube import FieldStats, IngestionResult, VideoRecord

_ROUND_DIGITS = 4
_WS_RE = re.compile(r"\s+")


def _round(value: float) -> float:
    return round(value, _ROUND_DIGITS)


def numeric_values(videos: Iterable[VideoRecord], field: str) -> list[float]:
    """Values of *field* across *videos*; None, missing and non-numeric entries are skipped."""
    values = []
    for video in videos:
        value: Any = getattr(video, field, None)
        if value is None or isinstance(value, bool):
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(number):
            values.append(number)
    return values


def compute_field_stats(videos: Iterable[VideoRecord], field: str) -> FieldStats | None:
    """Mean / median / population std / min / max of one field, or None if no values."""
    values = numeric_values(videos, field)
    if not values:
        return None

    return FieldStats(
        field=field,
        count=len(values),
        mean=_round(statistics.fmean(values)),
        median=_round(statistics.median(values)),
        std=_round(statistics.pstdev(values)),
        min=min(values),
        max=max(values),
    )


def _numeric_fields(sample: VideoRecord) -> list[str]:
    fields = []
    for name, value in sample.model_dump().items():
        is_number = isinstance(value, (int, float)) and not isinstance(value, bool)
        if is_number or name.endswith("_count") or name == "duration_seconds":
            fields.append(name)
    return fields


def build_channel_summary(result: IngestionResult) -> str:
    """Short markdown overview of the dataset; '' when there are no videos."""
    if not result.videos:
        return ""

    lines = [
        "**YouTube channel dataset**",
        f"Channel: {result.channel_title or 'Unknown'} · {len(result.videos)} videos",
    ]

    fields = _numeric_fields(result.videos[0])
    if fields:
        lines.append("\n**Numeric fields available in JSON (use these exact names):**")
        for field in fields:
            values = numeric_values(result.videos, field)
            if not values:
                continue
            lines.append(
                f"  • `{field}`: approx mean={_round(statistics.fmean(values))} (n={len(values)})"
            )

    return "\n".join(lines)


def export_filename(channel_title: str) -> str:
    """'Veritasium Clips' → 'veritasium_clips_videos.json'."""
    stem = _WS_RE.sub("_", channel_title.strip()).lower() or "channel"
    return f"{stem}_videos.json"
