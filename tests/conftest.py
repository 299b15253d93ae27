"""
pytest configuration and shared fixtures for the Channel Ingest API tests.

Key concern: tests must never spawn the real yt-dlp or reach YouTube.
We achieve this by:
  1. Patching run_extraction / run_process where the pipeline is exercised,
     or pointing run_process at the Python interpreter.
  2. Serving caption documents from httpx.MockTransport.
  3. Resetting the slowapi in-memory counters before every test so the
     5/minute ingestion limit never leaks between tests.
"""

import json
import os

import pytest
from httpx import ASGITransport, AsyncClient

# Set env vars BEFORE importing the app so Settings picks them up correctly
os.environ.setdefault("ENVIRONMENT", "test")


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Clear slowapi's in-memory storage so tests are independent."""
    from channel_ingest.core.rate_limit import limiter

    try:
        limiter._limiter.storage.reset()
    except Exception:
        pass  # Some storage backends don't support reset.
    yield


@pytest.fixture()
async def client():
    """
    HTTPX async test client wired to the FastAPI app.

    Usage:
        async def test_something(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    from channel_ingest.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ── Sample yt-dlp records ─────────────────────────────────────────────────────

def make_raw(video_id: str = "abc123def45", **overrides) -> dict:
    """A yt-dlp --dump-json record with the fields the pipeline reads."""
    raw = {
        "id": video_id,
        "title": f"Video {video_id}",
        "description": "A description",
        "duration": 321,
        "upload_date": "20230615",
        "view_count": 1500,
        "like_count": 120,
        "comment_count": 14,
        "webpage_url": f"https://www.youtube.com/watch?v={video_id}",
        "channel": "Some Channel",
        "uploader": "someone",
        "thumbnails": [
            {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
            {"url": f"https://i.ytimg.com/vi/{video_id}/maxresdefault.jpg"},
        ],
    }
    raw.update(overrides)
    return raw


def to_lines(*records) -> str:
    """Render records as yt-dlp stdout; plain strings are written verbatim."""
    return "\n".join(r if isinstance(r, str) else json.dumps(r) for r in records) + "\n"


@pytest.fixture()
def sample_raw() -> dict:
    return make_raw()
