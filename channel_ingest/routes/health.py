"""
Health check endpoint.

Used by:
  - Docker HEALTHCHECK instruction
  - Front-end to check API connectivity before offering the download tab

Returns status + extraction tool availability so callers can distinguish
between "API down" and "API up but yt-dlp not installed".
"""

import logging
import shutil

from fastapi import APIRouter
from pydantic import BaseModel

from channel_ingest.core.config import APP_VERSION, settings

logger = logging.getLogger(__name__)
router = APIRouter()


class HealthResponse(BaseModel):
    status: str  # Always "ok" if the API process is alive
    version: str
    extractor: str  # "available" | "missing"
    environment: str


@router.get("", response_model=HealthResponse, summary="API health check")
async def health_check() -> HealthResponse:
    """
    Returns the liveness status of the API and whether yt-dlp resolves.

    The API is considered healthy (HTTP 200) even when the extractor is
    missing. Channel downloads will then fail with 503.
    """
    extractor = "available" if shutil.which(settings.ytdlp_path) else "missing"
    if extractor == "missing":
        logger.warning("Extraction tool %r not found on PATH", settings.ytdlp_path)

    return HealthResponse(
        status="ok",
        version=APP_VERSION,
        extractor=extractor,
        environment=settings.environment,
    )
