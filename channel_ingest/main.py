"""
Channel Ingest API — Application entry point.

Bootstraps FastAPI, wires up middleware and rate limiting, and registers
route groups.

Extension points:
  - Add new route groups with app.include_router() below
  - Add new middleware in the middleware block
  - Change startup behaviour in the lifespan context manager
"""

import logging
import shutil
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from channel_ingest.core.config import APP_VERSION, settings
from channel_ingest.core.rate_limit import limiter
from channel_ingest.routes.health import router as health_router
from channel_ingest.routes.youtube import router as youtube_router

# ─── Logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ─── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Code before `yield` runs on startup; code after runs on shutdown."""
    logger.info("Starting Channel Ingest API (env: %s)", settings.environment)
    if shutil.which(settings.ytdlp_path) is None:
        logger.warning(
            "%s not found on PATH; channel downloads will fail until it is installed",
            settings.ytdlp_path,
        )
    yield
    logger.info("Shutting down Channel Ingest API")


# ─── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Channel Ingest API",
    description=(
        "Downloads YouTube channel metadata and transcripts with yt-dlp. "
        "Transcripts are best-effort and may be missing for some videos."
    ),
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
)


# ─── Rate limiting ─────────────────────────────────────────────────────────────
# Attach the limiter to app state so slowapi can find it.
# Routes opt-in with @limiter.limit(...) + request: Request parameter.
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ─── Middleware ─────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Routes ────────────────────────────────────────────────────────────────────
app.include_router(health_router, prefix="/health", tags=["health"])
app.include_router(youtube_router)


@app.get("/", tags=["root"])
async def root():
    """API root — basic metadata."""
    return {
        "name": "Channel Ingest API",
        "version": APP_VERSION,
        "status": "running",
        "environment": settings.environment,
        "docs": "/docs",
    }


def run() -> None:
    """Console entry point: `channel-ingest`."""
    import uvicorn

    uvicorn.run(app, host=settings.app_host, port=settings.app_port)


if __name__ == "__main__":
    run()
