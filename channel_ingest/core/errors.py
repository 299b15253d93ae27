"""
errors.py — Request- and process-level failures of the ingestion pipeline.

Only these cross the pipeline boundary. Per-line decode failures and
per-record caption failures are absorbed where they happen and never
show up here.

The route layer maps every IngestionError to an HTTPException using the
class's status_code, so clients receive:
  { "detail": "<message>" }
"""


class IngestionError(Exception):
    """Base class. `message` is safe to show to the end user."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(IngestionError):
    """Missing or blank channel URL. Raised before any process is spawned."""

    status_code = 400


class ExtractionUnavailable(IngestionError):
    """The extraction executable could not be launched (missing, not executable)."""

    status_code = 503


class ExtractionFailed(IngestionError):
    """
    The extraction tool exited non-zero without producing any output.

    `diagnostic` is the tail of its stderr, already truncated by the caller.
    """

    status_code = 502

    def __init__(self, message: str, returncode: int | None = None, diagnostic: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.diagnostic = diagnostic
