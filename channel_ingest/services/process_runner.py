"""
process_runner.py — Run yt-dlp as a child process under a wall-clock ceiling.

LIFECYCLE
─────────
    pending ──spawn──▶ running ──exit 0──────▶ COMPLETED
                          │ ───exit ≠ 0─────▶ FAILED
                          └──ceiling hit────▶ TIMED_OUT  (process killed)

pending and running are the span of a single run_process() call. Only the
terminal states are ProcessState members, since an outcome exists only
once the process is gone.

run_process() owns the process handle for its whole life: both pipes are
drained concurrently into buffers, the ceiling is enforced by
asyncio.wait_for, and a loop.call_later kill timer armed for the same
horizon backs it up. The timer is cancelled on every exit path, and the
process is killed if we leave early for any reason (ceiling, caller
cancellation, unexpected error). Whatever was buffered before a kill is
still returned.

run_extraction() builds the yt-dlp command and applies the resolution
policy: a non-zero exit is only an error when stdout is empty.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Sequence

from channel_ingest.core.config import settings
from channel_ingest.core.errors import ExtractionFailed, ExtractionUnavailable

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024
_KILL_GRACE_SECONDS = 5.0


class ProcessState(str, Enum):
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED    = "failed"


@dataclass
class ProcessOutcome:
    state:      ProcessState
    returncode: int | None
    stdout:     str = ""
    stderr:     str = ""

    @property
    def has_output(self) -> bool:
        return bool(self.stdout.strip())


def build_command(url: str, max_videos: int) -> list[str]:
    """
    yt-dlp invocation: one JSON object per line, at most *max_videos*
    items, no warnings, keep going past per-video errors, metadata only.
    """
    return [
        settings.ytdlp_path,
        "--dump-json",
        "--playlist-end", str(max_videos),
        "--no-warnings",
        "--ignore-errors",
        "--skip-download",
        url,
    ]


def diagnostic_tail(stderr: str, limit: int | None = None) -> str:
    """Last *limit* characters of the stripped diagnostic stream."""
    limit = settings.diagnostic_max_chars if limit is None else limit
    text = stderr.strip()
    return text[-limit:] if limit > 0 else ""


async def _drain(stream: asyncio.StreamReader | None, chunks: list[bytes]) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return
        chunks.append(chunk)


def _kill(proc: asyncio.subprocess.Process) -> None:
    """Kill *proc* unless it has already exited."""
    if proc.returncode is not None:
        return
    try:
        proc.kill()
    except ProcessLookupError:
        pass


async def _within_ceiling(aw: Awaitable[int], timeout: float) -> int:
    """Primary ceiling; the call_later kill timer in run_process backs it up."""
    return await asyncio.wait_for(aw, timeout=timeout)


async def run_process(cmd: Sequence[str], timeout: float) -> ProcessOutcome:
    """
    Spawn *cmd*, collect stdout / stderr, and resolve to a ProcessOutcome.

    Raises ExtractionUnavailable if the executable cannot be started.
    A non-zero exit is not an error here; run_extraction decides.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        logger.error("Could not start %s: %s", cmd[0], exc)
        raise ExtractionUnavailable(f"Failed to run {cmd[0]}: {exc}") from exc

    logger.debug("Spawned pid %s: %s", proc.pid, " ".join(cmd))

    out_chunks: list[bytes] = []
    err_chunks: list[bytes] = []
    readers = asyncio.gather(
        _drain(proc.stdout, out_chunks),
        _drain(proc.stderr, err_chunks),
    )
    ceiling_hit = False

    def _on_ceiling() -> None:
        nonlocal ceiling_hit
        ceiling_hit = True
        logger.warning("pid %s reached %.0fs kill timer, killing", proc.pid, timeout)
        _kill(proc)

    async def _communicate() -> int:
        # Readers are shielded so they keep draining after a timeout.
        await asyncio.shield(readers)
        return await proc.wait()

    kill_timer = asyncio.get_running_loop().call_later(timeout, _on_ceiling)
    try:
        returncode = await _within_ceiling(_communicate(), timeout)
    except asyncio.TimeoutError:
        logger.warning("pid %s exceeded %.0fs ceiling, killing", proc.pid, timeout)
        ceiling_hit = True
        _kill(proc)
        try:
            await asyncio.wait_for(readers, timeout=_KILL_GRACE_SECONDS)
            await asyncio.wait_for(proc.wait(), timeout=_KILL_GRACE_SECONDS)
        except asyncio.TimeoutError:
            logger.warning("pid %s pipes still open after kill; using buffered output", proc.pid)
        returncode = proc.returncode
    finally:
        kill_timer.cancel()
        if not readers.done():
            readers.cancel()
        # No-op after a normal exit; otherwise never leak the child.
        _kill(proc)

    if ceiling_hit:
        state = ProcessState.TIMED_OUT
    elif returncode == 0:
        state = ProcessState.COMPLETED
    else:
        state = ProcessState.FAILED

    return ProcessOutcome(
        state=state,
        returncode=returncode,
        stdout=b"".join(out_chunks).decode("utf-8", errors="replace"),
        stderr=b"".join(err_chunks).decode("utf-8", errors="replace"),
    )


async def run_extraction(url: str, max_videos: int) -> ProcessOutcome:
    """
    Enumerate *url* with yt-dlp. Single attempt, no retry.

    Raises:
        ExtractionUnavailable — yt-dlp could not be launched.
        ExtractionFailed      — non-zero exit (or timeout) with empty stdout.
    """
    cmd = build_command(url, max_videos)
    outcome = await run_process(cmd, timeout=settings.extraction_timeout_seconds)

    if outcome.state is ProcessState.COMPLETED or outcome.has_output:
        if outcome.state is not ProcessState.COMPLETED:
            logger.warning(
                "yt-dlp ended %s (code %s) for %s, using partial output",
                outcome.state.value, outcome.returncode, url,
            )
        return outcome

    diagnostic = diagnostic_tail(outcome.stderr)
    if outcome.state is ProcessState.TIMED_OUT and not diagnostic:
        diagnostic = f"timed out after {settings.extraction_timeout_seconds:.0f}s"
    logger.error("yt-dlp failed (code %s) for %s: %s", outcome.returncode, url, diagnostic)
    raise ExtractionFailed(
        f"yt-dlp failed (code {outcome.returncode}): {diagnostic}",
        returncode=outcome.returncode,
        diagnostic=diagnostic,
    )
