"""
test_channel_ingestor.py — End-to-end behaviour of one channel download.

yt-dlp is replaced by a patched run_extraction returning canned stdout;
caption requests are answered by httpx.MockTransport.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from channel_ingest.core.errors import ExtractionFailed, InvalidRequest
from channel_ingest.models.youtube import IngestionRequest
from channel_ingest.services.channel_ingestor import ingest_channel, normalize_channel_url
from channel_ingest.services.process_runner import ProcessOutcome, ProcessState
from conftest import make_raw, to_lines

_RUN_EXTRACTION = "channel_ingest.services.channel_ingestor.run_extraction"
_RealAsyncClient = httpx.AsyncClient

_JSON3 = {"events": [{"segs": [{"utf8": "caption text"}]}]}


def _outcome(stdout: str, state: ProcessState = ProcessState.COMPLETED, code: int = 0) -> ProcessOutcome:
    return ProcessOutcome(state=state, returncode=code, stdout=stdout)


def _captions(video_id: str) -> dict:
    return {"en": [{"ext": "json3", "url": f"https://captions.test/{video_id}?fmt=json3"}]}


def _mock_http(handler):
    """Make the ingestor's AsyncClient route through *handler*."""
    def factory(**kwargs):
        return _RealAsyncClient(transport=httpx.MockTransport(handler), **kwargs)
    return patch.object(httpx, "AsyncClient", factory)


def _no_captions_http():
    return _mock_http(lambda request: httpx.Response(404))


# ── normalize_channel_url ────────────────────────────────────────────────────

class TestNormalizeChannelUrl:

    @pytest.mark.parametrize(
        "given, expected",
        [
            ("https://example.com/@someone", "https://example.com/@someone/videos"),
            ("https://example.com/@someone/", "https://example.com/@someone/videos"),
            ("https://example.com/@someone//", "https://example.com/@someone/videos"),
            ("  https://example.com/@someone  ", "https://example.com/@someone/videos"),
            ("https://example.com/@someone/videos", "https://example.com/@someone/videos"),
            ("https://example.com/@someone/videos/", "https://example.com/@someone/videos"),
            ("https://www.youtube.com/channel/UC123", "https://www.youtube.com/channel/UC123"),
        ],
    )
    def test_normalisation(self, given, expected):
        assert normalize_channel_url(given) == expected


# ── ingest_channel ───────────────────────────────────────────────────────────

class TestIngestChannel:

    @pytest.mark.asyncio
    async def test_blank_url_rejected_before_spawn(self):
        with patch(_RUN_EXTRACTION, new_callable=AsyncMock) as run:
            with pytest.raises(InvalidRequest):
                await ingest_channel(IngestionRequest(channelUrl="   ", maxVideos=5))
        run.assert_not_called()

    @pytest.mark.asyncio
    async def test_five_good_lines_and_one_malformed(self):
        records = [make_raw(f"vid{i:08d}", channel=f"Channel {i}") for i in range(5)]
        stdout = to_lines(records[0], records[1], "{broken json", *records[2:])
        request = IngestionRequest(channelUrl="https://example.com/@someone", maxVideos=5)

        with patch(_RUN_EXTRACTION, new_callable=AsyncMock, return_value=_outcome(stdout)) as run, \
                _no_captions_http():
            result = await ingest_channel(request)

        run.assert_awaited_once_with("https://example.com/@someone/videos", 5)
        assert len(result.videos) == 5
        assert [v.video_id for v in result.videos] == [f"vid{i:08d}" for i in range(5)]
        assert result.channel_title == "Channel 0"
        assert result.channel_url == "https://example.com/@someone"

    @pytest.mark.asyncio
    async def test_channel_title_from_first_record_that_has_one(self):
        stdout = to_lines(
            make_raw("a", channel="", uploader=""),
            make_raw("b", channel=None, uploader="Uploader B"),
            make_raw("c", channel="Channel C"),
        )
        with patch(_RUN_EXTRACTION, new_callable=AsyncMock, return_value=_outcome(stdout)), \
                _no_captions_http():
            result = await ingest_channel(IngestionRequest(channelUrl="https://x/@c"))
        assert result.channel_title == "Uploader B"

    @pytest.mark.asyncio
    async def test_channel_url_is_returned_unmodified(self):
        with patch(_RUN_EXTRACTION, new_callable=AsyncMock, return_value=_outcome(to_lines(make_raw()))), \
                _no_captions_http():
            result = await ingest_channel(IngestionRequest(channelUrl="https://x/@c/ "))
        assert result.channel_url == "https://x/@c/ "

    @pytest.mark.asyncio
    async def test_partial_output_from_failed_process_is_returned(self):
        outcome = _outcome(to_lines(make_raw("only")), state=ProcessState.FAILED, code=1)
        with patch(_RUN_EXTRACTION, new_callable=AsyncMock, return_value=outcome), \
                _no_captions_http():
            result = await ingest_channel(IngestionRequest(channelUrl="https://x/@c", maxVideos=10))
        assert [v.video_id for v in result.videos] == ["only"]

    @pytest.mark.asyncio
    async def test_extraction_failure_propagates(self):
        with patch(
            _RUN_EXTRACTION,
            new_callable=AsyncMock,
            side_effect=ExtractionFailed("yt-dlp failed (code 1): boom", returncode=1, diagnostic="boom"),
        ):
            with pytest.raises(ExtractionFailed):
                await ingest_channel(IngestionRequest(channelUrl="https://x/@c"))

    @pytest.mark.asyncio
    async def test_never_returns_more_than_max_videos(self):
        stdout = to_lines(*[make_raw(f"v{i}") for i in range(8)])
        with patch(_RUN_EXTRACTION, new_callable=AsyncMock, return_value=_outcome(stdout)), \
                _no_captions_http():
            result = await ingest_channel(IngestionRequest(channelUrl="https://x/@c", maxVideos=3))
        assert [v.video_id for v in result.videos] == ["v0", "v1", "v2"]

    @pytest.mark.asyncio
    async def test_records_without_identity_are_skipped(self):
        orphan = make_raw()
        del orphan["id"]
        del orphan["webpage_url"]
        stdout = to_lines(orphan, make_raw("kept"))
        with patch(_RUN_EXTRACTION, new_callable=AsyncMock, return_value=_outcome(stdout)), \
                _no_captions_http():
            result = await ingest_channel(IngestionRequest(channelUrl="https://x/@c"))
        assert [v.video_id for v in result.videos] == ["kept"]
        assert all(v.video_url for v in result.videos)

    @pytest.mark.asyncio
    async def test_transcripts_are_best_effort_per_record(self):
        stdout = to_lines(
            make_raw("ok1", subtitles=_captions("ok1")),
            make_raw("missing", automatic_captions=_captions("missing")),
            make_raw("nocaps"),
            make_raw("ok2", automatic_captions=_captions("ok2")),
        )
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.path)
            if request.url.path == "/missing":
                return httpx.Response(404)
            return httpx.Response(200, json=_JSON3)

        with patch(_RUN_EXTRACTION, new_callable=AsyncMock, return_value=_outcome(stdout)), \
                _mock_http(handler):
            result = await ingest_channel(IngestionRequest(channelUrl="https://x/@c"))

        transcripts = {v.video_id: v.transcript for v in result.videos}
        assert transcripts == {
            "ok1": "caption text",
            "missing": None,
            "nocaps": None,
            "ok2": "caption text",
        }
        # One request per captioned record, in emission order
        assert requested == ["/ok1", "/missing", "/ok2"]

    @pytest.mark.asyncio
    async def test_empty_output_gives_empty_result(self):
        with patch(_RUN_EXTRACTION, new_callable=AsyncMock, return_value=_outcome("")), \
                _no_captions_http():
            result = await ingest_channel(IngestionRequest(channelUrl="https://x/@c"))
        assert result.videos == []
        assert result.channel_title == ""
        assert result.downloaded_at.tzinfo is not None
