"""
Unit tests for file ingestion.

Tests cover:
- Progress sequence (monotonic, ends at 100)
- Read failures surfacing as ContentReadError
- Staging area removal and completed-handle forwarding
- Uploads to content storage
"""

import io

import pytest

from sdk.bridge_sdk.blobs import (
    BlobIngestor,
    ContentHandle,
    ProgressTracker,
    StagingArea,
    format_file_size,
)
from sdk.bridge_sdk.errors import ContentReadError
from sdk.bridge_sdk.memory import InMemoryContentStorage
from sdk.bridge_sdk.notifications import Level, Notifier


class BrokenSource(io.BytesIO):
    """A byte source whose reads fail."""

    def read(self, size=-1):
        raise OSError("disk unplugged")


class TestProgressTracker:
    def test_clamps_and_drops_regressions(self):
        seen = []
        tracker = ProgressTracker(seen.append)

        for value in (-5, 10, 10, 5, 50.7, 140):
            tracker(value)

        assert seen == [0, 10, 50, 100]


class TestBlobIngestor:
    """Tests for BlobIngestor.ingest."""

    @pytest.fixture
    def ingestor(self, settings):
        return BlobIngestor(settings)

    @pytest.mark.asyncio
    async def test_progress_monotonic_and_ends_at_100(self, ingestor):
        seen = []

        handle = await ingestor.ingest(io.BytesIO(b"0123456789abcdef"), seen.append)

        assert await handle.get_bytes() == b"0123456789abcdef"
        assert seen[-1] == 100
        assert seen == sorted(seen)
        assert len(seen) > 2
        assert handle.progress == 0

    @pytest.mark.asyncio
    async def test_upload_after_ingest_reports_its_own_progress(self, ingestor):
        seen = []
        handle = await ingestor.ingest(io.BytesIO(b"x" * 16), seen.append)
        read_progress = list(seen)

        stored = await handle.upload(InMemoryContentStorage(chunk_size=4))

        assert read_progress[-1] == 100
        assert seen[len(read_progress) :] == [25, 50, 75, 100]
        assert handle.progress == 100
        assert await stored.get_bytes() == b"x" * 16

    @pytest.mark.asyncio
    async def test_empty_source(self, ingestor):
        seen = []

        handle = await ingestor.ingest(io.BytesIO(b""), seen.append)

        assert handle.size == 0
        assert seen == [100]

    @pytest.mark.asyncio
    async def test_read_failure_propagates(self, ingestor):
        with pytest.raises(ContentReadError) as exc_info:
            await ingestor.ingest(BrokenSource(), name="terms.pdf")

        assert isinstance(exc_info.value, OSError)
        assert exc_info.value.name == "terms.pdf"


class TestStagingArea:
    """Tests for StagingArea."""

    @pytest.fixture
    def notifier(self):
        return Notifier()

    @pytest.fixture
    def staging(self, settings, notifier):
        return StagingArea(BlobIngestor(settings), notifier)

    @pytest.mark.asyncio
    async def test_entries_track_their_own_progress(self, staging):
        await staging.add([("a.pdf", io.BytesIO(b"a" * 10)), ("b.pdf", io.BytesIO(b"b" * 30))])

        assert [entry.name for entry in staging] == ["a.pdf", "b.pdf"]
        assert [entry.size for entry in staging] == [10, 30]
        assert all(entry.progress == 100 and entry.done for entry in staging)

    @pytest.mark.asyncio
    async def test_upload_progress_tracked_per_entry(self, staging):
        await staging.add([("a.pdf", io.BytesIO(b"a" * 8)), ("b.pdf", io.BytesIO(b"b" * 8))])
        storage = InMemoryContentStorage(chunk_size=4)

        await staging[1].handle.upload(storage)

        assert [entry.upload_progress for entry in staging] == [0, 100]
        assert [entry.progress for entry in staging] == [100, 100]

    @pytest.mark.asyncio
    async def test_removal_leaves_other_handles_untouched(self, staging):
        await staging.add([(name, io.BytesIO(name.encode())) for name in ("a", "b", "c")])
        handles = [entry.handle for entry in staging]

        removed = staging.remove(1)

        assert removed.name == "b"
        assert [entry.handle for entry in staging] == [handles[0], handles[2]]
        assert staging.completed_handles() == (handles[0], handles[2])

    @pytest.mark.asyncio
    async def test_failed_ingestion_dropped_and_reported(self, staging, notifier):
        added = await staging.add([("ok.pdf", io.BytesIO(b"ok")), ("bad.pdf", BrokenSource())])

        assert [entry.name for entry in staging] == ["ok.pdf"]
        assert isinstance(added[1].error, ContentReadError)
        assert notifier.history[-1].level is Level.ERROR
        assert notifier.history[-1].message == "Failed to process file: bad.pdf"
        assert len(staging.completed_handles()) == 1


class TestContentHandle:
    """Tests for ContentHandle uploads."""

    @pytest.mark.asyncio
    async def test_upload_reports_progress_and_returns_locator(self):
        storage = InMemoryContentStorage(chunk_size=4)
        seen = []
        handle = ContentHandle.from_bytes(b"x" * 16).with_upload_progress(seen.append)

        stored = await handle.upload(storage)

        assert stored.direct_url.startswith("memory://blob/")
        assert await storage.get(stored.direct_url) == b"x" * 16
        assert seen == [25, 50, 75, 100]

    @pytest.mark.asyncio
    async def test_locator_only_handle_reads_from_storage(self):
        storage = InMemoryContentStorage()
        locator = await storage.put(b"stored")

        assert await ContentHandle.from_locator(locator, storage).get_bytes() == b"stored"

    @pytest.mark.asyncio
    async def test_locator_without_storage_fails(self):
        with pytest.raises(ContentReadError):
            await ContentHandle.from_locator("memory://blob/abc").get_bytes()

    def test_handle_needs_content(self):
        with pytest.raises(ValueError):
            ContentHandle()


class TestFormatFileSize:
    @pytest.mark.parametrize(
        "size,expected",
        [(0, "0 Bytes"), (512, "512 Bytes"), (1536, "1.5 KB"), (1048576, "1 MB")],
    )
    def test_format(self, size, expected):
        assert format_file_size(size) == expected
