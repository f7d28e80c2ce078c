"""
Local file ingestion into remotely storable content handles.

This module provides:
- ContentHandle: wraps bytes (or a stored locator) and carries a progress sink
- BlobIngestor: reads a file-like byte source into a ContentHandle
- StagingArea: the list of files staged by a submitting form

Invariants:
    - Progress reported to a sink is an int in [0, 100], never decreasing,
      and ends at 100 once ingestion succeeds; an upload reports its own
      sequence through a separate tracker
    - Read failures propagate as ContentReadError (an OSError)
    - Each staged entry tracks its own progress; removing one entry never
      touches the handle of another
    - Only entries whose ingestion completed are forwarded on submission
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import BinaryIO

from .backend import ContentStorage, ProgressSink
from .config import Settings
from .errors import ContentReadError
from .notifications import Notifier

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Forwards percentages to a sink, clamped and never decreasing."""

    def __init__(self, sink: ProgressSink) -> None:
        self._sink = sink
        self.last = -1

    def __call__(self, percentage: float) -> None:
        value = max(0, min(100, int(percentage)))
        if value <= self.last:
            return
        self.last = value
        self._sink(value)


class ContentHandle:
    """Opaque reference to bytes destined for (or held by) content storage.

    A handle holds the raw bytes, a direct retrieval locator, or both.
    Handles compare by identity.

    Example:
        >>> handle = ContentHandle.from_bytes(b"%PDF-1.7 ...")
        >>> handle = handle.with_upload_progress(lambda pct: print(pct))
        >>> stored = await handle.upload(storage)
        >>> stored.direct_url
        'memory://blob/...'
    """

    def __init__(
        self,
        data: bytes | None = None,
        *,
        locator: str | None = None,
        storage: ContentStorage | None = None,
        tracker: ProgressTracker | None = None,
    ) -> None:
        if data is None and locator is None:
            raise ValueError("ContentHandle needs bytes or a locator")
        self._data = data
        self._locator = locator
        self._storage = storage
        self._tracker = tracker

    @classmethod
    def from_bytes(cls, data: bytes) -> ContentHandle:
        return cls(bytes(data))

    @classmethod
    def from_locator(cls, locator: str, storage: ContentStorage | None = None) -> ContentHandle:
        return cls(locator=locator, storage=storage)

    def with_upload_progress(self, sink: ProgressSink) -> ContentHandle:
        """Return a handle over the same content that reports progress to sink."""
        return ContentHandle(
            self._data,
            locator=self._locator,
            storage=self._storage,
            tracker=ProgressTracker(sink),
        )

    @property
    def direct_url(self) -> str | None:
        return self._locator

    @property
    def size(self) -> int | None:
        return len(self._data) if self._data is not None else None

    @property
    def progress(self) -> int:
        """Last percentage reported through this handle (0 if none)."""
        if self._tracker is None:
            return 0
        return max(self._tracker.last, 0)

    def report_progress(self, percentage: float) -> None:
        if self._tracker is not None:
            self._tracker(percentage)

    async def get_bytes(self) -> bytes:
        """Return the content, fetching it from storage if only a locator is held."""
        if self._data is not None:
            return self._data
        locator = self._locator
        if locator is None or self._storage is None:
            raise ContentReadError(f"No storage available to fetch {locator}")
        return await self._storage.get(locator)

    async def upload(self, storage: ContentStorage) -> ContentHandle:
        """Store the bytes and return a stored handle carrying the locator."""
        data = await self.get_bytes()
        locator = await storage.put(data, self.report_progress)
        self.report_progress(100)
        return ContentHandle(data, locator=locator, storage=storage)


class BlobIngestor:
    """Reads local byte sources into ContentHandles.

    Example:
        >>> ingestor = BlobIngestor()
        >>> with open("terms.pdf", "rb") as f:
        ...     handle = await ingestor.ingest(f, on_progress=print)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._chunk_size = (settings or Settings()).ingest_chunk_size

    async def ingest(
        self,
        source: BinaryIO,
        on_progress: ProgressSink | None = None,
        *,
        name: str | None = None,
        on_upload: ProgressSink | None = None,
    ) -> ContentHandle:
        """Read all bytes from source into a ContentHandle.

        Reading and the later upload are tracked separately: each reports its
        own 0..100 sequence.

        Args:
            source: Readable binary file-like object
            on_progress: Optional sink for read percentages
            name: Source name for error messages
            on_upload: Sink for upload percentages (defaults to on_progress)

        Returns:
            Handle wrapping the bytes, reporting upload progress if a sink is given

        Raises:
            ContentReadError: If reading the source fails
        """
        tracker = ProgressTracker(on_progress) if on_progress else None
        total = _remaining_size(source)
        chunks: list[bytes] = []
        read = 0

        while True:
            try:
                chunk = await asyncio.to_thread(source.read, self._chunk_size)
            except OSError as e:
                raise ContentReadError(f"Failed to read file: {e}", name=name) from e
            if not chunk:
                break
            chunks.append(chunk)
            read += len(chunk)
            if tracker and total:
                # 100 is reserved for completion
                tracker(min(99, read * 100 // total))

        if tracker:
            tracker(100)
        handle = ContentHandle(b"".join(chunks))
        upload_sink = on_upload or on_progress
        if upload_sink:
            handle = handle.with_upload_progress(upload_sink)
        logger.debug(f"Ingested {name or 'source'} ({read} bytes)")
        return handle


def _remaining_size(source: BinaryIO) -> int | None:
    """Bytes left in a seekable source, or None if unknown."""
    try:
        if not source.seekable():
            return None
        start = source.tell()
        end = source.seek(0, os.SEEK_END)
        source.seek(start)
        return end - start
    except (OSError, AttributeError, ValueError):
        return None


@dataclass(eq=False)
class StagedFile:
    """A file staged on a form.

    Attributes:
        name: Display name
        size: Size in bytes, if known
        progress: Last reported ingestion percentage
        upload_progress: Last reported upload percentage
        handle: Set once ingestion completed
        error: Set if ingestion failed
    """

    name: str
    size: int | None = None
    progress: int = 0
    upload_progress: int = 0
    handle: ContentHandle | None = None
    error: BaseException | None = None

    @property
    def done(self) -> bool:
        return self.handle is not None


class StagingArea:
    """Files staged by a submitting form until final submission.

    Progress updates are routed to the StagedFile object created for each
    ingestion, so removals that shift list positions never misroute them.
    Entries whose ingestion fails are dropped and reported.
    """

    def __init__(self, ingestor: BlobIngestor, notifier: Notifier | None = None) -> None:
        self._ingestor = ingestor
        self._notifier = notifier
        self.entries: list[StagedFile] = []

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> StagedFile:
        return self.entries[index]

    def __iter__(self) -> Iterator[StagedFile]:
        return iter(self.entries)

    async def add(self, files: Iterable[tuple[str, BinaryIO]]) -> list[StagedFile]:
        """Stage files and ingest them concurrently.

        Args:
            files: (name, binary source) pairs

        Returns:
            The new entries, in order; failed ones carry an error and are
            no longer staged
        """
        pairs = list(files)
        new_entries = [StagedFile(name, size=_remaining_size(source)) for name, source in pairs]
        self.entries.extend(new_entries)

        await asyncio.gather(
            *(self._ingest(entry, source) for entry, (_, source) in zip(new_entries, pairs))
        )
        return new_entries

    async def _ingest(self, entry: StagedFile, source: BinaryIO) -> None:
        def on_progress(percentage: int) -> None:
            entry.progress = percentage

        def on_upload(percentage: int) -> None:
            entry.upload_progress = percentage

        try:
            entry.handle = await self._ingestor.ingest(
                source, on_progress, name=entry.name, on_upload=on_upload
            )
        except OSError as e:
            entry.error = e
            logger.error(f"Failed to process file {entry.name}: {e}")
            if entry in self.entries:
                self.entries.remove(entry)
            if self._notifier:
                self._notifier.error(f"Failed to process file: {entry.name}")

    def remove(self, index: int) -> StagedFile:
        """Remove and return the entry at index."""
        return self.entries.pop(index)

    def completed_handles(self) -> tuple[ContentHandle, ...]:
        """Handles of entries whose ingestion completed, in staging order."""
        return tuple(entry.handle for entry in self.entries if entry.handle is not None)

    def clear(self) -> None:
        self.entries.clear()


def format_file_size(size: int) -> str:
    """Human-readable file size, e.g. 1536 -> '1.5 KB'."""
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {units[i]}"
