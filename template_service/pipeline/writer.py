"""Archive Writer: compresses assembled files into a ZIP stream.

Compression is done by zipstream-ng while the archive is being iterated,
so the client starts receiving bytes after the first member is deflated
and the compressed output is never held in memory as a whole.

Members are staged in a per-archive temporary directory. zipstream takes
each member's timestamp and mode from the staged file, which is what keeps
repeated downloads byte-identical. The directory is removed when the writer
closes, fails or is aborted.
"""
from __future__ import annotations
import asyncio
import logging
import os
import shutil
import tempfile
import time
import zipfile
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Iterator, Optional, Sequence
from zipstream import ZipStream
from template_service.core.errors import WriteFailed
from template_service.core.progress import (
    PHASE_DONE,
    PHASE_FAILED,
    PHASE_WRITE,
    ProgressReporter,
)
from template_service.pipeline.types import AssembledFile

log = logging.getLogger(__name__)

DEFAULT_COMPRESSION_LEVEL = 9
# 1980-01-01 00:00 local time, the earliest timestamp a ZIP can hold.
FIXED_MTIME = time.mktime((1980, 1, 1, 0, 0, 0, 0, 1, -1))
FILE_MODE = 0o644
# Buffered archives above this size spill from memory to a temporary file.
SPOOL_MAX_BYTES = 16 * 1024 * 1024


class WriterState(str, Enum):
    IDLE = "IDLE"
    OPEN = "OPEN"
    APPENDING = "APPENDING"
    FINALIZING = "FINALIZING"
    CLOSED = "CLOSED"
    FAILED = "FAILED"


class ArchiveWriter:
    """
    Lifecycle wrapper around ``zipstream.ZipStream``.

    IDLE -> OPEN -> APPENDING* -> FINALIZING -> CLOSED, and FAILED from any
    of OPEN, APPENDING or FINALIZING. CLOSED and FAILED are terminal; a
    caller can tell a completed archive from an aborted one by ``state``.
    ``chunks()`` is the FINALIZING phase: it yields the archive bytes and
    ends with the central directory.
    """

    def __init__(self, compression_level: int = DEFAULT_COMPRESSION_LEVEL):
        self.compression_level = compression_level
        self.state = WriterState.IDLE
        self.entries_written = 0
        self.staging_dir: Optional[Path] = None
        self._zip: Optional[ZipStream] = None

    def _require(self, *states: WriterState) -> None:
        if self.state not in states:
            raise WriteFailed(f"Archive writer cannot proceed from state {self.state.value}")

    def _fail(self, action: str, exc: Exception) -> WriteFailed:
        self.state = WriterState.FAILED
        self._release()
        log.error("Archive writer failed while %s: %s", action, exc)
        return WriteFailed(f"Archive write failed while {action}: {exc}")

    def _release(self) -> None:
        self._zip = None
        if self.staging_dir is not None:
            shutil.rmtree(self.staging_dir, ignore_errors=True)
            self.staging_dir = None

    def open(self) -> "ArchiveWriter":
        self._require(WriterState.IDLE)
        try:
            self.staging_dir = Path(tempfile.mkdtemp(prefix="template-archive-"))
        except OSError as e:
            raise self._fail("opening", e) from e
        self._zip = ZipStream(
            compress_type=zipfile.ZIP_DEFLATED,
            compress_level=self.compression_level,
        )
        self.state = WriterState.OPEN
        return self

    def append(self, output_path: str, content: bytes) -> None:
        self._require(WriterState.OPEN, WriterState.APPENDING)
        staged = self.staging_dir / f"{self.entries_written:06d}"
        try:
            staged.write_bytes(content)
            os.chmod(staged, FILE_MODE)
            os.utime(staged, (FIXED_MTIME, FIXED_MTIME))
            self._zip.add_path(str(staged), arcname=output_path)
        except (OSError, ValueError) as e:
            raise self._fail(f"appending {output_path}", e) from e
        self.state = WriterState.APPENDING
        self.entries_written += 1

    def chunks(self) -> Iterator[bytes]:
        """Yield the compressed archive; the writer is CLOSED once exhausted."""
        self._require(WriterState.OPEN, WriterState.APPENDING)
        self.state = WriterState.FINALIZING
        try:
            for chunk in self._zip:
                yield chunk
        except (OSError, ValueError, RuntimeError) as e:
            raise self._fail("streaming", e) from e
        self._release()
        self.state = WriterState.CLOSED

    def abort(self, reason: str = "") -> None:
        """Stop writing without producing a valid archive end record."""
        if self.state in (WriterState.CLOSED, WriterState.FAILED):
            return
        self._release()
        self.state = WriterState.FAILED
        if reason:
            log.warning("Archive writer aborted: %s", reason)

    def close(self) -> None:
        """Release staged files; an unfinished archive counts as aborted."""
        self.abort()


def open_archive(
    files: Sequence[AssembledFile],
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
) -> ArchiveWriter:
    """Stage ``files`` in order on a fresh writer."""
    writer = ArchiveWriter(compression_level).open()
    try:
        for f in files:
            writer.append(f.output_path, f.content)
    except WriteFailed:
        writer.close()
        raise
    return writer


def buffer_archive(
    files: Sequence[AssembledFile],
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
) -> bytes:
    """Build the whole archive before sending, for sinks that need a length."""
    writer = open_archive(files, compression_level)
    try:
        with tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_BYTES) as spool:
            for chunk in writer.chunks():
                spool.write(chunk)
            spool.seek(0)
            return spool.read()
    finally:
        writer.close()


_END = object()


async def stream_archive(
    files: Sequence[AssembledFile],
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
    reporter: Optional[ProgressReporter] = None,
    request_id: str = "-",
) -> AsyncIterator[bytes]:
    """
    Yield the archive chunk by chunk.

    Staging and deflate run in worker threads so the event loop keeps
    serving other requests. Once the first chunk is out the response status
    can no longer change, so a disconnect or write failure aborts the writer
    and is only logged.
    """
    extra = {"request_id": request_id, "stage": PHASE_WRITE}
    writer: Optional[ArchiveWriter] = None
    sent = 0
    try:
        writer = await asyncio.to_thread(open_archive, files, compression_level)
        if reporter:
            reporter.report(PHASE_WRITE, 90, f"Writing {len(files)} files")
        chunks = writer.chunks()
        while True:
            chunk = await asyncio.to_thread(next, chunks, _END)
            if chunk is _END:
                break
            sent += len(chunk)
            yield chunk
    except (GeneratorExit, asyncio.CancelledError):
        if writer is not None:
            writer.abort("client disconnected")
        log.warning(
            "Archive stream aborted after %d bytes of %d files", sent, len(files), extra=extra,
        )
        if reporter:
            reporter.report(PHASE_FAILED, 100, "Client disconnected")
        raise
    except WriteFailed:
        log.error(
            "Archive stream failed after %d bytes of %d files", sent, len(files),
            exc_info=True, extra=extra,
        )
        if reporter:
            reporter.report(PHASE_FAILED, 100, "Archive write failed")
        raise
    else:
        log.info("Archive stream completed: %d files, %d bytes", len(files), sent, extra=extra)
        if reporter:
            reporter.report(PHASE_DONE, 100, "Archive sent")
    finally:
        if writer is not None:
            writer.close()
