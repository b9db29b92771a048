"""Archive Reader: lists upstream archive members and loads them on demand."""
from __future__ import annotations
import io
import logging
import zipfile
import zlib
from typing import List, Optional
from template_service.core.errors import CorruptArchive
from template_service.pipeline.types import ArchiveEntry, EntryKind

log = logging.getLogger(__name__)


class ArchiveReader:
    """
    Wraps a ZIP held in memory.

    Only the central directory is parsed by ``open``; member data is
    decompressed when ``materialize`` asks for it.
    """

    def __init__(self) -> None:
        self._zip: Optional[zipfile.ZipFile] = None
        self._entries: List[ArchiveEntry] = []

    def open(self, data: bytes) -> List[ArchiveEntry]:
        if self._zip is not None:
            raise RuntimeError("ArchiveReader is already open")
        try:
            self._zip = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError, EOFError) as e:
            log.error("Upstream archive could not be opened: %s", e)
            raise CorruptArchive(f"Upstream archive could not be opened: {e}") from e

        self._entries = [
            ArchiveEntry(
                path=info.filename,
                kind=EntryKind.DIRECTORY if info.is_dir() else EntryKind.FILE,
                size_hint=None if info.is_dir() else info.file_size,
            )
            for info in self._zip.infolist()
        ]
        return list(self._entries)

    @property
    def entries(self) -> List[ArchiveEntry]:
        return list(self._entries)

    def materialize(self, entry: ArchiveEntry) -> bytes:
        if self._zip is None:
            raise RuntimeError("ArchiveReader is not open")
        if not entry.is_file:
            raise ValueError(f"Cannot materialize directory entry {entry.path}")
        try:
            return self._zip.read(entry.path)
        except (zipfile.BadZipFile, zlib.error, EOFError, KeyError, NotImplementedError) as e:
            # CRC mismatches surface as BadZipFile
            log.error("Failed to read %s from upstream archive: %s", entry.path, e)
            raise CorruptArchive(f"Failed to read {entry.path}: {e}") from e

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    def __enter__(self) -> "ArchiveReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
