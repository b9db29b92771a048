"""Dataclasses for the extraction pipeline."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EntryKind(str, Enum):
    FILE = "File"
    DIRECTORY = "Directory"


@dataclass(frozen=True)
class ArchiveEntry:
    """One member of the upstream archive."""
    path: str  # POSIX-style, as stored in the archive
    kind: EntryKind
    size_hint: Optional[int] = None

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE


@dataclass(frozen=True)
class ExtractedFile:
    """A file selected from one template folder."""
    relative_path: str  # Relative to the template folder
    content: bytes


@dataclass(frozen=True)
class AssembledFile:
    """A file as it will appear in the output archive."""
    output_path: str
    content: bytes
