from __future__ import annotations
import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import AsyncIterator, Iterable, List, Optional, Sequence
from template_service.core.errors import TemplateServiceError
from template_service.core.github import GitHubArchiveClient
from template_service.core.progress import (
    PHASE_EXTRACT,
    PHASE_FAILED,
    PHASE_FETCH,
    PHASE_VALIDATE,
    ProgressObserver,
    ProgressReporter,
)
from template_service.core.registry import TemplateRegistry
from template_service.pipeline.assembler import assemble
from template_service.pipeline.reader import ArchiveReader
from template_service.pipeline.types import AssembledFile
from template_service.pipeline.utils import archive_filename
from template_service.pipeline.writer import (
    DEFAULT_COMPRESSION_LEVEL,
    buffer_archive,
    stream_archive,
)

log = logging.getLogger(__name__)


@dataclass
class PreparedArchive:
    """Everything needed to send one response, built before any body byte."""
    request_id: str
    template_names: List[str]
    filename: str
    files: List[AssembledFile] = field(default_factory=list)
    reporter: Optional[ProgressReporter] = field(default=None, repr=False)


class TemplateService:
    """
    Drives validate -> fetch -> open -> assemble for one request.

    Each call fetches its own copy of the upstream archive; nothing is shared
    between requests except the read-only registry.
    """

    def __init__(
        self,
        registry: TemplateRegistry,
        client: GitHubArchiveClient,
        observers: Iterable[ProgressObserver] = (),
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        stream_archives: bool = True,
    ):
        self.registry = registry
        self.client = client
        self.observers = list(observers)
        self.compression_level = compression_level
        self.stream_archives = stream_archives

    async def prepare(
        self,
        template_names: Sequence[str],
        request_id: Optional[str] = None,
    ) -> PreparedArchive:
        request_id = request_id or uuid.uuid4().hex[:12]
        reporter = ProgressReporter(self.observers, request_id=request_id)
        extra = {"request_id": request_id, "stage": PHASE_VALIDATE}
        try:
            names = self.registry.validate(template_names)
            reporter.report(PHASE_VALIDATE, 5, f"Requested templates: {', '.join(names)}")

            log.info("Fetching upstream archive", extra={**extra, "stage": PHASE_FETCH})
            data = await self.client.fetch_archive()
            reporter.report(PHASE_FETCH, 30, f"Fetched {len(data)} bytes")

            # Decompression is CPU bound; keep it off the event loop.
            files = await asyncio.to_thread(self._extract, data, names, reporter)
        except TemplateServiceError as e:
            log.warning("Request rejected: %s", e.message, extra=extra)
            reporter.report(PHASE_FAILED, 100, e.message)
            raise

        return PreparedArchive(
            request_id=request_id,
            template_names=names,
            filename=archive_filename(names),
            files=files,
            reporter=reporter,
        )

    def _extract(
        self,
        data: bytes,
        names: List[str],
        reporter: ProgressReporter,
    ) -> List[AssembledFile]:
        with ArchiveReader() as reader:
            entries = reader.open(data)
            reporter.report(PHASE_EXTRACT, 40, f"Opened archive with {len(entries)} entries")
            return assemble(reader, names, reporter)

    def stream(self, prepared: PreparedArchive) -> AsyncIterator[bytes]:
        return stream_archive(
            prepared.files,
            compression_level=self.compression_level,
            reporter=prepared.reporter,
            request_id=prepared.request_id,
        )

    async def buffer(self, prepared: PreparedArchive) -> bytes:
        return await asyncio.to_thread(
            buffer_archive, prepared.files, compression_level=self.compression_level
        )
