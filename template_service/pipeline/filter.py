"""Path Filter: picks the files of one template folder."""
from typing import List, Sequence
from template_service.core.errors import TemplateNotFound
from template_service.pipeline.reader import ArchiveReader
from template_service.pipeline.types import ArchiveEntry, ExtractedFile


def select(
    reader: ArchiveReader,
    entries: Sequence[ArchiveEntry],
    prefix: str,
    template_name: str,
) -> List[ExtractedFile]:
    """
    Select every file under ``prefix`` and strip the prefix from its path.

    Directory markers count as a match but are never emitted. Archive order
    is preserved.

    Raises:
        TemplateNotFound: no entry lies under ``prefix``.
    """
    matched = [e for e in entries if e.path.startswith(prefix)]
    if not matched:
        raise TemplateNotFound(template_name)

    files = []
    for entry in matched:
        if not entry.is_file:
            continue
        files.append(ExtractedFile(
            relative_path=entry.path[len(prefix):],
            content=reader.materialize(entry),
        ))
    return files
