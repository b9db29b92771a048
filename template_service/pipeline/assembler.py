"""Template Assembler: builds the flat file set for one request."""
import logging
from typing import List, Optional, Sequence
from template_service.core.progress import PHASE_ASSEMBLE, ProgressReporter
from template_service.pipeline.filter import select
from template_service.pipeline.reader import ArchiveReader
from template_service.pipeline.types import AssembledFile
from template_service.pipeline.utils import root_folder, template_prefix

log = logging.getLogger(__name__)


def assemble(
    reader: ArchiveReader,
    template_names: Sequence[str],
    reporter: Optional[ProgressReporter] = None,
) -> List[AssembledFile]:
    """
    Extract the requested templates in the order given.

    With a single template the paths are used as-is. With several, each path
    gets a ``<template>/`` prefix so that files sharing a name across
    templates (``package.json``) stay distinct. Any missing template aborts
    the whole assembly.
    """
    if not template_names:
        raise ValueError("At least one template name is required")

    entries = reader.entries
    root = root_folder(entries)
    combined = len(template_names) > 1
    total = len(template_names)

    assembled: List[AssembledFile] = []
    for index, name in enumerate(template_names):
        files = select(reader, entries, template_prefix(root, name), name)
        for f in files:
            output_path = f"{name}/{f.relative_path}" if combined else f.relative_path
            assembled.append(AssembledFile(output_path=output_path, content=f.content))
        log.debug("Extracted %d files for template %s", len(files), name)
        if reporter:
            reporter.report(
                PHASE_ASSEMBLE,
                40 + int((index + 1) * 50 / total),
                f"Extracted {len(files)} files from {name}",
            )
    return assembled
