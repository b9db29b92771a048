"""Path helpers for the extraction pipeline."""
from typing import Sequence
from template_service.pipeline.types import ArchiveEntry


def root_folder(entries: Sequence[ArchiveEntry]) -> str:
    """Top-level folder name, taken from the first entry.

    GitHub names it ``<repo>-<ref>``, so it is never assumed.
    """
    if not entries:
        return ""
    return entries[0].path.split("/")[0]


def template_prefix(root: str, template_name: str) -> str:
    return f"{root}/{template_name}/"


def archive_filename(template_names: Sequence[str]) -> str:
    """Download filename for a request; same input, same name."""
    if len(template_names) == 1:
        return f"{template_names[0]}-template.zip"
    return f"{'-'.join(template_names)}-stack.zip"
