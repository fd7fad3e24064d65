"""
Input Discovery
===============

Resolve a command line input into the spec files to render.
"""

from typing import Iterator, Optional, Union
import os
from pathlib import Path

from gosling_screenshot.config.logging import get_logger
from gosling_screenshot.config.settings import get_settings
from gosling_screenshot.models.schemas import SourceKind, SpecSource

logger = get_logger(__name__)


class NotFoundError(Exception):
    """Exception raised when an input path does not exist."""

    pass


def resolve_source(input_path: Union[str, Path]) -> SpecSource:
    """
    Resolve an input path to an absolute spec source.

    Raises:
        NotFoundError: If the path does not exist
    """
    path = Path(input_path).expanduser().resolve()
    if not path.exists():
        raise NotFoundError(f"Input path does not exist: {input_path}")

    kind = SourceKind.DIRECTORY if path.is_dir() else SourceKind.FILE
    return SpecSource(path=path, kind=kind)


def resolve_inputs(
    input_path: Union[str, Path], extension: Optional[str] = None
) -> Iterator[SpecSource]:
    """
    Resolve an input path into the spec files it designates.

    A file yields itself. A directory lazily yields the regular files inside it
    whose extension matches ``extension`` case-insensitively, in the order the
    operating system lists them; that order is not stable across platforms.
    Other entries are skipped with a notice.

    Args:
        input_path: Spec file or directory of spec files
        extension: Spec file extension, defaults to the configured one

    Returns:
        Iterator of file sources

    Raises:
        NotFoundError: If the path does not exist. Raised on call, not on
            first iteration.
    """
    source = resolve_source(input_path)
    if source.kind is SourceKind.FILE:
        return iter([source])

    extension = _normalize_extension(extension or get_settings().spec_extension)
    return _iter_directory(source.path, extension)


def _normalize_extension(extension: str) -> str:
    extension = extension.strip().lower()
    return extension if extension.startswith(".") else f".{extension}"


def _iter_directory(directory: Path, extension: str) -> Iterator[SpecSource]:
    """Yield matching files; listing errors propagate to the caller."""
    with os.scandir(directory) as entries:
        for entry in entries:
            entry_path = Path(entry.path)
            if entry.is_file() and entry_path.suffix.lower() == extension:
                yield SpecSource(path=entry_path, kind=SourceKind.FILE)
            else:
                logger.info("Skipping non-spec entry", file=entry.name, expected=extension)
