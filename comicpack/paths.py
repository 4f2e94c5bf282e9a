"""Deterministic on-disk locations for issues, scratch images and artifacts."""

from __future__ import annotations

import logging
from pathlib import Path

from comicpack.constants import OutputFormat
from comicpack.errors import FilesystemError

log = logging.getLogger(__name__)

COMICS_DIRNAME = "comics"
IMAGES_DIR_PREFIX = "images-"


def _comic_base(root: str | Path, source: str, name: str) -> Path:
    """Return ``root/comics[/source]/name`` without touching the filesystem."""
    segments = [COMICS_DIRNAME]
    if source:
        segments.append(source)
    segments.append(name)
    return Path(root).resolve().joinpath(*segments)


def _ensure_dir(path: Path) -> Path:
    """Create ``path`` with parents; an existing directory is not an error."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(path, exc.strerror or str(exc)) from exc
    log.debug(f"Using directory {path}")
    return path


def issue_dir(root: str | Path, source: str, name: str) -> Path:
    """
    Return and create the directory holding every issue of one series.

    Parameters:
        root (str | Path): Base output directory.
        source (str): Sanitized source label; empty drops the segment.
        name (str): Sanitized series name.

    Returns:
        Path: ``root/comics/<source>/<name>``.

    Raises:
        FilesystemError: If the directory cannot be created.
    """
    return _ensure_dir(_comic_base(root, source, name))


def images_dir(root: str | Path, source: str, name: str, issue_number: str) -> Path:
    """
    Return and create the scratch directory for the page images of one issue.

    Parameters:
        root (str | Path): Base output directory.
        source (str): Sanitized source label; empty drops the segment.
        name (str): Sanitized series name.
        issue_number (str): Sanitized issue identifier.

    Returns:
        Path: ``root/comics/<source>/<name>/images-<issue_number>``.

    Raises:
        FilesystemError: If the directory cannot be created.
    """
    return _ensure_dir(_comic_base(root, source, name) / f"{IMAGES_DIR_PREFIX}{issue_number}")


def file_name(
    directory: str | Path,
    name: str,
    issue_number: str,
    output_format: OutputFormat | str,
) -> Path:
    """
    Build the artifact path ``<directory>/<name>-<issue_number>.<format>``.

    Parameters:
        directory (str | Path): Directory returned by ``issue_dir``.
        name (str): Sanitized series name.
        issue_number (str): Sanitized issue identifier.
        output_format (OutputFormat | str): Container format used as extension.

    Returns:
        Path: The artifact path. Nothing is created.
    """
    extension = output_format.value if isinstance(output_format, OutputFormat) else output_format
    return Path(directory) / f"{name}-{issue_number}.{extension}"
