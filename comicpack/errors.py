"""Domain-specific exceptions raised by comicpack runtime components."""

from __future__ import annotations

from pathlib import Path


class ComicPackError(Exception):
    """Base exception for comicpack-specific runtime failures."""


class ConfigurationError(ComicPackError):
    """Raised for unknown output formats, unusable comic fields or bad settings."""


class FetchError(ComicPackError):
    """Raised when a page image could not be downloaded."""

    def __init__(self, url: str, reason: str, index: int | None = None) -> None:
        """Store the failing URL, its page index and a short reason."""
        self.url = url
        self.reason = reason
        self.index = index
        where = f"page {index} " if index is not None else ""
        super().__init__(f"Failed to fetch {where}{url}: {reason}")


class DecodeError(ComicPackError):
    """Raised when downloaded bytes are not a decodable raster image."""

    def __init__(self, label: str, reason: str) -> None:
        """Store the offending URL or page label and the decoder message."""
        self.label = label
        self.reason = reason
        super().__init__(f"Cannot decode image {label}: {reason}")


class EmptyComicError(ComicPackError):
    """Raised when no page survived filtering and fetching."""


class FilesystemError(ComicPackError):
    """Raised when a directory or scratch file cannot be created."""

    def __init__(self, path: str | Path, reason: str) -> None:
        """Store the failing path and the underlying OS error message."""
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Filesystem error at {self.path}: {reason}")


class AssemblyError(ComicPackError):
    """Raised when a format assembler fails; partial output is removed first."""

    def __init__(self, output_format: str, path: str | Path, reason: str) -> None:
        """Store the container format, target path and failure reason."""
        self.output_format = output_format
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to assemble {output_format} {self.path}: {reason}")
