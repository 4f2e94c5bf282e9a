"""Immutable issue models shared between the CLI and the assembly pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from comicpack.constants import OutputFormat

Container = Literal["pdf", "epub", "zip", "rar"]


@dataclass(frozen=True, slots=True)
class Comic:
    """One issue to assemble: metadata plus the ordered page image URLs."""

    name: str
    issue_number: str
    format: str
    links: tuple[str, ...] = field(default_factory=tuple)
    source: str = ""
    author: str = ""

    def __post_init__(self) -> None:
        """Freeze ``links`` so list arguments cannot change after construction."""
        object.__setattr__(self, "links", tuple(self.links))


@dataclass(frozen=True, slots=True)
class ComicResult:
    """Outcome of one successful ``make_comic`` run."""

    path: Path
    output_format: OutputFormat
    pages: int
    filtered_links: int
    failed_pages: tuple[int, ...]
    container: Container

    @property
    def skipped_pages(self) -> int:
        """Return how many links did not end up as a page."""
        return self.filtered_links + len(self.failed_pages)

    @property
    def has_skipped_pages(self) -> bool:
        """Return whether at least one link was filtered or tolerated as failed."""
        return self.skipped_pages > 0
