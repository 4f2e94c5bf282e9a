"""Per-issue page fetch bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True)
class FetchReport:
    """Accumulate fetched pages and tolerated failures for one issue."""

    pages: dict[int, Path] = field(default_factory=dict)
    written: list[Path] = field(default_factory=list)
    reused: int = 0
    failed_indices: list[int] = field(default_factory=list)

    def mark_fetched(self, index: int, path: Path) -> None:
        """Record a page downloaded during this run."""
        self.pages[index] = path
        self.written.append(path)

    def mark_reused(self, index: int, path: Path) -> None:
        """Record a page taken from a retained scratch file."""
        self.pages[index] = path
        self.reused += 1

    def mark_failed(self, index: int) -> None:
        """Record a tolerated page failure."""
        self.failed_indices.append(index)

    @property
    def failed(self) -> int:
        """Return the number of tolerated page failures."""
        return len(self.failed_indices)

    def ordered_paths(self) -> list[Path]:
        """Return page files sorted by their original link index."""
        return [self.pages[index] for index in sorted(self.pages)]

    def discard_written(self) -> None:
        """Delete every scratch file written during this run."""
        for path in self.written:
            path.unlink(missing_ok=True)
        self.written.clear()
