"""Small focused services used by comic assembly orchestration."""

from __future__ import annotations

import logging
import math
from concurrent.futures import Future, ThreadPoolExecutor, as_completed, wait
from contextlib import nullcontext
from pathlib import Path
from typing import ContextManager, Sequence

import click

from comicpack.constants import ImageType
from comicpack.errors import DecodeError, FetchError
from comicpack.fetcher import ImageFetcher
from comicpack.pipeline.fetch_report import FetchReport

log = logging.getLogger(__name__)

PageRequest = tuple[int, str]


class PageFetchService:
    """Fetch the pages of one issue with bounded parallelism and a failure budget."""

    def __init__(
        self,
        fetcher: ImageFetcher,
        *,
        workers: int = 4,
        max_failed_ratio: float = 0.0,
        reuse_images: bool = True,
        progress: bool = False,
    ) -> None:
        self.fetcher = fetcher
        self.workers = workers
        self.max_failed_ratio = max_failed_ratio
        self.reuse_images = reuse_images
        self.progress = progress

    def allowed_failures(self, total: int) -> int:
        """Return how many page failures an issue of ``total`` pages tolerates."""
        return math.floor(self.max_failed_ratio * total)

    def _progress_bar(self, total: int, label: str) -> ContextManager:
        """Return a click progress bar, or a no-op context when progress is off."""
        if self.progress and total:
            return click.progressbar(length=total, label=label, show_pos=True)
        return nullcontext()

    def fetch_pages(
        self,
        pages: Sequence[PageRequest],
        directory: Path,
        target: ImageType,
        *,
        label: str = "pages",
    ) -> FetchReport:
        """
        Fetch ``(index, url)`` pages into ``directory`` encoded as ``target``.

        Failed pages are tolerated while the failure count stays within the budget.
        The failure exceeding it cancels outstanding fetches, deletes files written
        by this call and is re-raised.
        """
        report = FetchReport()
        pending: list[PageRequest] = []
        for index, url in pages:
            existing = self.fetcher.find_page(directory, index, target) if self.reuse_images else None
            if existing is not None:
                report.mark_reused(index, existing)
            else:
                pending.append((index, url))

        if report.reused:
            log.info(f"Reusing {report.reused} retained page image(s) from {directory}")
        if not pending:
            return report

        allowed = self.allowed_failures(len(pages))
        workers = max(1, min(self.workers, len(pending)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="comicpack-fetch") as executor:
            futures: dict[Future, PageRequest] = {
                executor.submit(self.fetcher.fetch_page, url, directory, index, target): (index, url)
                for index, url in pending
            }
            try:
                with self._progress_bar(len(futures), label) as progress_bar:
                    for future in as_completed(futures):
                        index, url = futures[future]
                        if progress_bar is not None:
                            progress_bar.update(1)
                        try:
                            path = future.result()
                        except (FetchError, DecodeError) as exc:
                            if report.failed >= allowed:
                                log.error(f"Page {index} failed, aborting issue: {exc}")
                                raise
                            report.mark_failed(index)
                            log.warning(f"Skipping page {index} ({report.failed}/{allowed} tolerated): {exc}")
                            continue
                        report.mark_fetched(index, path)
            except BaseException:
                self._cancel(futures, report)
                raise

        log.debug(f"Fetched {len(report.pages) - report.reused} page(s), {report.failed} failed")
        return report

    @staticmethod
    def _cancel(futures: dict[Future, PageRequest], report: FetchReport) -> None:
        """Cancel queued fetches, wait for running ones and discard their output."""
        for future in futures:
            future.cancel()
        wait(futures)
        for future in futures:
            if future.cancelled() or future.exception() is not None:
                continue
            path = future.result()
            if path not in report.written:
                report.written.append(path)
        report.discard_written()
