"""End-to-end assembly of one comic issue."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from comicpack import paths
from comicpack.assemblers import create_assembler
from comicpack.config import Settings, load_settings
from comicpack.constants import OutputFormat
from comicpack.domain.comic import Comic, ComicResult
from comicpack.errors import ConfigurationError, EmptyComicError
from comicpack.fetcher import ImageFetcher
from comicpack.pipeline.services import PageFetchService
from comicpack.types import SessionLike
from comicpack.utils import is_valid_url, sanitize

log = logging.getLogger(__name__)


class ComicMaker:
    """
    Turn a ``Comic`` into a packaged artifact below ``root``.

    Validates metadata, resolves the issue and scratch directories, fetches every
    valid link through the image fetcher and hands the ordered pages to the
    assembler registered for the requested format.
    """

    def __init__(
        self,
        root: str | Path | None = None,
        *,
        settings: Settings | None = None,
        session: SessionLike | None = None,
        fetcher: ImageFetcher | None = None,
        progress: bool = False,
    ) -> None:
        self.settings = settings or load_settings()
        self.root = Path(root if root is not None else self.settings.output_dir)
        self.fetcher = fetcher or ImageFetcher(
            session,
            timeout=self.settings.request_timeout,
            retries=self.settings.retries,
            jpeg_quality=self.settings.jpeg_quality,
            user_agent=self.settings.user_agent,
        )
        self.page_service = PageFetchService(
            self.fetcher,
            workers=self.settings.workers,
            max_failed_ratio=self.settings.max_failed_ratio,
            reuse_images=self.settings.reuse_images and self.settings.keep_images,
            progress=progress,
        )

    def _parse_format(self, comic: Comic) -> OutputFormat:
        return OutputFormat.parse(comic.format, case_sensitive=self.settings.format_case_sensitive)

    def output_path(self, comic: Comic) -> Path:
        """
        Return where ``comic`` will be written, creating the issue directory.

        Raises:
            ConfigurationError: For an unknown format or a name that sanitizes to nothing.
            FilesystemError: If the directory cannot be created.
        """
        output_format = self._parse_format(comic)
        name, source, issue_number = self._segments(comic)
        directory = paths.issue_dir(self.root, source, name)
        return paths.file_name(directory, name, issue_number, output_format)

    @staticmethod
    def _segments(comic: Comic) -> tuple[str, str, str]:
        """Return sanitized ``(name, source, issue_number)`` path segments."""
        name = sanitize(comic.name)
        if not name:
            raise ConfigurationError(f"Comic name '{comic.name}' is empty after sanitizing")
        issue_number = sanitize(comic.issue_number)
        if not issue_number:
            raise ConfigurationError(f"Issue number '{comic.issue_number}' is empty after sanitizing")
        return name, sanitize(comic.source), issue_number

    def make_comic(self, comic: Comic) -> ComicResult:
        """
        Fetch every page of ``comic`` and package it in the requested format.

        Returns:
            ComicResult: Artifact path, page count and skipped page bookkeeping.

        Raises:
            ConfigurationError: Unknown format or unusable name, before any side effect.
            FetchError | DecodeError: A page failure beyond the tolerated ratio.
            EmptyComicError: No page survived filtering and fetching.
            FilesystemError: A directory or scratch file could not be written.
            AssemblyError: The container could not be written.
        """
        output_format = self._parse_format(comic)
        name, source, issue_number = self._segments(comic)
        assembler = create_assembler(output_format, self.settings)

        log.info(f"Comic: {comic.name} #{comic.issue_number} ({output_format.value})")
        directory = paths.issue_dir(self.root, source, name)
        scratch_dir = paths.images_dir(self.root, source, name, issue_number)
        out_file = paths.file_name(directory, name, issue_number, output_format)

        page_requests = [(index, url) for index, url in enumerate(comic.links) if is_valid_url(url)]
        filtered = len(comic.links) - len(page_requests)
        if filtered:
            log.info(f"    Skipped {filtered} link(s) rejected by the URL filter")
        if not page_requests:
            raise EmptyComicError(f"No valid page links for {comic.name} #{comic.issue_number}")

        report = self.page_service.fetch_pages(
            page_requests,
            scratch_dir,
            assembler.image_encoding,
            label=f"{name}-{issue_number}",
        )
        page_paths = report.ordered_paths()
        if not page_paths:
            raise EmptyComicError(f"No page of {comic.name} #{comic.issue_number} could be fetched")

        assembler.assemble(page_paths, comic, out_file)

        if not self.settings.keep_images:
            shutil.rmtree(scratch_dir, ignore_errors=True)
            log.debug(f"Removed scratch directory {scratch_dir}")

        return ComicResult(
            path=out_file,
            output_format=output_format,
            pages=len(page_paths),
            filtered_links=filtered,
            failed_pages=tuple(sorted(report.failed_indices)),
            container=assembler.container,
        )


def make_comic(comic: Comic, root: str | Path | None = None, **kwargs) -> ComicResult:
    """Assemble ``comic`` below ``root`` with a one-off ``ComicMaker``."""
    return ComicMaker(root, **kwargs).make_comic(comic)
