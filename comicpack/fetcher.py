"""HTTP retrieval of page images and atomic hand-off to their destination."""

from __future__ import annotations

import logging
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import BinaryIO

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from comicpack.constants import DEFAULT_USER_AGENT, ImageType
from comicpack.errors import FetchError, FilesystemError
from comicpack.images import DEFAULT_JPEG_QUALITY, NormalizedImage, normalize
from comicpack.types import SessionLike

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = (5.0, 30.0)
PAGE_NAME_TEMPLATE = "page-{index:04d}"
ORIGINAL_SUFFIX = "-original"


def page_stem(index: int, target: ImageType) -> str:
    """Return the scratch file stem for page ``index`` stored as ``target``."""
    stem = PAGE_NAME_TEMPLATE.format(index=index)
    if target is ImageType.RAW:
        stem += ORIGINAL_SUFFIX
    return stem


def _write_atomic(path: Path, content: bytes) -> None:
    """Write ``content`` to a temporary sibling of ``path`` and rename it into place."""
    temp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            "wb", delete=False, dir=path.parent, prefix=f".{path.name}.", suffix=".part"
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(content)
        # Replace is atomic on the same filesystem.
        temp_path.replace(path)
    except OSError as exc:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise FilesystemError(path, exc.strerror or str(exc)) from exc


class ImageFetcher:
    """Download page images and store them in the encoding an assembler expects."""

    def __init__(
        self,
        session: SessionLike | None = None,
        *,
        timeout: tuple[float, float] = DEFAULT_TIMEOUT,
        retries: int = 0,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": user_agent})
            self._configure_transport(session, retries=retries)
        self.session = session
        self.timeout = timeout
        self.jpeg_quality = jpeg_quality

    @staticmethod
    def _configure_transport(session: SessionLike, retries: int = 0) -> None:
        """Mount HTTP(S) adapters retrying transient failures ``retries`` times."""
        retry = Retry(
            total=retries,
            backoff_factor=0.5,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset({"GET"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

    def download(self, url: str, index: int | None = None) -> tuple[bytes, str | None]:
        """
        Download one image blob.

        Returns:
            tuple[bytes, str | None]: Response body and its Content-Type header.

        Raises:
            FetchError: On transport errors or non-success status codes.
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise FetchError(url, str(exc), index=index) from exc

        content = response.content
        if not content:
            raise FetchError(url, "empty response body", index=index)
        return content, response.headers.get("Content-Type")

    def _load(self, url: str, target: ImageType, index: int | None) -> NormalizedImage:
        """Download ``url`` and normalize it to ``target``."""
        content, content_type = self.download(url, index=index)
        return normalize(
            content,
            target,
            source_hint=content_type,
            label=url if index is None else f"{url} (page {index})",
            jpeg_quality=self.jpeg_quality,
        )

    def fetch(
        self,
        url: str,
        dest: Path | BinaryIO,
        target: ImageType = ImageType.JPG,
        *,
        index: int | None = None,
    ) -> NormalizedImage:
        """
        Download ``url``, normalize it to ``target`` and write it to ``dest``.

        ``dest`` is either a file path, written atomically, or a writable binary
        buffer, written only once the payload decoded successfully.

        Raises:
            FetchError: If the download fails.
            DecodeError: If the payload is not a supported image.
            FilesystemError: If the destination file cannot be written.
        """
        image = self._load(url, target, index)
        if isinstance(dest, Path):
            _write_atomic(dest, image.content)
        else:
            dest.write(image.content)
        return image

    def fetch_page(self, url: str, directory: Path, index: int, target: ImageType) -> Path:
        """
        Fetch one page into ``directory`` under a name encoding its link index.

        Returns:
            Path: The written scratch file.
        """
        image = self._load(url, target, index)
        path = directory / f"{page_stem(index, target)}.{image.extension}"
        _write_atomic(path, image.content)
        log.debug(f"Stored page {index} from {url} at {path}")
        return path

    @staticmethod
    def find_page(directory: Path, index: int, target: ImageType) -> Path | None:
        """Return a scratch page kept from an earlier run, if one exists."""
        stem = page_stem(index, target)
        if target is not ImageType.RAW:
            candidate = directory / f"{stem}.{target.value}"
            return candidate if candidate.is_file() else None
        for candidate in sorted(directory.glob(f"{stem}.*")):
            if candidate.is_file():
                return candidate
        return None
