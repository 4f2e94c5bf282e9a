"""End-to-end tests for comic assembly orchestration."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path

import pytest
import requests
from PIL import Image
from pypdf import PdfReader

from comicpack import make_comic
from comicpack.config import Settings
from comicpack.domain.comic import Comic
from comicpack.errors import ConfigurationError, EmptyComicError, FetchError
from comicpack.pipeline.maker import ComicMaker

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)


def _png_bytes(color: tuple[int, int, int]) -> bytes:
    """Create a small in-memory PNG image payload for tests."""
    image = Image.new("RGB", (10, 14), color=color)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class DummyResponse:
    """Response test double with an image payload."""

    def __init__(self, content: bytes, status_code: int = 200) -> None:
        """Store payload and status code."""
        self.content = content
        self.status_code = status_code
        self.headers = {"Content-Type": "image/png"}

    def raise_for_status(self) -> None:
        """Raise HTTPError for error statuses."""
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Not Found")


class DummySession:
    """Session test double serving images by URL and 404 for anything else."""

    def __init__(self, pages: dict[str, bytes]) -> None:
        """Store page payloads keyed by URL."""
        self.pages = pages
        self.headers: dict[str, str] = {}
        self.requested: list[str] = []

    def get(self, url: str, timeout: object = None) -> DummyResponse:
        """Return the page payload or a 404 response."""
        self.requested.append(url)
        if url in self.pages:
            return DummyResponse(self.pages[url])
        return DummyResponse(b"", status_code=404)

    def mount(self, prefix: str, adapter: object) -> None:
        """Accept transport adapters without using them."""


def _colored_pages(*colors: tuple[int, int, int]) -> dict[str, bytes]:
    """Map generated page URLs to solid-color PNG payloads."""
    return {f"https://cdn.example.com/p/{index}.png": _png_bytes(color) for index, color in enumerate(colors)}


def _maker(root: Path, session: DummySession, **settings: object) -> ComicMaker:
    """Build a ComicMaker with defaults overridden by ``settings``."""
    return ComicMaker(root, settings=Settings(**{"workers": 2, **settings}), session=session)


def test_three_page_pdf(tmp_path: Path) -> None:
    """Verify a three-page comic becomes a three-page PDF at the expected path."""
    pages = _colored_pages(RED, GREEN, BLUE)
    comic = Comic(name="foo", issue_number="1", format="pdf", links=list(pages))

    result = _maker(tmp_path, DummySession(pages)).make_comic(comic)

    assert result.path == tmp_path.resolve() / "comics" / "foo" / "foo-1.pdf"
    assert result.pages == 3
    assert result.container == "pdf"
    assert result.skipped_pages == 0
    assert len(PdfReader(result.path).pages) == 3


def test_epub_carries_author(tmp_path: Path) -> None:
    """Verify the author ends up in the EPUB package document."""
    pages = _colored_pages(RED, GREEN)
    comic = Comic(name="foo", issue_number="2", format="epub", links=list(pages), author="Jane Doe")

    result = _maker(tmp_path, DummySession(pages)).make_comic(comic)

    assert result.path.name == "foo-2.epub"
    with zipfile.ZipFile(result.path) as archive:
        assert "Jane Doe</dc:creator>" in archive.read("EPUB/content.opf").decode("utf-8")


def test_unknown_format_has_no_side_effects(tmp_path: Path) -> None:
    """Verify an unknown format fails before any directory or request."""
    pages = _colored_pages(RED)
    session = DummySession(pages)
    comic = Comic(name="foo", issue_number="1", format="djvu", links=list(pages))

    with pytest.raises(ConfigurationError, match="djvu"):
        _maker(tmp_path, session).make_comic(comic)

    assert not (tmp_path / "comics").exists()
    assert session.requested == []


def test_format_matching_is_case_insensitive_by_default(tmp_path: Path) -> None:
    """Verify "PDF" is accepted unless case-sensitive matching is configured."""
    pages = _colored_pages(RED)
    comic = Comic(name="foo", issue_number="1", format="PDF", links=list(pages))

    assert _maker(tmp_path, DummySession(pages)).make_comic(comic).path.suffix == ".pdf"
    with pytest.raises(ConfigurationError):
        _maker(tmp_path, DummySession(pages), format_case_sensitive=True).make_comic(comic)


def test_empty_links_raise(tmp_path: Path) -> None:
    """Verify a comic without links raises EmptyComicError."""
    comic = Comic(name="foo", issue_number="1", format="cbz", links=[])

    with pytest.raises(EmptyComicError):
        _maker(tmp_path, DummySession({})).make_comic(comic)


def test_only_filtered_links_raise(tmp_path: Path) -> None:
    """Verify a comic whose links are all decorative raises EmptyComicError."""
    links = ["https://cdn.example.com/logo.png", "https://cdn.example.com/spinner.gif"]
    session = DummySession({})

    with pytest.raises(EmptyComicError):
        _maker(tmp_path, session).make_comic(Comic("foo", "1", "pdf", links=links))

    assert session.requested == []


def test_filtered_links_are_skipped(tmp_path: Path) -> None:
    """Verify denylisted links are never requested and are reported as skipped."""
    pages = _colored_pages(RED, GREEN)
    links = [
        "https://cdn.example.com/wp-content/banner.png",
        *pages,
        "https://cdn.example.com/site-logo.png",
    ]
    session = DummySession(pages)

    result = _maker(tmp_path, session).make_comic(Comic("foo", "1", "pdf", links=links))

    assert result.pages == 2
    assert result.filtered_links == 2
    assert result.skipped_pages == 2
    assert result.has_skipped_pages
    assert sorted(session.requested) == sorted(pages)


def test_cbz_preserves_page_order(tmp_path: Path) -> None:
    """Verify page N of the archive is the N-th link, even with parallel fetches."""
    pages = _colored_pages(RED, GREEN, BLUE, RED, GREEN)
    comic = Comic(name="foo", issue_number="1", format="cbz", links=list(pages))

    result = _maker(tmp_path, DummySession(pages), workers=4).make_comic(comic)

    with zipfile.ZipFile(result.path) as archive:
        names = archive.namelist()
        contents = [archive.read(name) for name in names]
    assert names == ["p001.png", "p002.png", "p003.png", "p004.png", "p005.png"]
    assert contents == list(pages.values())
    with Image.open(io.BytesIO(contents[2])) as third:
        assert third.convert("RGB").getpixel((0, 0)) == BLUE


def test_page_failure_aborts_by_default(tmp_path: Path) -> None:
    """Verify one failed page aborts the issue and leaves no artifact or pages."""
    pages = _colored_pages(RED, GREEN, BLUE)
    links = [*pages, "https://cdn.example.com/p/missing.png"]

    with pytest.raises(FetchError) as exc_info:
        _maker(tmp_path, DummySession(pages)).make_comic(Comic("foo", "1", "pdf", links=links))

    assert exc_info.value.index == 3
    issue_dir = tmp_path.resolve() / "comics" / "foo"
    assert not (issue_dir / "foo-1.pdf").exists()
    assert list((issue_dir / "images-1").glob("page-*")) == []


def test_page_failures_within_ratio_are_tolerated(tmp_path: Path) -> None:
    """Verify failures up to the configured ratio are skipped and reported."""
    pages = _colored_pages(RED, GREEN, BLUE)
    links = [*pages, "https://cdn.example.com/p/missing.png"]

    result = _maker(tmp_path, DummySession(pages), max_failed_ratio=0.25).make_comic(
        Comic("foo", "1", "cbz", links=links)
    )

    assert result.pages == 3
    assert result.failed_pages == (3,)
    assert result.skipped_pages == 1


def test_page_failures_beyond_ratio_abort(tmp_path: Path) -> None:
    """Verify the failure exceeding the ratio aborts the issue."""
    pages = _colored_pages(RED, GREEN)
    links = [*pages, "https://cdn.example.com/p/a.png", "https://cdn.example.com/p/b.png"]

    with pytest.raises(FetchError):
        _maker(tmp_path, DummySession(pages), max_failed_ratio=0.25).make_comic(
            Comic("foo", "1", "cbz", links=links)
        )


def test_all_pages_failing_within_ratio_raise_empty(tmp_path: Path) -> None:
    """Verify an issue without a single fetched page raises EmptyComicError."""
    links = ["https://cdn.example.com/p/a.png", "https://cdn.example.com/p/b.png"]

    with pytest.raises(EmptyComicError):
        _maker(tmp_path, DummySession({}), max_failed_ratio=1.0).make_comic(
            Comic("foo", "1", "pdf", links=links)
        )


def test_rerun_overwrites_same_path(tmp_path: Path) -> None:
    """Verify output paths are deterministic and re-runs replace the artifact."""
    pages = _colored_pages(RED, GREEN)
    comic = Comic(name="foo", issue_number="1", format="cbz", links=list(pages))

    first = _maker(tmp_path, DummySession(pages)).make_comic(comic)
    first.path.write_bytes(b"stale")
    second = _maker(tmp_path, DummySession(pages)).make_comic(comic)

    assert first.path == second.path
    assert zipfile.is_zipfile(second.path)
    assert sorted(p.name for p in second.path.parent.glob("*.cbz")) == ["foo-1.cbz"]


def test_scratch_images_are_kept_and_reused(tmp_path: Path) -> None:
    """Verify retained page images satisfy a re-run without new requests."""
    pages = _colored_pages(RED, GREEN)
    comic = Comic(name="foo", issue_number="1", format="pdf", links=list(pages))
    scratch = tmp_path.resolve() / "comics" / "foo" / "images-1"

    _maker(tmp_path, DummySession(pages)).make_comic(comic)
    assert sorted(p.name for p in scratch.iterdir()) == ["page-0000.jpg", "page-0001.jpg"]

    session = DummySession(pages)
    result = _maker(tmp_path, session).make_comic(comic)

    assert session.requested == []
    assert result.pages == 2


def test_raw_scratch_images_are_not_reused_for_jpeg(tmp_path: Path) -> None:
    """Verify pages kept for an archive are fetched again for a PDF."""
    pages = _colored_pages(RED)
    _maker(tmp_path, DummySession(pages)).make_comic(Comic("foo", "1", "cbz", links=list(pages)))

    session = DummySession(pages)
    _maker(tmp_path, session).make_comic(Comic("foo", "1", "pdf", links=list(pages)))

    assert session.requested == list(pages)


def test_clean_images_removes_scratch(tmp_path: Path) -> None:
    """Verify scratch images are deleted when retention is disabled."""
    pages = _colored_pages(RED)
    comic = Comic(name="foo", issue_number="1", format="pdf", links=list(pages))

    result = _maker(tmp_path, DummySession(pages), keep_images=False).make_comic(comic)

    assert result.path.exists()
    assert not (result.path.parent / "images-1").exists()


def test_source_and_sanitized_name_shape_the_path(tmp_path: Path) -> None:
    """Verify source namespacing and name sanitization in the output path."""
    pages = _colored_pages(RED)
    comic = Comic(
        name="Saga: Vol/1",
        issue_number="chapter-13",
        format="cbz",
        links=list(pages),
        source="example.com",
    )

    result = _maker(tmp_path, DummySession(pages)).make_comic(comic)

    expected = tmp_path.resolve() / "comics" / "example.com" / "Saga Vol_1" / "Saga Vol_1-chapter-13.cbz"
    assert result.path == expected
    assert expected.is_file()


def test_unusable_name_is_configuration_error(tmp_path: Path) -> None:
    """Verify a name without path-safe characters is rejected up front."""
    with pytest.raises(ConfigurationError):
        _maker(tmp_path, DummySession({})).make_comic(Comic("???", "1", "pdf", links=["https://x/1.png"]))

    assert not (tmp_path / "comics").exists()


def test_output_path_matches_make_comic(tmp_path: Path) -> None:
    """Verify output_path predicts where make_comic writes."""
    pages = _colored_pages(RED)
    comic = Comic(name="foo", issue_number="3", format="epub", links=list(pages))
    maker = _maker(tmp_path, DummySession(pages))

    assert maker.output_path(comic) == maker.make_comic(comic).path


def test_module_level_make_comic(tmp_path: Path) -> None:
    """Verify the convenience function forwards root and keyword arguments."""
    pages = _colored_pages(GREEN)

    result = make_comic(
        Comic(name="foo", issue_number="1", format="cbr", links=list(pages)),
        tmp_path,
        settings=Settings(rar_binary="definitely-not-installed-rar"),
        session=DummySession(pages),
    )

    assert result.path.name == "foo-1.cbr"
    assert result.container == "zip"
    assert zipfile.is_zipfile(result.path)


def test_multi_picture_jpeg_page_in_cbz(tmp_path: Path) -> None:
    """Verify a camera-style MPO page is packed unchanged instead of crashing."""
    first = Image.new("RGB", (10, 14), color=RED)
    second = Image.new("RGB", (10, 14), color=BLUE)
    buffer = io.BytesIO()
    first.save(buffer, format="MPO", save_all=True, append_images=[second])
    url = "https://cdn.example.com/p/photo.jpg"

    result = _maker(tmp_path, DummySession({url: buffer.getvalue()})).make_comic(
        Comic("foo", "1", "cbz", links=[url])
    )

    with zipfile.ZipFile(result.path) as archive:
        assert archive.namelist() == ["p001.jpg"]
        assert archive.read("p001.jpg") == buffer.getvalue()


def test_changed_links_need_reuse_disabled(tmp_path: Path) -> None:
    """Verify retained pages are matched by link index, so new links require disabling reuse."""
    old_pages = _colored_pages(RED)
    new_url = "https://cdn.example.com/p/replacement.png"
    new_pages = {new_url: _png_bytes(BLUE)}
    _maker(tmp_path, DummySession(old_pages)).make_comic(Comic("foo", "1", "cbz", links=list(old_pages)))

    reused = _maker(tmp_path, DummySession(new_pages)).make_comic(Comic("foo", "1", "cbz", links=[new_url]))
    with zipfile.ZipFile(reused.path) as archive:
        assert archive.read("p001.png") == next(iter(old_pages.values()))

    session = DummySession(new_pages)
    refreshed = _maker(tmp_path, session, reuse_images=False).make_comic(
        Comic("foo", "1", "cbz", links=[new_url])
    )
    with zipfile.ZipFile(refreshed.path) as archive:
        assert archive.read("p001.png") == new_pages[new_url]
    assert session.requested == [new_url]
