from html import escape
from pathlib import Path
from uuid import NAMESPACE_URL, uuid5

from ebooklib import epub

from comicpack.assemblers.assembler_base import AssemblerBase
from comicpack.constants import ImageType, OutputFormat
from comicpack.types import ComicLike

MEDIA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def book_identifier(comic: ComicLike) -> str:
    """
    Derive a stable identifier so re-assembling an issue yields the same book id.

    Parameters:
        comic (ComicLike): Issue metadata.

    Returns:
        str: A ``urn:uuid`` identifier.
    """
    key = "/".join((comic.source or "", comic.name, comic.issue_number))
    return f"urn:uuid:{uuid5(NAMESPACE_URL, key)}"


class EPUBAssembler(AssemblerBase):
    """
    Assemble pages into a fixed image EPUB: one full-bleed XHTML page per image.
    """
    format = OutputFormat.EPUB
    image_encoding = ImageType.JPG

    language = "en"

    # ebooklib wraps the body children in its own XHTML skeleton on write.
    PAGE_TEMPLATE = """<html>
<head><title>{title}</title></head>
<body>
    <img src="../{image}" alt="{title}" style="display: block; margin: 0 auto; max-width: 100%; max-height: 100%;"/>
</body>
</html>
"""

    def open(self, temp_path: Path, comic: ComicLike) -> None:
        """
        Create the book and fill in Name, Author and IssueNumber metadata.

        Parameters:
            temp_path (Path): Temporary EPUB location.
            comic (ComicLike): Issue metadata.
        """
        self.path = temp_path
        self.pages = []

        book = epub.EpubBook()
        book.set_identifier(book_identifier(comic))
        book.set_title(f"{comic.name} - {comic.issue_number}")
        book.set_language(self.language)
        if comic.author:
            book.add_author(comic.author)
        book.add_metadata(None, "meta", "", {"name": "calibre:series", "content": comic.name})
        book.add_metadata(None, "meta", "", {"name": "calibre:series_index", "content": comic.issue_number})
        self.book = book

    def write_page(self, index: int, image_path: Path) -> None:
        """
        Add the page image and an XHTML page referencing it to the spine.

        The first page image doubles as the cover.

        Parameters:
            index (int): Zero-based page position.
            image_path (Path): Local image file.
        """
        suffix = image_path.suffix.lower()
        content = image_path.read_bytes()
        image_name = f"images/{self.page_name(index, suffix)}"

        if index == 0:
            self.book.set_cover(f"images/cover{suffix}", content, create_page=False)

        self.book.add_item(
            epub.EpubImage(
                uid=f"image-{index + 1}",
                file_name=image_name,
                media_type=MEDIA_TYPES.get(suffix, "image/jpeg"),
                content=content,
            )
        )

        title = f"Page {index + 1}"
        page = epub.EpubHtml(
            uid=f"page-{index + 1}",
            title=title,
            file_name=f"pages/{self.page_name(index, 'xhtml')}",
            lang=self.language,
        )
        page.content = self.PAGE_TEMPLATE.format(title=escape(title), image=image_name)
        self.book.add_item(page)
        self.pages.append(page)

    def finalize(self) -> None:
        """Add navigation documents, set the spine and write the EPUB."""
        self.book.toc = list(self.pages)
        self.book.add_item(epub.EpubNcx())
        self.book.add_item(epub.EpubNav())
        self.book.spine = list(self.pages)
        epub.write_epub(str(self.path), self.book)

    def abort(self) -> None:
        """Drop the in-memory book."""
        self.book = None
        self.pages = []
