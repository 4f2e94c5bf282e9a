import zipfile
from contextlib import suppress
from pathlib import Path

from comicpack.assemblers.assembler_base import AssemblerBase
from comicpack.constants import ImageType, OutputFormat
from comicpack.types import ComicLike

# ZIP archive comments are limited to 65535 bytes.
MAX_COMMENT_BYTES = 0xFFFF


def archive_comment(name: str) -> bytes:
    """
    Encode the series name as a ZIP/RAR archive comment.

    Parameters:
        name (str): The series name.

    Returns:
        bytes: UTF-8 encoded comment, truncated to the ZIP limit.
    """
    return name.encode("utf-8")[:MAX_COMMENT_BYTES]


class CBZAssembler(AssemblerBase):
    """
    Assemble pages as a CBZ (Comic Book Zip) archive.

    Pages keep their original bytes and are renamed to zero-padded sequence numbers
    so readers sorting entries lexicographically show them in order.
    """
    format = OutputFormat.CBZ
    image_encoding = ImageType.RAW

    def __init__(self, *args, compression=zipfile.ZIP_DEFLATED, **kwargs):
        """
        Initialize the CBZ assembler.

        Parameters:
            compression: The ZIP compression mode (default is ZIP_DEFLATED).
        """
        super().__init__(*args, **kwargs)
        self.compression = compression
        self.archive = None

    def open(self, temp_path: Path, comic: ComicLike) -> None:
        """
        Open the ZIP archive at ``temp_path`` and set the series name as comment.

        Parameters:
            temp_path (Path): Temporary archive location.
            comic (ComicLike): Issue metadata.
        """
        self.archive = zipfile.ZipFile(temp_path, mode="w", compression=self.compression)
        self.archive.comment = archive_comment(comic.name)

    def write_page(self, index: int, image_path: Path) -> None:
        """
        Copy a page image into the archive under its sequence name.

        Parameters:
            index (int): Zero-based page position.
            image_path (Path): Local image file.
        """
        self.archive.write(image_path, arcname=self.page_name(index, image_path.suffix))

    def finalize(self) -> None:
        """Write the central directory and close the archive."""
        self.archive.close()
        self.archive = None

    def abort(self) -> None:
        """Close the archive handle, ignoring errors from the broken archive."""
        if self.archive is not None:
            with suppress(Exception):
                self.archive.close()
            self.archive = None
