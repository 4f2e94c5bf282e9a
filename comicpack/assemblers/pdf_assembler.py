from contextlib import suppress
from pathlib import Path

from PIL import Image

from comicpack.__version__ import __title__, __version__
from comicpack.assemblers.assembler_base import AssemblerBase
from comicpack.constants import ImageType, OutputFormat
from comicpack.types import ComicLike


class PDFAssembler(AssemblerBase):
    """
    Assemble pages into a PDF document, one page per image at its native size.
    """
    format = OutputFormat.PDF
    image_encoding = ImageType.JPG

    resolution = 100.0

    def open(self, temp_path: Path, comic: ComicLike) -> None:
        """
        Remember the target and metadata; pages are collected in memory.

        Parameters:
            temp_path (Path): Temporary PDF location.
            comic (ComicLike): Issue metadata, the name becomes the PDF title.
        """
        self.path = temp_path
        self.title = comic.name
        self.images = []  # List to hold PIL Image objects.

    def write_page(self, index: int, image_path: Path) -> None:
        """
        Load a page image and append it to the page list.

        Parameters:
            index (int): Zero-based page position.
            image_path (Path): Local image file.
        """
        with Image.open(image_path) as image:
            # PDF pages must be RGB; convert() also detaches from the file handle.
            self.images.append(image.convert("RGB"))

    def finalize(self) -> None:
        """
        Save all collected images as a single PDF file.
        """
        app_info = f"{__title__} - {__version__}"
        try:
            self.images[0].save(
                self.path,
                "PDF",
                resolution=self.resolution,
                save_all=True,
                append_images=self.images[1:],
                title=self.title,
                producer=app_info,
                creator=app_info,
            )
        finally:
            self._close_images()

    def abort(self) -> None:
        """Drop collected page images."""
        self._close_images()

    def _close_images(self) -> None:
        for image in getattr(self, "images", []):
            with suppress(Exception):
                image.close()
        self.images = []
