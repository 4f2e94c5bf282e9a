import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from comicpack.assemblers.cbz_assembler import CBZAssembler, archive_comment
from comicpack.constants import ImageType, OutputFormat
from comicpack.types import ComicLike

log = logging.getLogger(__name__)


def detect_rar_binary(binary: str = "rar") -> Optional[str]:
    """
    Locate the RAR archiver executable.

    Parameters:
        binary (str): Executable name or path, "rar" by default.

    Returns:
        Optional[str]: Absolute path of the executable, or None if it is not installed.
    """
    return shutil.which(binary)


def build_rar_command(rar: str, archive: Path, comment_file: Path, pages: List[Path]) -> List[str]:
    """Return the argument list creating ``archive`` from ``pages`` without directory prefixes."""
    return [rar, "a", "-ep1", "-idq", "-y", f"-z{comment_file}", str(archive), *map(str, pages)]


class CBRAssembler(CBZAssembler):
    """
    Assemble pages as a CBR (Comic Book RAR) archive.

    RAR archives can only be written by the external ``rar`` tool. If it is not
    installed the assembler logs a warning and writes the CBZ content model (a ZIP
    archive) to the ``.cbr`` path instead; ``container`` then reports "zip".
    """
    format = OutputFormat.CBR
    image_encoding = ImageType.RAW

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.rar = detect_rar_binary(self.settings.rar_binary)
        self.staging_dir: Optional[Path] = None
        self.staged_pages: List[Path] = []

    @property
    def container(self) -> str:
        """Return "rar" when the rar tool is used, "zip" for the fallback."""
        return "rar" if self.rar else "zip"

    def open(self, temp_path: Path, comic: ComicLike) -> None:
        """
        Prepare a staging directory for the rar tool, or a ZIP archive as fallback.

        Parameters:
            temp_path (Path): Temporary archive location.
            comic (ComicLike): Issue metadata.
        """
        if not self.rar:
            log.warning(
                f"'{self.settings.rar_binary}' was not found on PATH; "
                "writing the CBR pages into a ZIP container instead"
            )
            super().open(temp_path, comic)
            return

        self.temp_archive = temp_path
        self.staging_dir = Path(tempfile.mkdtemp(prefix=".cbr-", dir=temp_path.parent))
        self.comment_file = self.staging_dir / "comment.txt"
        self.comment_file.write_bytes(archive_comment(comic.name))

    def write_page(self, index: int, image_path: Path) -> None:
        """
        Stage a page under its sequence name, or add it to the fallback ZIP.

        Parameters:
            index (int): Zero-based page position.
            image_path (Path): Local image file.
        """
        if not self.rar:
            super().write_page(index, image_path)
            return

        staged = self.staging_dir / self.page_name(index, image_path.suffix)
        shutil.copyfile(image_path, staged)
        self.staged_pages.append(staged)

    def finalize(self) -> None:
        """Run the rar tool over the staged pages, or close the fallback ZIP."""
        if not self.rar:
            super().finalize()
            return

        command = build_rar_command(self.rar, self.temp_archive, self.comment_file, self.staged_pages)
        try:
            result = subprocess.run(command, stdout=subprocess.PIPE, stderr=subprocess.PIPE, check=False)
            if result.returncode != 0:
                stderr = result.stderr.decode(errors="ignore").strip()
                raise RuntimeError(f"{self.rar} exited with {result.returncode}: {stderr or 'unknown error'}")
        finally:
            self._remove_staging()

    def abort(self) -> None:
        """Remove staged pages and close the fallback archive."""
        self._remove_staging()
        super().abort()

    def _remove_staging(self) -> None:
        if self.staging_dir is not None:
            shutil.rmtree(self.staging_dir, ignore_errors=True)
            self.staging_dir = None
