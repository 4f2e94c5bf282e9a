import logging
from abc import ABCMeta, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence
from uuid import uuid4

from comicpack.config import Settings
from comicpack.constants import ImageType, OutputFormat
from comicpack.errors import AssemblyError, EmptyComicError
from comicpack.types import ComicLike

log = logging.getLogger(__name__)


class AssemblerState(Enum):
    """Lifecycle of one assembler invocation."""
    CREATED = "created"
    OPENED = "opened"
    FINALIZED = "finalized"
    ABORTED = "aborted"


class AssemblerBase(metaclass=ABCMeta):
    """
    Base class for packaging fetched page images into one container file.

    Concrete assemblers implement ``open``, ``write_page``, ``finalize`` and
    ``abort`` for their container and declare ``format`` plus the ``image_encoding``
    they want their pages in. ``assemble`` drives them through
    CREATED -> OPENED -> FINALIZED, or ABORTED on any failure, and only moves the
    finished file onto ``out_file``.
    """
    FORMAT_REGISTRY = {}

    image_encoding = ImageType.JPG

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize the assembler.

        Parameters:
            settings (Optional[Settings]): Runtime settings; defaults are used if omitted.
        """
        self.settings = settings or Settings()
        self.state = AssemblerState.CREATED
        self.temp_path: Optional[Path] = None
        self.page_count = 0

    def __init_subclass__(cls, **kwargs) -> None:
        """
        Automatically register subclasses by their format.

        This method updates the FORMAT_REGISTRY to associate each output format with its class.
        """
        cls.FORMAT_REGISTRY[cls.format] = cls
        return super().__init_subclass__(**kwargs)

    @property
    def container(self) -> str:
        """
        The physical container written, e.g. "zip" for a CBR written without rar.

        Returns:
            str: The container identifier.
        """
        return self.format.value

    def page_name(self, index: int, ext: str) -> str:
        """
        Format the zero-padded name of page ``index`` inside a container.

        The width grows with the page count so lexicographic order always equals page
        order, with a minimum of three digits.

        Parameters:
            index (int): Zero-based page position.
            ext (str): File extension, with or without a leading dot.

        Returns:
            str: The page name, e.g. "p001.jpg".
        """
        width = max(3, len(str(self.page_count)))
        return f"p{index + 1:0>{width}}.{ext.lstrip('.')}"

    def assemble(self, image_paths: Sequence[Path], comic: ComicLike, out_file: Path) -> Path:
        """
        Package ``image_paths`` in order into ``out_file``.

        Parameters:
            image_paths (Sequence[Path]): Local page images; index equals page position.
            comic (ComicLike): Issue metadata.
            out_file (Path): Final artifact path; overwritten if it exists.

        Returns:
            Path: ``out_file``.

        Raises:
            EmptyComicError: If ``image_paths`` is empty.
            AssemblyError: If any step fails. Partial output is removed first.
        """
        out_file = Path(out_file)
        if self.state is not AssemblerState.CREATED:
            raise AssemblyError(self.format.value, out_file, f"assembler already {self.state.value}")
        if not image_paths:
            raise EmptyComicError(f"No pages to assemble into {out_file}")

        self.page_count = len(image_paths)
        self.temp_path = out_file.with_name(f".{out_file.name}.{uuid4().hex[:8]}.part")
        try:
            self.open(self.temp_path, comic)
            self.state = AssemblerState.OPENED
            for index, image_path in enumerate(image_paths):
                self.write_page(index, Path(image_path))
            self.finalize()
            # Replace is atomic on the same filesystem.
            self.temp_path.replace(out_file)
        except Exception as exc:
            self.state = AssemblerState.ABORTED
            self._discard()
            if isinstance(exc, AssemblyError):
                raise
            raise AssemblyError(self.format.value, out_file, str(exc) or exc.__class__.__name__) from exc

        self.state = AssemblerState.FINALIZED
        log.info(f"Assembled {self.page_count} page(s) into {out_file}")
        return out_file

    def _discard(self) -> None:
        """Release container resources and delete the temporary output."""
        try:
            self.abort()
        finally:
            if self.temp_path is not None:
                self.temp_path.unlink(missing_ok=True)

    @abstractmethod
    def open(self, temp_path: Path, comic: ComicLike) -> None:
        """
        Prepare the container that will be written to ``temp_path``.

        Parameters:
            temp_path (Path): Temporary output location next to the final artifact.
            comic (ComicLike): Issue metadata.
        """
        pass

    @abstractmethod
    def write_page(self, index: int, image_path: Path) -> None:
        """
        Add one page to the container.

        Parameters:
            index (int): Zero-based page position.
            image_path (Path): Local image file for the page.
        """
        pass

    @abstractmethod
    def finalize(self) -> None:
        """Flush and close the container at ``temp_path``."""
        pass

    def abort(self) -> None:
        """
        Release container resources after a failure.

        Concrete assemblers override this to close open handles; the temporary
        output file itself is removed by the base class.
        """
        pass

    @property
    @abstractmethod
    def format(self) -> OutputFormat:
        """
        The output format of the assembler.

        Returns:
            OutputFormat: The format identifier.
        """
        pass


def get_assembler(output_format: OutputFormat) -> type[AssemblerBase]:
    """
    Look up the assembler class registered for ``output_format``.

    Parameters:
        output_format (OutputFormat): Requested container format.

    Returns:
        type[AssemblerBase]: The registered class.

    Raises:
        KeyError: If no assembler registered the format.
    """
    return AssemblerBase.FORMAT_REGISTRY[output_format]


def create_assembler(output_format: OutputFormat, settings: Optional[Settings] = None) -> AssemblerBase:
    """Instantiate a fresh, single-use assembler for ``output_format``."""
    return get_assembler(output_format)(settings=settings)
