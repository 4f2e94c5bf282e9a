from __future__ import annotations

from enum import Enum

from comicpack.errors import ConfigurationError


class OutputFormat(Enum):
    """Represents supported container formats."""
    PDF = "pdf"
    EPUB = "epub"
    CBZ = "cbz"
    CBR = "cbr"

    @classmethod
    def parse(cls, value: str, case_sensitive: bool = False) -> OutputFormat:
        """
        Map a user supplied format string to an ``OutputFormat``.

        Parameters:
            value (str): The format name, e.g. "pdf".
            case_sensitive (bool): If True, "PDF" is rejected.

        Returns:
            OutputFormat: The matching member.

        Raises:
            ConfigurationError: If the value names no supported format.
        """
        candidate = (value or "").strip()
        if not case_sensitive:
            candidate = candidate.lower()
        try:
            return cls(candidate)
        except ValueError:
            supported = ", ".join(member.value for member in cls)
            raise ConfigurationError(
                f"Unknown output format '{value}' (supported: {supported})"
            ) from None


class ImageType(Enum):
    """Represents image encodings understood by the normalizer."""
    PNG = "png"
    JPG = "jpg"
    GIF = "gif"
    RAW = "img"
    UNKNOWN = "unknown"


# Substrings of decorative, non-page assets found on scraped reader pages.
INVALID_URL_MARKERS = (
    ".gif",
    "logo",
    "mobilebanner",
    "wp-content",
)

VALID_URL_SCHEMES = frozenset({"http", "https"})

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
