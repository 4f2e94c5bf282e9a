"""Generic utility helpers for URL filtering and filename sanitization."""

import re
from typing import Collection
from urllib.parse import urlparse

from comicpack.constants import INVALID_URL_MARKERS, VALID_URL_SCHEMES

_RESERVED_CHARACTERS = re.compile(r'[\[\]:;!?*"<>|\x00-\x1f]')
_PATH_SEPARATORS = re.compile(r"[/\\]")
_WHITESPACE = re.compile(r"\s+")


def _contains_any(text: str, markers: Collection[str]) -> bool:
    """
    Check if the given text contains at least one of the markers (case-insensitive).

    Parameters:
        text (str): The text to search.
        markers (Collection[str]): Substrings to look for.

    Returns:
        bool: True if any marker is present in the text, False otherwise.
    """
    lower_text = text.lower()
    return any(marker.lower() in lower_text for marker in markers)


def is_valid_url(url: str, invalid_markers: Collection[str] = INVALID_URL_MARKERS) -> bool:
    """
    Decide whether an image URL is worth downloading.

    Scraped reader pages carry banners, logos and animated filler graphics next to
    the actual pages. URLs containing one of ``invalid_markers`` are rejected, as are
    URLs that are not absolute HTTP(S) locations.

    Parameters:
        url (str): The candidate image URL.
        invalid_markers (Collection[str]): Denylist of substrings.

    Returns:
        bool: True if the URL should be fetched, False otherwise.
    """
    if not url:
        return False

    if _contains_any(url, invalid_markers):
        return False

    parsed = urlparse(url)
    return parsed.scheme.lower() in VALID_URL_SCHEMES and bool(parsed.netloc)


def url_source(url: str) -> str:
    """
    Return the hostname of ``url``, used as the source segment of output paths.

    Parameters:
        url (str): Any absolute URL.

    Returns:
        str: The lower-cased hostname, or an empty string if there is none.
    """
    return urlparse(url).hostname or ""


def sanitize(value: str) -> str:
    """
    Normalize a comic field so it can be used as a single path segment.

    Path separators become underscores, characters reserved by common filesystems are
    removed and whitespace runs are collapsed. Leading and trailing dots are stripped
    so the result can never be ``.`` or ``..``.

    Parameters:
        value (str): The raw scraped title, source or issue number.

    Returns:
        str: The sanitized segment, possibly empty.
    """
    # Replace separators first so "a/b" stays readable as "a_b".
    normalized = _PATH_SEPARATORS.sub("_", value or "")
    normalized = _RESERVED_CHARACTERS.sub("", normalized)
    normalized = _WHITESPACE.sub(" ", normalized)
    return normalized.strip(" .")
