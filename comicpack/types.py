"""Typed protocol contracts shared across runtime components."""

from __future__ import annotations

from typing import Mapping, MutableMapping, Protocol


class ResponseLike(Protocol):
    """Minimal HTTP response contract used by the image fetcher."""

    content: bytes
    headers: Mapping[str, str]

    def raise_for_status(self) -> None:
        """Raise for non-successful HTTP responses."""


class SessionLike(Protocol):
    """Minimal HTTP session contract used by the image fetcher."""

    headers: MutableMapping[str, str]

    def get(
        self,
        url: str,
        timeout: tuple[float, float] | None = None,
    ) -> ResponseLike:
        """Perform an HTTP GET request and return a response object."""

    def mount(self, prefix: str, adapter: object) -> None:
        """Attach a transport adapter for matching URL prefixes."""


class ComicLike(Protocol):
    """Issue metadata consumed by format assemblers."""

    name: str
    issue_number: str
    source: str
    author: str

