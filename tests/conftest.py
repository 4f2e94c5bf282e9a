"""Shared fixtures for comicpack tests."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable

import pytest
from PIL import Image


@pytest.fixture
def page_files(tmp_path: Path) -> Callable[..., list[Path]]:
    """Return a factory writing one image file per color into a pages directory."""

    def _write(
        colors: list[tuple[int, int, int]],
        image_format: str = "JPEG",
        extension: str = "jpg",
    ) -> list[Path]:
        directory = tmp_path / "pages"
        directory.mkdir(exist_ok=True)
        paths = []
        for index, color in enumerate(colors):
            buffer = io.BytesIO()
            Image.new("RGB", (20, 30), color=color).save(buffer, format=image_format)
            path = directory / f"page-{index:04d}.{extension}"
            path.write_bytes(buffer.getvalue())
            paths.append(path)
        return paths

    return _write
