"""Environment-backed runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv

from comicpack.constants import DEFAULT_USER_AGENT
from comicpack.errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True, slots=True)
class Settings:
    """Tunables for fetching, normalization and packaging."""

    output_dir: str = "."
    workers: int = 4
    max_failed_ratio: float = 0.0
    request_timeout: tuple[float, float] = (5.0, 30.0)
    retries: int = 0
    jpeg_quality: int = 90
    keep_images: bool = True
    reuse_images: bool = True
    format_case_sensitive: bool = False
    rar_binary: str = "rar"
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        """Reject values the pipeline cannot work with."""
        if self.workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {self.workers}")
        if not 0.0 <= self.max_failed_ratio <= 1.0:
            raise ConfigurationError(
                f"max_failed_ratio must be between 0 and 1, got {self.max_failed_ratio}"
            )
        if self.retries < 0:
            raise ConfigurationError(f"retries must not be negative, got {self.retries}")
        if not 1 <= self.jpeg_quality <= 95:
            raise ConfigurationError(f"jpeg_quality must be between 1 and 95, got {self.jpeg_quality}")


def _read(environ: Mapping[str, str], key: str) -> str | None:
    """Return a stripped environment value or ``None`` when unset."""
    value = environ.get(key)
    return value.strip() if value is not None else None


def _as_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = _read(environ, key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got '{raw}'") from None


def _as_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = _read(environ, key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got '{raw}'") from None


def _as_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    raw = _read(environ, key)
    if raw is None:
        return default
    if raw.lower() in _TRUE_VALUES:
        return True
    if raw.lower() in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got '{raw}'")


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build ``Settings`` from ``COMICPACK_*`` environment variables.

    Parameters:
        environ (Mapping[str, str] | None): Source mapping, ``os.environ`` by default.

    Returns:
        Settings: Validated settings; unset variables keep their defaults.

    Raises:
        ConfigurationError: If a variable cannot be parsed or is out of range.
    """
    env = os.environ if environ is None else environ
    defaults = Settings()
    return Settings(
        output_dir=_read(env, "COMICPACK_OUT_DIR") or defaults.output_dir,
        workers=_as_int(env, "COMICPACK_WORKERS", defaults.workers),
        max_failed_ratio=_as_float(env, "COMICPACK_MAX_FAILED_RATIO", defaults.max_failed_ratio),
        request_timeout=(
            _as_float(env, "COMICPACK_CONNECT_TIMEOUT", defaults.request_timeout[0]),
            _as_float(env, "COMICPACK_READ_TIMEOUT", defaults.request_timeout[1]),
        ),
        retries=_as_int(env, "COMICPACK_RETRIES", defaults.retries),
        jpeg_quality=_as_int(env, "COMICPACK_JPEG_QUALITY", defaults.jpeg_quality),
        keep_images=_as_bool(env, "COMICPACK_KEEP_IMAGES", defaults.keep_images),
        reuse_images=_as_bool(env, "COMICPACK_REUSE_IMAGES", defaults.reuse_images),
        format_case_sensitive=_as_bool(
            env, "COMICPACK_FORMAT_CASE_SENSITIVE", defaults.format_case_sensitive
        ),
        rar_binary=_read(env, "COMICPACK_RAR_BINARY") or defaults.rar_binary,
        user_agent=_read(env, "COMICPACK_USER_AGENT") or defaults.user_agent,
    )
