"""Image decoding and re-encoding between the raster formats pages arrive in."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from comicpack.constants import ImageType
from comicpack.errors import ConfigurationError, DecodeError

log = logging.getLogger(__name__)

IMAGE_TYPES = {
    "image/png": ImageType.PNG,
    "png": ImageType.PNG,
    "image/jpg": ImageType.JPG,
    "image/jpeg": ImageType.JPG,
    "jpg": ImageType.JPG,
    "jpeg": ImageType.JPG,
    "image/gif": ImageType.GIF,
    "gif": ImageType.GIF,
    "img": ImageType.RAW,
}

# Pillow format names accepted when decoding page payloads.
DECODABLE_FORMATS = ("JPEG", "PNG", "GIF", "WEBP")

_PIL_ENCODERS = {
    ImageType.JPG: "JPEG",
    ImageType.PNG: "PNG",
    ImageType.GIF: "GIF",
}

_EXTENSIONS = {
    "JPEG": "jpg",
    # Multi-picture JPEGs from cameras and phones.
    "MPO": "jpg",
    "PNG": "png",
    "GIF": "gif",
    "WEBP": "webp",
}

DEFAULT_JPEG_QUALITY = 90


@dataclass(frozen=True, slots=True)
class NormalizedImage:
    """Encoded page payload together with the file extension it should be stored under."""

    content: bytes
    extension: str


def image_type(mime: str | None) -> ImageType:
    """
    Map a MIME type or short format name to an ``ImageType``.

    Content-Type parameters (``; charset=...``) are ignored. Unmapped values return
    ``ImageType.UNKNOWN``; callers decide whether that is fatal.

    Parameters:
        mime (str | None): Value such as "image/jpeg", "png" or "img".

    Returns:
        ImageType: The mapped image type.
    """
    if not mime:
        return ImageType.UNKNOWN
    key = mime.split(";", 1)[0].strip().lower()
    return IMAGE_TYPES.get(key, ImageType.UNKNOWN)


def _decode(content: bytes, label: str) -> Image.Image:
    """Open and fully load ``content`` or raise ``DecodeError`` naming ``label``."""
    try:
        image = Image.open(io.BytesIO(content), formats=DECODABLE_FORMATS)
        image.load()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as exc:
        raise DecodeError(label, str(exc) or exc.__class__.__name__) from exc
    return image


def _prepare_for_jpeg(image: Image.Image) -> Image.Image:
    """Flatten transparency onto white and convert to a JPEG-compatible mode."""
    if image.mode in ("RGB", "L"):
        return image
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def normalize(
    content: bytes,
    target: ImageType = ImageType.JPG,
    *,
    source_hint: str | None = None,
    label: str = "<memory>",
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
) -> NormalizedImage:
    """
    Decode ``content`` and re-encode it as ``target``.

    With ``ImageType.RAW`` the payload is only validated and returned unchanged,
    which keeps pages pixel-identical for archive formats.

    Parameters:
        content (bytes): Raw downloaded bytes.
        target (ImageType): Requested output encoding.
        source_hint (str | None): Content-Type or extension reported by the source.
        label (str): URL or page label used in error messages.
        jpeg_quality (int): Quality passed to the JPEG encoder.

    Returns:
        NormalizedImage: Encoded bytes and the matching file extension.

    Raises:
        DecodeError: If the payload is not a supported raster image.
        ConfigurationError: If ``target`` is not an encodable type.
    """
    if target is ImageType.UNKNOWN:
        raise ConfigurationError("Cannot normalize images to an unknown encoding")

    if source_hint is not None and image_type(source_hint) is ImageType.UNKNOWN:
        log.debug(f"Unrecognized image type '{source_hint}' for {label}, sniffing content")

    image = _decode(content, label)
    try:
        if target is ImageType.RAW:
            extension = _EXTENSIONS.get(image.format)
            if extension is None:
                raise DecodeError(label, f"unsupported image format {image.format}")
            return NormalizedImage(content=content, extension=extension)

        if target is ImageType.JPG:
            prepared = _prepare_for_jpeg(image)
            save_kwargs = {"quality": jpeg_quality}
        else:
            prepared = image
            save_kwargs = {}

        buffer = io.BytesIO()
        prepared.save(buffer, format=_PIL_ENCODERS[target], **save_kwargs)
        return NormalizedImage(content=buffer.getvalue(), extension=target.value)
    finally:
        image.close()
