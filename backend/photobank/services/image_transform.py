"""Image normalization with Pillow: orientation, bounded resize, re-encode.

``transform`` holds no shared state and only touches its own buffers, so the
upload pipeline runs one call per file on worker threads.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Union

from PIL import Image, ImageOps, UnidentifiedImageError

from photobank.core.config import Settings, get_settings
from photobank.core.errors import TransformError

logger = logging.getLogger(__name__)

_PNG_MODES = {"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"}


@dataclass(frozen=True)
class JpegOutput:
    quality: int
    extension: str = "jpg"
    media_type: str = "image/jpeg"


@dataclass(frozen=True)
class PngOutput:
    compress_level: int = 8
    extension: str = "png"
    media_type: str = "image/png"


OutputFormat = Union[JpegOutput, PngOutput]


def _parse_int(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def clamp_max_width(value, settings: Settings | None = None) -> int:
    """Clamp to [1, max_width_limit]; absent, unparseable or 0 means the default."""
    s = settings or get_settings()
    width = _parse_int(value)
    if not width:
        return s.default_max_width
    return max(1, min(width, s.max_width_limit))


def clamp_quality(value, settings: Settings | None = None) -> int:
    """Clamp to [1, 100]; absent, unparseable or 0 means the default."""
    s = settings or get_settings()
    quality = _parse_int(value)
    if not quality:
        return s.default_jpeg_quality
    return max(1, min(quality, 100))


@dataclass(frozen=True)
class TransformOptions:
    output: OutputFormat
    max_width: int

    @classmethod
    def from_query(
        cls,
        fmt: str | None = None,
        width=None,
        quality=None,
        settings: Settings | None = None,
    ) -> "TransformOptions":
        """Build request-level options. Only "png" selects PNG; anything else encodes JPEG."""
        s = settings or get_settings()
        if (fmt or "jpg").strip().lower() == "png":
            output: OutputFormat = PngOutput(compress_level=s.png_compress_level)
        else:
            output = JpegOutput(quality=clamp_quality(quality, s))
        return cls(output=output, max_width=clamp_max_width(width, s))


@dataclass(frozen=True)
class TransformedImage:
    data: bytes
    width: int
    height: int
    extension: str
    media_type: str


def _decode(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except Image.DecompressionBombError as e:
        raise TransformError("Image dimensions are too large") from e
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError, EOFError) as e:
        raise TransformError("Image could not be decoded") from e
    return img


def _fit_within(img: Image.Image, max_side: int) -> Image.Image:
    """Shrink so neither side exceeds max_side. Smaller images are returned unchanged."""
    width, height = img.size
    if width <= max_side and height <= max_side:
        return img
    scale = min(max_side / width, max_side / height)
    size = (max(1, round(width * scale)), max(1, round(height * scale)))
    return img.resize(size, Image.Resampling.LANCZOS)


def _flatten_for_jpeg(img: Image.Image) -> Image.Image:
    if img.mode in ("RGB", "L"):
        return img
    if img.mode == "P":
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA"):
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.getchannel("A"))
        return background
    return img.convert("RGB")


def _encode(img: Image.Image, output: OutputFormat) -> bytes:
    buf = io.BytesIO()
    if isinstance(output, JpegOutput):
        _flatten_for_jpeg(img).save(
            buf,
            format="JPEG",
            quality=output.quality,
            optimize=True,
            progressive=True,
        )
    else:
        if img.mode not in _PNG_MODES:
            img = img.convert("RGBA")
        img.save(buf, format="PNG", compress_level=output.compress_level)
    return buf.getvalue()


def transform(data: bytes, options: TransformOptions) -> TransformedImage:
    """Decode, apply EXIF orientation, shrink to options.max_width, re-encode.

    Raises TransformError on corrupt or undecodable input.
    """
    img = _decode(data)
    try:
        # Rotates per the EXIF Orientation tag and removes the tag
        img = ImageOps.exif_transpose(img)
        img = _fit_within(img, options.max_width)
        encoded = _encode(img, options.output)
    except (OSError, ValueError) as e:
        raise TransformError("Image could not be encoded") from e
    return TransformedImage(
        data=encoded,
        width=img.width,
        height=img.height,
        extension=options.output.extension,
        media_type=options.output.media_type,
    )


def configure_decoder_limits(settings: Settings | None = None) -> None:
    """Apply the decompression-bomb guard. Called once at startup."""
    s = settings or get_settings()
    Image.MAX_IMAGE_PIXELS = s.max_image_pixels
    logger.debug("Pillow MAX_IMAGE_PIXELS set to %s", s.max_image_pixels)
