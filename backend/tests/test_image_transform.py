"""Image normalization: clamping, orientation, bounded resize, encoding."""
import io

import pytest
from PIL import Image as PILImage

from photobank.core.errors import TransformError
from photobank.services.image_transform import (
    JpegOutput,
    PngOutput,
    TransformOptions,
    clamp_max_width,
    clamp_quality,
    transform,
)

ORIENTATION = 0x0112


@pytest.mark.parametrize(
    "value, expected",
    [(None, 1280), ("", 1280), ("abc", 1280), ("0", 1280), ("100", 100), (5000, 4096), ("-5", 1), (1, 1)],
)
def test_clamp_max_width(value, expected):
    assert clamp_max_width(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(None, 80), ("x", 80), ("0", 80), ("55", 55), ("150", 100), ("-3", 1)],
)
def test_clamp_quality(value, expected):
    assert clamp_quality(value) == expected


def test_from_query_selects_variant_once():
    png = TransformOptions.from_query("PNG", "100", "10")
    assert png.output == PngOutput(compress_level=8)
    assert png.max_width == 100
    jpg = TransformOptions.from_query(None, None, "90")
    assert jpg.output == JpegOutput(quality=90)
    assert jpg.max_width == 1280
    assert isinstance(TransformOptions.from_query("gif").output, JpegOutput)


def _open(data: bytes) -> PILImage.Image:
    return PILImage.open(io.BytesIO(data))


def test_downscale_keeps_both_sides_within_bound(make_image):
    out = transform(make_image(300, 200), TransformOptions.from_query("jpg", 100))
    img = _open(out.data)
    assert img.format == "JPEG"
    assert img.size == (100, 67)
    assert out.extension == "jpg"
    assert out.media_type == "image/jpeg"


def test_tall_image_bounded_by_height(make_image):
    out = transform(make_image(150, 400), TransformOptions.from_query("png", 100))
    img = _open(out.data)
    assert img.format == "PNG"
    assert max(img.size) <= 100
    assert img.size[1] == 100


def test_never_upscales(make_image):
    out = transform(make_image(40, 30), TransformOptions.from_query("jpg", 1000))
    assert _open(out.data).size == (40, 30)


def test_exif_orientation_applied_and_removed(make_image):
    exif = PILImage.Exif()
    exif[ORIENTATION] = 6  # rotate 90 degrees clockwise on display
    data = make_image(80, 40, exif=exif)
    out = transform(data, TransformOptions.from_query("jpg"))
    img = _open(out.data)
    assert img.size == (40, 80)
    assert img.getexif().get(ORIENTATION) is None


def test_rgba_to_jpeg_is_flattened(make_image):
    out = transform(make_image(20, 20, fmt="PNG", mode="RGBA"), TransformOptions.from_query("jpg"))
    assert _open(out.data).mode == "RGB"


def test_rgba_to_png_keeps_alpha(make_image):
    out = transform(make_image(20, 20, fmt="PNG", mode="RGBA"), TransformOptions.from_query("png"))
    assert _open(out.data).mode == "RGBA"


def test_webp_input(make_image):
    out = transform(make_image(120, 60, fmt="WEBP"), TransformOptions.from_query("png", 60))
    assert _open(out.data).size == (60, 30)


@pytest.mark.parametrize("data", [b"", b"not an image", b"\x00" * 64])
def test_corrupt_input_raises(data):
    with pytest.raises(TransformError):
        transform(data, TransformOptions.from_query())


def test_truncated_jpeg_raises(make_image):
    data = make_image(200, 200)
    with pytest.raises(TransformError):
        transform(data[: len(data) // 2], TransformOptions.from_query())
