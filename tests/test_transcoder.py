import io

import pytest
from PIL import Image

from app.core.errors import UnsupportedImageError
from app.services.transcoder import MAX_DIMENSION, has_alpha, transcode
from upload_helpers import image_size, make_image


def _format_of(data: bytes) -> str:
    with Image.open(io.BytesIO(data)) as img:
        return img.format


# -------------------------
# Format decision
# -------------------------
def test_jpeg_becomes_webp():
    out, fmt = transcode(make_image("JPEG"), "image/jpeg")
    assert fmt == "webp"
    assert _format_of(out) == "WEBP"


def test_webp_stays_webp():
    out, fmt = transcode(make_image("WEBP"), "image/webp")
    assert fmt == "webp"
    assert _format_of(out) == "WEBP"


def test_png_with_alpha_stays_png():
    result = transcode(make_image("PNG", mode="RGBA"), "image/png")
    assert result.format == "png"
    assert result.content_type == "image/png"
    assert _format_of(result.data) == "PNG"


def test_png_without_alpha_becomes_webp():
    _, fmt = transcode(make_image("PNG", mode="RGB"), "image/png")
    assert fmt == "webp"


def test_alpha_png_declared_as_other_type_becomes_webp_with_alpha():
    # declared type must be exactly image/png for the PNG branch
    out, fmt = transcode(make_image("PNG", mode="RGBA"), "image/webp")
    assert fmt == "webp"
    with Image.open(io.BytesIO(out)) as img:
        assert img.mode == "RGBA"


def test_palette_with_transparency_counts_as_alpha():
    img = Image.new("P", (4, 4))
    img.info["transparency"] = 0
    assert has_alpha(img)
    assert not has_alpha(Image.new("RGB", (4, 4)))


def _half_keyed_png(mode, key, other, **save_kwargs) -> bytes:
    # left half painted with the transparent key, right half opaque
    img = Image.new(mode, (8, 8), key)
    if mode == "P":
        img.putpalette([0, 0, 0, 255, 0, 0, 0, 0, 255] + [0, 0, 0] * 253)
    img.paste(other, (4, 0, 8, 8))
    buf = io.BytesIO()
    img.save(buf, format="PNG", **save_kwargs)
    return buf.getvalue()


@pytest.mark.parametrize(
    "data",
    [
        _half_keyed_png("RGB", (255, 0, 0), (0, 0, 255), transparency=(255, 0, 0)),
        _half_keyed_png("L", 0, 200, transparency=0),
        _half_keyed_png("LA", (128, 0), (128, 255)),
        _half_keyed_png("P", 1, 2, transparency=1),
    ],
    ids=["rgb-trns", "grey-trns", "grey-alpha", "palette-trns"],
)
def test_transparent_png_variants_stay_png(data):
    with Image.open(io.BytesIO(data)) as src:
        assert has_alpha(src)

    out, fmt = transcode(data, "image/png")
    assert fmt == "png"
    with Image.open(io.BytesIO(out)) as img:
        assert img.mode == "RGBA" or "transparency" in img.info
        rgba = img.convert("RGBA")
        assert rgba.getpixel((0, 0))[3] == 0
        assert rgba.getpixel((7, 0))[3] == 255


def test_colour_key_png_declared_as_webp_keeps_alpha():
    data = _half_keyed_png("RGB", (255, 0, 0), (0, 0, 255), transparency=(255, 0, 0))
    out, fmt = transcode(data, "image/webp")
    assert fmt == "webp"
    with Image.open(io.BytesIO(out)) as img:
        assert img.mode == "RGBA"
        assert img.getpixel((0, 0))[3] == 0


def test_sixteen_bit_grey_png_without_transparency_becomes_webp():
    buf = io.BytesIO()
    Image.new("I;16", (8, 8), 1000).save(buf, format="PNG")
    _, fmt = transcode(buf.getvalue(), "image/png")
    assert fmt == "webp"


# -------------------------
# Geometry
# -------------------------
@pytest.mark.parametrize("size", [(64, 48), (1920, 1080), (1, 1)])
def test_small_images_are_not_upscaled(size):
    out, _ = transcode(make_image("JPEG", size=size), "image/jpeg")
    assert image_size(out) == size


def test_large_image_fits_box_keeping_aspect():
    out, _ = transcode(make_image("JPEG", size=(4000, 1000)), "image/jpeg")
    assert image_size(out) == (MAX_DIMENSION, 480)


def test_tall_png_fits_box():
    out, fmt = transcode(make_image("PNG", size=(500, 3840), mode="RGBA"), "image/png")
    assert fmt == "png"
    assert image_size(out) == (250, MAX_DIMENSION)


def test_exif_orientation_is_applied():
    # orientation 6: stored landscape, displayed rotated 90 degrees
    data = make_image("JPEG", size=(200, 100), exif_orientation=6)
    out, _ = transcode(data, "image/jpeg")
    assert image_size(out) == (100, 200)
    with Image.open(io.BytesIO(out)) as img:
        assert img.getexif().get(0x0112) is None


# -------------------------
# Failures
# -------------------------
def test_garbage_bytes_raise_unsupported_image():
    with pytest.raises(UnsupportedImageError):
        transcode(b"definitely not an image", "image/jpeg")


def test_empty_bytes_raise_unsupported_image():
    with pytest.raises(UnsupportedImageError):
        transcode(b"", "image/png")
