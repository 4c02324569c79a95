# app/services/transcoder.py
from __future__ import annotations

import io
from typing import NamedTuple

from PIL import Image, ImageOps, UnidentifiedImageError

from app.core.errors import UnsupportedImageError

MAX_DIMENSION = 1920

# PNG (alpha kept)
PNG_QUALITY = 90  # no PNG quality knob in Pillow; palette + max compression instead
PNG_COMPRESS_LEVEL = 9
PNG_PALETTE_COLORS = 256

# WebP (everything else)
WEBP_QUALITY = 92
WEBP_ALPHA_QUALITY = 100
WEBP_METHOD = 6  # 0-6, 6 = slowest/smallest

_ALPHA_MODES = {"RGBA", "LA", "PA", "La", "RGBa"}


class TranscodeResult(NamedTuple):
    data: bytes
    format: str  # "png" | "webp"

    @property
    def content_type(self) -> str:
        return f"image/{self.format}"


def has_alpha(img: Image.Image) -> bool:
    """Alpha band, or a tRNS transparency entry (palette index, grey level or RGB colour key)."""
    if img.mode in _ALPHA_MODES:
        return True
    return img.info.get("transparency") is not None


def _decode(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise UnsupportedImageError(f"cannot decode image: {e}") from e
    return img


def _encode_png(img: Image.Image) -> bytes:
    rgba = img.convert("RGBA")
    paletted = rgba.quantize(colors=PNG_PALETTE_COLORS, method=Image.Quantize.FASTOCTREE)
    out = io.BytesIO()
    paletted.save(out, format="PNG", optimize=True, compress_level=PNG_COMPRESS_LEVEL)
    return out.getvalue()


def _encode_webp(img: Image.Image, alpha: bool) -> bytes:
    target_mode = "RGBA" if alpha else "RGB"
    if img.mode != target_mode:
        img = img.convert(target_mode)
    out = io.BytesIO()
    img.save(
        out,
        format="WEBP",
        quality=WEBP_QUALITY,
        alpha_quality=WEBP_ALPHA_QUALITY,
        lossless=False,
        method=WEBP_METHOD,
    )
    return out.getvalue()


def transcode(data: bytes, content_type: str, max_dimension: int = MAX_DIMENSION) -> TranscodeResult:
    """
    Normalize one uploaded image.

    - EXIF orientation is applied and dropped, no other metadata is written
    - fits inside max_dimension x max_dimension, never upscaled
    - PNG with transparency stays PNG (palette, max compression), the rest becomes lossy WebP

    Raises UnsupportedImageError when the bytes are not an image Pillow can read.
    """
    img = _decode(data)
    alpha = has_alpha(img)

    try:
        img = ImageOps.exif_transpose(img)
        if alpha and img.mode != "RGBA":
            # colour-key transparency becomes a real alpha band before resampling
            img = img.convert("RGBA")
        img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

        if alpha and content_type == "image/png":
            return TranscodeResult(_encode_png(img), "png")
        return TranscodeResult(_encode_webp(img, alpha), "webp")
    except OSError as e:
        # truncated/corrupt data can surface only once pixels are touched
        raise UnsupportedImageError(f"cannot transcode image: {e}") from e
