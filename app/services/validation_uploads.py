from app.core.errors import ImageSizeError
from app.core.settings import Settings


def is_allowed_image(content_type: str, s: Settings) -> bool:
    return content_type in s.allowed_image_mimes


def validate_image_size(size_bytes: int, s: Settings) -> None:
    """Size gate for image parts; a no-op unless ENFORCE_IMAGE_SIZE_LIMITS is on."""
    if not s.ENFORCE_IMAGE_SIZE_LIMITS:
        return
    if size_bytes < s.MIN_IMAGE_BYTES or size_bytes > s.MAX_IMAGE_BYTES:
        raise ImageSizeError(size_bytes, s.MIN_IMAGE_BYTES, s.MAX_IMAGE_BYTES)


def max_buffered_bytes(s: Settings):
    return s.MAX_IMAGE_BYTES if s.ENFORCE_IMAGE_SIZE_LIMITS else None
