# app/core/errors.py
from __future__ import annotations

from typing import Optional


class IngestError(Exception):
    """Base class for everything the upload pipelines raise on purpose."""


class UnsupportedImageError(IngestError):
    """Bytes could not be decoded as an image."""


class ImageSizeError(IngestError):
    def __init__(self, size: int, min_bytes: int, max_bytes: int):
        self.size = size
        self.min_bytes = min_bytes
        self.max_bytes = max_bytes
        super().__init__(f"image size {size} outside [{min_bytes}, {max_bytes}] bytes")


class StoreNotConfiguredError(IngestError):
    """Soft failure: put() reports it through UploadResult instead of raising."""


class StoreTransportError(IngestError):
    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        http_status: Optional[int] = None,
        hint: Optional[str] = None,
    ):
        self.code = code
        self.http_status = http_status
        self.hint = hint
        super().__init__(message)


class FilesystemError(IngestError):
    """Transient file could not be created, written or removed."""


class MalformedFieldJSON(ValueError):
    """A field value looked like JSON but was not. Recovered locally."""


class MalformedMultipartError(IngestError):
    pass
