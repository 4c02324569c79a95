# app/routers/uploads.py
from contextlib import nullcontext

import anyio
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from app.core.errors import StoreTransportError
from app.core.logging_config import logger
from app.core.settings import Settings
from app.dependencies import get_object_store, get_settings
from app.schemas.uploads import IngestResult, RawIngestResult
from app.services.ingestion import ingest, ingest_raw
from app.services.multipart_reader import MultipartStreamReader, is_multipart
from app.services.object_store import ObjectStore
from app.services.validation_uploads import is_allowed_image, max_buffered_bytes

router = APIRouter(prefix="/uploads", tags=["uploads"])


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _reader(request: Request, s: Settings) -> MultipartStreamReader:
    return MultipartStreamReader(
        request.headers,
        request.stream(),
        buffer_file=lambda ctype: is_allowed_image(ctype, s),
        max_file_size=max_buffered_bytes(s),
    )


def _deadline(s: Settings):
    if s.INGEST_TIMEOUT_SECONDS:
        return anyio.fail_after(s.INGEST_TIMEOUT_SECONDS)
    return nullcontext()


# -----------------------------------------------------------------------------
# Transcode + upload (listing images)
# -----------------------------------------------------------------------------
@router.post("/images", response_model=IngestResult)
async def upload_images(
    request: Request,
    store: ObjectStore = Depends(get_object_store),
    s: Settings = Depends(get_settings),
) -> IngestResult:
    if not is_multipart(request.headers):
        logger.info("request_not_multipart", endpoint=str(request.url.path))
        return IngestResult()

    try:
        with _deadline(s):
            return await ingest(_reader(request, s).parts(), store, s)
    except Exception:
        logger.exception("upload_images_failed")
        raise HTTPException(status_code=500, detail="Image processing failed")


# -----------------------------------------------------------------------------
# Raw upload (original bytes)
# -----------------------------------------------------------------------------
@router.post("/raw", response_model=RawIngestResult)
async def upload_raw(
    request: Request,
    store: ObjectStore = Depends(get_object_store),
    s: Settings = Depends(get_settings),
) -> RawIngestResult:
    if not is_multipart(request.headers):
        return RawIngestResult()

    try:
        with _deadline(s):
            return await ingest_raw(_reader(request, s).parts(), store, s)
    except Exception:
        logger.exception("upload_raw_failed")
        raise HTTPException(status_code=500, detail="Upload failed")


@router.delete("/{key:path}", status_code=204)
def delete_upload(key: str, store: ObjectStore = Depends(get_object_store)) -> Response:
    try:
        store.delete(key)
    except StoreTransportError as e:
        logger.error("delete_failed", key=key, code=e.code, hint=e.hint)
        raise HTTPException(status_code=500, detail="Failed to delete file")
    return Response(status_code=204)
