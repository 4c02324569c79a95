# app/services/ingestion.py
from __future__ import annotations

from pathlib import PurePath
from time import perf_counter
from typing import AsyncIterable, Optional

from starlette.concurrency import run_in_threadpool

from app.core.logging_config import logger
from app.core.settings import Settings, settings as default_settings
from app.observability.metrics import image_bytes_hist, ingest_latency_hist, ingest_parts_counter
from app.schemas.uploads import IngestResult, ProcessedImage, RawIngestResult, SkippedPart
from app.services.field_values import parse_field_value
from app.services.multipart_reader import FieldPart, FilePart, MultipartPart
from app.services.object_store import ObjectStore, UploadResult
from app.services.transcoder import transcode
from app.services.transient_files import transient_file
from app.services.validation_uploads import is_allowed_image, validate_image_size


def _kb(n: int) -> float:
    return round(n / 1024, 1)


def _skip(pipeline: str, part: FilePart, reason: str) -> SkippedPart:
    ingest_parts_counter.labels(pipeline, "file", "skipped").inc()
    logger.info(
        "part_skipped",
        pipeline=pipeline,
        field=part.name,
        filename=part.filename,
        content_type=part.content_type,
        size_kb=_kb(part.bytes_read),
        reason=reason,
    )
    return SkippedPart(
        field=part.name,
        filename=part.filename,
        content_type=part.content_type,
        reason=reason,
    )


async def _upload_via_transient_file(
    store: ObjectStore,
    data: bytes,
    content_type: str,
    category: str,
    *,
    s: Settings,
    prefix: str,
    suffix: str,
) -> UploadResult:
    # the temp file only lives for this one upload attempt
    async with transient_file(data, directory=s.TEMP_DIR, prefix=prefix, suffix=suffix) as path:
        return await run_in_threadpool(store.put_file, path, content_type, category)


async def _transcode_and_store(part: FilePart, store: ObjectStore, s: Settings) -> Optional[str]:
    validate_image_size(part.bytes_read, s)

    original = part.content
    result = await run_in_threadpool(transcode, original, part.content_type)

    saved_pct = round((1 - len(result.data) / len(original)) * 100, 1) if original else 0.0
    image_bytes_hist.labels("original").observe(len(original))
    image_bytes_hist.labels("transcoded").observe(len(result.data))
    logger.info(
        "image_processed",
        field=part.name,
        filename=part.filename,
        format=result.format,
        original_kb=_kb(len(original)),
        compressed_kb=_kb(len(result.data)),
        savings_pct=saved_pct,
    )

    upload = await _upload_via_transient_file(
        store,
        result.data,
        result.content_type,
        s.listing_category,
        s=s,
        prefix="processed-",
        suffix=f".{result.format}",
    )
    return upload.url if upload.success else None


async def ingest(
    parts: AsyncIterable[MultipartPart],
    store: ObjectStore,
    s: Settings = default_settings,
) -> IngestResult:
    """
    Transcode + store every allow-listed image part, collect the form fields.

    Parts are handled one at a time in arrival order. ProcessedImage.order is
    the zero-based position among allow-listed image parts (fields and other
    files do not take a slot). Any error aborts the request; objects already
    uploaded for earlier parts stay in the store.
    """
    t0 = perf_counter()
    result = IngestResult()
    index = 0

    try:
        async for part in parts:
            if isinstance(part, FieldPart):
                result.fields[part.name] = parse_field_value(part.value)
                ingest_parts_counter.labels("transcode", "field", "parsed").inc()
                continue

            if not is_allowed_image(part.content_type, s):
                result.skipped.append(_skip("transcode", part, "not_allowed"))
                continue

            order = index
            index += 1

            url = await _transcode_and_store(part, store, s)
            if url is None:
                result.skipped.append(_skip("transcode", part, "store_not_configured"))
                continue

            result.images.append(ProcessedImage(url=url, order=order))
            result.urls.append(url)
            ingest_parts_counter.labels("transcode", "file", "uploaded").inc()
    except Exception as e:
        ingest_parts_counter.labels("transcode", "file", "failed").inc()
        logger.error(
            "ingest_failed",
            error=type(e).__name__,
            detail=str(e),
            uploaded_before_failure=len(result.urls),
        )
        raise
    finally:
        ingest_latency_hist.labels("transcode").observe(perf_counter() - t0)

    logger.info(
        "ingest_finished",
        images=len(result.images),
        fields=sorted(result.fields),
        skipped=len(result.skipped),
    )
    return result


async def ingest_raw(
    parts: AsyncIterable[MultipartPart],
    store: ObjectStore,
    s: Settings = default_settings,
) -> RawIngestResult:
    """Store allow-listed image parts byte-for-byte; fields are ignored."""
    t0 = perf_counter()
    result = RawIngestResult()

    try:
        async for part in parts:
            if not isinstance(part, FilePart):
                continue
            if not is_allowed_image(part.content_type, s):
                result.skipped.append(_skip("raw", part, "not_allowed"))
                continue

            validate_image_size(part.bytes_read, s)
            upload = await _upload_via_transient_file(
                store,
                part.content,
                part.content_type,
                s.raw_category,
                s=s,
                prefix="upload-",
                suffix=PurePath(part.filename or "").suffix,
            )
            if not upload.success:
                result.skipped.append(_skip("raw", part, "store_not_configured"))
                continue

            result.urls.append(upload.url)
            ingest_parts_counter.labels("raw", "file", "uploaded").inc()
    except Exception as e:
        ingest_parts_counter.labels("raw", "file", "failed").inc()
        logger.error("ingest_raw_failed", error=type(e).__name__, detail=str(e), uploaded_before_failure=len(result.urls))
        raise
    finally:
        ingest_latency_hist.labels("raw").observe(perf_counter() - t0)

    logger.info("ingest_raw_finished", urls=len(result.urls), skipped=len(result.skipped))
    return result
