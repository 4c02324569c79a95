# app/observability/metrics.py
from fastapi import APIRouter
from starlette.responses import Response

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter(tags=["observability"])

ingest_parts_counter = Counter(
    "listing_media_ingest_parts_total",
    "Multipart parts seen by the upload pipelines",
    ["pipeline", "kind", "result"],  # transcode|raw, file|field, uploaded|skipped|failed|parsed
)

image_bytes_hist = Histogram(
    "listing_media_image_bytes",
    "Image sizes before and after transcoding",
    ["stage"],  # original|transcoded
    buckets=(5e3, 2e4, 1e5, 3e5, 1e6, 3e6, 5e6, 1e7),
)

ingest_latency_hist = Histogram(
    "listing_media_ingest_latency_seconds",
    "Wall time of one ingest request",
    ["pipeline"],
)


@router.get("/metrics", include_in_schema=True)
def metrics() -> Response:
    # Prometheus expects text/plain; version=0.0.4
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
