# app/aws/s3_errors.py
import logging
from typing import Optional, Union

from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from app.core.errors import StoreTransportError

logger = logging.getLogger(__name__)


def _hint_for(code: str, http_status: int) -> Optional[str]:
    if code in {"NoSuchBucket"}:
        return "Check CLOUDFLARE_R2_BUCKET."
    if code in {"AccessDenied", "InvalidAccessKeyId"}:
        return "Check the R2 API token permissions (Object Read & Write)."
    if code in {"SignatureDoesNotMatch"}:
        return "Check CLOUDFLARE_R2_SECRET_KEY and clock sync (NTP)."
    if code in {"EntityTooLarge"}:
        return "Object exceeds the store's size limit."
    if code in {"RequestTimeout", "SlowDown", "Throttling"}:
        return "Store is throttling; retry later."
    if 500 <= http_status < 600:
        return "Temporary store outage."
    return None


def transport_error(
    op: str, key: str, e: Union[BotoCoreError, ClientError, S3UploadFailedError]
) -> StoreTransportError:
    """Map a botocore failure onto StoreTransportError (code/status/hint kept for logs)."""
    if isinstance(e, ClientError):
        err = e.response.get("Error", {}) or {}
        meta = e.response.get("ResponseMetadata", {}) or {}
        code: str = err.get("Code", "")
        http_status = int(meta.get("HTTPStatusCode", 500))
    else:
        code = type(e).__name__
        http_status = 502

    hint = _hint_for(code, http_status)
    logger.error("S3 %s failed key=%s code=%s status=%s: %s", op, key, code, http_status, e)
    return StoreTransportError(
        f"Failed to {op} file",
        code=code,
        http_status=http_status,
        hint=hint,
    )
