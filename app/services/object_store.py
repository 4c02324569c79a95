# app/services/object_store.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.aws.s3_errors import transport_error
from app.core.errors import StoreNotConfiguredError
from app.core.settings import Settings
from app.services.s3_keys import build_object_key

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "Object store is not configured"


@dataclass(frozen=True)
class UploadResult:
    success: bool
    message: str
    url: Optional[str] = None
    key: Optional[str] = None

    def raise_for_status(self) -> "UploadResult":
        if not self.success:
            raise StoreNotConfiguredError(self.message)
        return self


# =========================
# Object store (R2 / S3-compatible)
# =========================
class ObjectStore:
    """
    put/delete by key against an S3-compatible bucket, URLs built from a public base.

    When endpoint, credentials, bucket or public base are missing the store is
    disabled: put returns success=False and delete does nothing. Transport
    failures on a configured store raise StoreTransportError.
    """

    def __init__(
        self,
        *,
        endpoint: Optional[str],
        access_key: Optional[str],
        secret_key: Optional[str],
        bucket: Optional[str],
        public_url: Optional[str],
        region: str = "auto",
        connect_timeout: int = 3,
        read_timeout: int = 30,
        client: Any = None,
    ):
        self.bucket = bucket
        self.public_base = (public_url or "").rstrip("/")
        self.configured = bool(endpoint and access_key and secret_key and bucket and public_url)

        self._client = client
        if self._client is None and self.configured:
            self._client = boto3.client(
                "s3",
                region_name=region,
                endpoint_url=endpoint,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                config=Config(
                    signature_version="s3v4",
                    retries={"max_attempts": 1, "mode": "standard"},
                    connect_timeout=connect_timeout,
                    read_timeout=read_timeout,
                ),
            )
            logger.info("Object store initialized endpoint=%s bucket=%s", endpoint, bucket)
        elif not self.configured:
            logger.warning("Object store is not configured, uploads will be skipped")

    @classmethod
    def from_settings(cls, s: Settings, client: Any = None) -> "ObjectStore":
        return cls(
            endpoint=s.CLOUDFLARE_R2_ENDPOINT,
            access_key=s.CLOUDFLARE_R2_ACCESS_KEY,
            secret_key=s.CLOUDFLARE_R2_SECRET_KEY,
            bucket=s.CLOUDFLARE_R2_BUCKET,
            public_url=s.CLOUDFLARE_R2_PUBLIC_URL,
            region=s.S3_REGION,
            connect_timeout=s.S3_CONNECT_TIMEOUT,
            read_timeout=s.S3_READ_TIMEOUT,
            client=client,
        )

    def public_url_for(self, key: str) -> str:
        return f"{self.public_base}/{key.lstrip('/')}"

    def _not_configured(self, op: str) -> UploadResult:
        logger.warning("Object store is not configured, %s skipped", op)
        return UploadResult(success=False, message=NOT_CONFIGURED_MESSAGE)

    def _uploaded(self, key: str) -> UploadResult:
        return UploadResult(
            success=True,
            message="File uploaded successfully",
            url=self.public_url_for(key),
            key=key,
        )

    def put(self, data: bytes, content_type: Optional[str], category: str) -> UploadResult:
        if not self.configured:
            return self._not_configured("upload")

        key = build_object_key(category)
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            raise transport_error("upload", key, e) from e

        logger.info("Uploaded %s bytes to %s", len(data), key)
        return self._uploaded(key)

    def put_file(self, path: Union[str, Path], content_type: Optional[str], category: str) -> UploadResult:
        """Same as put(), reading the body from a file on disk."""
        if not self.configured:
            return self._not_configured("upload")

        key = build_object_key(category)
        try:
            self._client.upload_file(
                Filename=str(path),
                Bucket=self.bucket,
                Key=key,
                ExtraArgs={"ContentType": content_type or "application/octet-stream"},
            )
        except (BotoCoreError, ClientError, S3UploadFailedError) as e:
            raise transport_error("upload", key, e) from e

        logger.info("Uploaded %s to %s", path, key)
        return self._uploaded(key)

    def delete(self, key: str) -> None:
        if not self.configured:
            logger.warning("Object store is not configured, delete of %s skipped", key)
            return

        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise transport_error("delete", key, e) from e

        logger.info("Deleted %s", key)
