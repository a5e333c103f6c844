"""
S3 storage for data exports and backups.
With retry logic for resilient uploads.
"""
import csv
import io
import json
import logging
import time
from functools import wraps
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    ConnectionClosedError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from qairoz import config
from qairoz.utils.timeutils import today_stamp

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """S3 rejected or failed a request."""


class StorageNotConfiguredError(StorageError):
    """No bucket configured."""


# S3 error codes worth another attempt; everything else 4xx is permanent
TRANSIENT_ERROR_CODES = {
    "Throttling",
    "ThrottlingException",
    "SlowDown",
    "RequestLimitExceeded",
    "RequestTimeout",
    "RequestTimeoutException",
    "InternalError",
    "ServiceUnavailable",
}


def is_transient(e: Exception) -> bool:
    if isinstance(e, ClientError):
        code = e.response.get("Error", {}).get("Code", "")
        status_code = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 0
        return code in TRANSIENT_ERROR_CODES or status_code >= 500
    return isinstance(e, (
        EndpointConnectionError,
        ConnectionClosedError,
        ConnectTimeoutError,
        ReadTimeoutError,
        ConnectionError,
        TimeoutError,
    ))


def retry_with_backoff(max_retries: int = 3, base_delay: float = 0.5, max_delay: float = 8.0):
    """
    Decorator for retry logic with exponential backoff.
    Only transient failures (see is_transient) are retried.

    Args:
        max_retries: Maximum number of attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap in seconds
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            last_exception = None
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except (ClientError, BotoCoreError, ConnectionError, TimeoutError) as e:
                    last_exception = e
                    if not is_transient(e):
                        raise
                    if attempt < max_retries - 1:
                        delay = min(base_delay * (2 ** attempt), max_delay)
                        logger.warning("[S3-Retry] Attempt %d/%d failed: %s. Retrying in %.1fs...",
                                       attempt + 1, max_retries, e, delay)
                        time.sleep(delay)
                    else:
                        logger.error("[S3-Retry] All %d attempts failed: %s", max_retries, e)
            raise last_exception
        return wrapper
    return decorator


# ---------------- Export payloads ----------------
def build_json_export(snapshot: Dict[str, Any]) -> bytes:
    return json.dumps(snapshot, indent=2, ensure_ascii=False).encode("utf-8")


def build_students_csv(students: List[Dict[str, Any]]) -> bytes:
    """One row per student; columns are the union of keys in first-seen order."""
    fieldnames: List[str] = []
    for student in students:
        for key in student:
            if key not in fieldnames:
                fieldnames.append(key)

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=fieldnames, restval="", extrasaction="ignore")
    writer.writeheader()
    for student in students:
        writer.writerow({
            k: json.dumps(v, ensure_ascii=False) if isinstance(v, (dict, list)) else v
            for k, v in student.items()
        })
    return buffer.getvalue().encode("utf-8")


class S3Storage:
    """
    Thin wrapper around a boto3 S3 client scoped to one bucket and prefix.
    The client is created lazily so the app starts without AWS access.
    """

    def __init__(
        self,
        bucket: Optional[str] = None,
        prefix: Optional[str] = None,
        region: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket if bucket is not None else config.S3_BUCKET_NAME
        self.prefix = prefix if prefix is not None else config.S3_BACKUP_PREFIX
        self.region = region or config.AWS_REGION
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.bucket)

    def _get_client(self):
        if not self.configured:
            raise StorageNotConfiguredError("S3 bucket is not configured. Set S3_BUCKET_NAME.")
        if self._client is None:
            kwargs = {
                "region_name": self.region,
                # uploads retry through retry_with_backoff; botocore makes one attempt
                "config": Config(signature_version="s3v4", retries={"mode": "standard", "max_attempts": 1}),
            }
            if config.S3_ENDPOINT_URL:
                kwargs["endpoint_url"] = config.S3_ENDPOINT_URL
            # Without explicit keys boto3 falls back to its credential chain (IAM role etc)
            if config.AWS_ACCESS_KEY_ID and config.AWS_SECRET_ACCESS_KEY:
                kwargs["aws_access_key_id"] = config.AWS_ACCESS_KEY_ID
                kwargs["aws_secret_access_key"] = config.AWS_SECRET_ACCESS_KEY
            self._client = boto3.client("s3", **kwargs)
            logger.info("S3 client created for bucket %s (%s)", self.bucket, self.region)
        return self._client

    def _key(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def check_connection(self) -> Dict[str, Any]:
        client = self._get_client()
        try:
            client.head_bucket(Bucket=self.bucket)
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 connection test failed for %s: %s", self.bucket, e)
            raise StorageError(f"Cannot access bucket {self.bucket}: {e}") from e
        return {"buckets": [self.bucket], "region": self.region}

    @retry_with_backoff()
    def _put_object(self, key: str, body: bytes, content_type: str) -> None:
        self._get_client().put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)

    def upload(self, name: str, body: bytes, content_type: str) -> Dict[str, Any]:
        """Upload `body` under the backup prefix; returns {name, size, url}."""
        key = self._key(name)
        try:
            self._put_object(key, body, content_type)
        except (ClientError, BotoCoreError, ConnectionError, TimeoutError) as e:
            raise StorageError(f"Upload of {name} failed: {e}") from e
        logger.info("Uploaded s3://%s/%s (%d bytes)", self.bucket, key, len(body))
        return {"name": name, "size": len(body), "url": self.presigned_url(key)}

    def presigned_url(self, key: str) -> str:
        try:
            return self._get_client().generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=config.S3_PRESIGNED_URL_EXPIRY,
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning("Could not presign %s: %s", key, e)
            return ""

    def export_snapshot(self, snapshot: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Write the JSON snapshot and the students CSV for today."""
        stamp = today_stamp()
        return [
            self.upload(f"qairoz-data-{stamp}.json", build_json_export(snapshot), "application/json"),
            self.upload(f"qairoz-students-{stamp}.csv", build_students_csv(snapshot["students"]), "text/csv"),
        ]

    def list_backups(self) -> List[Dict[str, Any]]:
        """Objects under the prefix, newest first."""
        client = self._get_client()
        backups = []
        try:
            paginator = client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=self.prefix):
                for obj in page.get("Contents", []):
                    key = obj["Key"]
                    if key.endswith("/"):
                        continue
                    backups.append({
                        "name": key[len(self.prefix):] if key.startswith(self.prefix) else key,
                        "size": obj.get("Size", 0),
                        "last_modified": obj["LastModified"],
                        "url": self.presigned_url(key),
                    })
        except (ClientError, BotoCoreError) as e:
            logger.error("Listing backups in %s failed: %s", self.bucket, e)
            raise StorageError(f"Cannot list backups: {e}") from e

        backups.sort(key=lambda b: b["last_modified"], reverse=True)
        return backups


storage = S3Storage()


def get_storage() -> S3Storage:
    return storage
