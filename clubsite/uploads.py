"""
Image upload handling: validation, filename sanitizing and storage backends.

Local disk storage is used by default; an S3-compatible bucket is used when
one is configured.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from clubsite.errors import StoreError, UploadRejected
from clubsite.records import epoch_ms

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
ALLOWED_IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg"})
UPLOAD_KEY_PREFIX = "projects"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


class UploadStorage(Protocol):
    """Stores an uploaded file and returns its public URL."""

    def save(self, name: str, data: bytes, content_type: str) -> str:
        ...


def sanitize_filename(filename: str, *, timestamp_ms: Optional[int] = None) -> str:
    """
    Strip directory components, replace characters outside ``[a-zA-Z0-9.-]``
    with ``_`` and prefix a millisecond timestamp.
    """
    base = os.path.basename((filename or "").replace("\\", "/"))
    safe = _UNSAFE_CHARS.sub("_", base) or "upload"
    stamp = timestamp_ms if timestamp_ms is not None else epoch_ms()
    return f"{stamp}-{safe}"


def check_image(filename: str, content_type: Optional[str], size: int) -> None:
    if size > MAX_UPLOAD_BYTES:
        raise UploadRejected("File too large", 413)
    extension = os.path.splitext(filename or "")[1].lower()
    if extension not in ALLOWED_IMAGE_EXTENSIONS or not (
        content_type or ""
    ).lower().startswith("image/"):
        raise UploadRejected("Unsupported file type", 415)


@dataclass
class LocalUploadStorage:
    """Writes uploads under a directory served at ``url_prefix``."""

    directory: str
    url_prefix: str = "/uploads"

    def save(self, name: str, data: bytes, content_type: str) -> str:
        target = Path(self.directory) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Stored upload %s (%d bytes)", target, len(data))
        return f"{self.url_prefix.rstrip('/')}/{name}"


@dataclass
class InMemoryUploadStorage:
    """Test double for upload storage."""

    base_url: str = "https://example.test/uploads"
    stored_objects: dict = field(default_factory=dict)

    def save(self, name: str, data: bytes, content_type: str) -> str:
        self.stored_objects[name] = (data, content_type)
        return f"{self.base_url}/{name}"


@dataclass
class S3UploadStorage:
    """
    S3-compatible object storage. Objects are written under ``projects/`` and
    addressed by an absolute URL.
    """

    bucket: str
    region: str = ""
    endpoint: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    public_base_url: str = ""

    def __post_init__(self):
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint:
            return f"{self.endpoint.rstrip('/')}/{self.bucket}/{key}"
        region = self.region or "us-east-1"
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{key}"

    def save(self, name: str, data: bytes, content_type: str) -> str:
        key = f"{UPLOAD_KEY_PREFIX}/{name}"
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Upload of %s to bucket %s failed", key, self.bucket)
            raise StoreError("Upload failed") from exc
        return self.public_url(key)
