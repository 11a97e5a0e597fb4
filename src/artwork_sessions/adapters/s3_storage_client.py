"""S3-compatible object storage client for session photos."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import quote
from uuid import uuid4

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from artwork_sessions.config import StorageConfig
from artwork_sessions.domain.uploads import CandidateFile, StoredObject
from artwork_sessions.errors import ConfigurationError, TransferError
from artwork_sessions.services.uploads import StorageTransferClient

logger = logging.getLogger(__name__)


def _millis() -> int:
    return time.time_ns() // 1_000_000


def build_storage_key(session_id: str, filename: str, timestamp_ms: int) -> str:
    """Return a collision-resistant object key for an uploaded file.

    Keys look like ``sessions/<session>/<millis>-<nonce>-<filename>`` so the
    same filename uploaded in different batches never overwrites an object.
    """
    name = PurePosixPath(filename.replace("\\", "/")).name or "upload"
    return f"sessions/{session_id}/{timestamp_ms}-{uuid4().hex[:8]}-{name}"


def object_url(config: StorageConfig, key: str) -> str:
    """Return the retrieval URL for a key.

    A custom endpoint uses path-style addressing; AWS uses virtual-hosted
    style.
    """
    quoted_key = quote(key, safe="/")
    if config.endpoint:
        base = config.endpoint.rstrip("/")
        return f"{base}/{config.bucket_name}/{quoted_key}"
    return (
        f"https://{config.bucket_name}.s3.{config.region}.amazonaws.com/{quoted_key}"
    )


@dataclass
class S3StorageTransferClient(StorageTransferClient):
    """Uploads photos with boto3 ``put_object``."""

    config: StorageConfig | None
    s3_client: Any | None = None
    clock: Callable[[], int] = field(default=_millis)

    @classmethod
    def create(cls, config: StorageConfig | None) -> "S3StorageTransferClient":
        """Create a storage client; an absent config yields an unusable client."""
        if config is None:
            return cls(config=None)
        s3_client = boto3.client(
            "s3",
            endpoint_url=config.endpoint,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=Config(signature_version="s3v4"),
        )
        return cls(config=config, s3_client=s3_client)

    @property
    def is_configured(self) -> bool:
        return self.config is not None and self.s3_client is not None

    def ensure_configured(self) -> None:
        """Fail fast before any network call when storage is unconfigured."""
        if not self.is_configured:
            raise ConfigurationError(
                "Storage configuration not found. Configure storage settings first."
            )

    async def transfer(self, session_id: str, file: CandidateFile) -> StoredObject:
        """Write the file's bytes and return its key and URL."""
        self.ensure_configured()
        config = self.config
        if config is None:
            raise ConfigurationError("Storage configuration not found")
        key = build_storage_key(session_id, file.filename, self.clock())
        try:
            await asyncio.to_thread(
                self.s3_client.put_object,
                Bucket=config.bucket_name,
                Key=key,
                Body=file.content,
                ContentType=file.content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.exception("Failed to upload %s to %s", file.filename, key)
            raise TransferError(f"Upload of {file.filename} failed: {exc}") from exc
        logger.info("Uploaded s3://%s/%s", config.bucket_name, key)
        return StoredObject(key=key, url=object_url(config, key))

    def status(self) -> dict[str, object]:
        """Describe the storage configuration without secrets."""
        if self.config is None:
            return {"configured": False}
        return {
            "configured": self.is_configured,
            "bucket": self.config.bucket_name,
            "region": self.config.region,
            "endpoint": self.config.endpoint,
        }

    async def close(self) -> None:
        """Close the underlying boto3 client."""
        if self.s3_client is not None:
            self.s3_client.close()
