"""
Media store backed by an S3 bucket.

upload() and delete() are fail-soft: provider errors are logged and
upload() returns None so the caller decides what the failure means.
"""
from __future__ import annotations

import logging
import mimetypes
import os
import uuid
from dataclasses import dataclass
from typing import Optional

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaConfig:
    bucket: str
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    public_url: Optional[str] = None
    key_prefix: str = "uploads"


@dataclass(frozen=True)
class MediaAsset:
    url: str
    id: str


def _remove_local(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError:
        logger.warning("Could not remove temp upload %s", path)


class S3MediaStore:
    def __init__(self, config: MediaConfig, client=None):
        self.config = config
        # credentials come from the default AWS chain (env vars, profile, role)
        self.client = client or boto3.client(
            "s3",
            region_name=config.region,
            endpoint_url=config.endpoint_url,
        )

    def _key_for(self, local_path: str) -> str:
        _, ext = os.path.splitext(local_path)
        return f"{self.config.key_prefix.strip('/')}/{uuid.uuid4().hex}{ext.lower()}"

    def url_for(self, key: str) -> str:
        if self.config.public_url:
            return f"{self.config.public_url.rstrip('/')}/{key}"
        if self.config.endpoint_url:
            return f"{self.config.endpoint_url.rstrip('/')}/{self.config.bucket}/{key}"
        return f"https://{self.config.bucket}.s3.amazonaws.com/{key}"

    def upload(self, local_path: str | None) -> MediaAsset | None:
        """Push a local file to the bucket; the local file is always removed."""
        if not local_path:
            return None
        key = self._key_for(local_path)
        content_type = mimetypes.guess_type(local_path)[0] or "application/octet-stream"
        try:
            self.client.upload_file(
                local_path,
                self.config.bucket,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (S3UploadFailedError, ClientError, BotoCoreError, OSError):
            logger.exception("Media upload failed for %s", os.path.basename(local_path))
            return None
        finally:
            _remove_local(local_path)

        asset = MediaAsset(url=self.url_for(key), id=key)
        logger.info("Uploaded media %s", asset.id)
        return asset

    def delete(self, media_id: str | None) -> None:
        if not media_id:
            return
        try:
            self.client.delete_object(Bucket=self.config.bucket, Key=media_id)
            logger.info("Deleted media %s", media_id)
        except (ClientError, BotoCoreError):
            logger.exception("Media delete failed for %s", media_id)
