# storefront/services/storage.py
"""
Signed-URL gateway over Cloudflare R2 (S3 API).

Objects live under opaque random keys. Callers never receive a permanent
object URL, only presigned links that expire after ``expiry_seconds``.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import BinaryIO, Optional
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from storefront.errors import StorageUnconfigured, UpstreamUnavailable

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_SECONDS = 3600


class StorageState(str, Enum):
    configured = "configured"
    unconfigured = "unconfigured"


class SignMode(str, Enum):
    preview = "preview"
    attachment = "attachment"


@dataclass(frozen=True)
class SignedUrl:
    url: str
    expires_at: datetime


def content_disposition(mode: SignMode, filename: Optional[str] = None) -> str:
    if mode == SignMode.preview:
        return "inline"
    if not filename:
        return "attachment"
    ascii_name = filename.encode("ascii", "ignore").decode().replace('"', "").replace("\\", "")
    return f"attachment; filename=\"{ascii_name or 'download'}\"; filename*=UTF-8''{quote(filename)}"


class SignedUrlGateway:
    def __init__(self, client=None, bucket: Optional[str] = None, expiry_seconds: int = DEFAULT_EXPIRY_SECONDS):
        self._client = client
        self.bucket = bucket
        self.expiry_seconds = expiry_seconds

    @classmethod
    def from_settings(cls, settings) -> "SignedUrlGateway":
        endpoint = settings.r2_endpoint_url
        if not all([endpoint, settings.r2_access_key_id, settings.r2_secret_access_key, settings.r2_bucket_name]):
            logger.warning("Cloudflare R2 not configured. Downloads and uploads are disabled.")
            return cls(expiry_seconds=settings.signed_url_expiry_seconds)

        client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
            region_name="auto",
            config=Config(signature_version="s3v4"),
        )
        return cls(client, settings.r2_bucket_name, settings.signed_url_expiry_seconds)

    @property
    def state(self) -> StorageState:
        if self._client is None or not self.bucket:
            return StorageState.unconfigured
        return StorageState.configured

    def _require_client(self):
        if self.state is StorageState.unconfigured:
            raise StorageUnconfigured()
        return self._client

    def sign(self, object_key: str, mode: SignMode = SignMode.preview, filename: Optional[str] = None) -> SignedUrl:
        client = self._require_client()
        issued_at = datetime.now(timezone.utc)

        url = client.generate_presigned_url(
            "get_object",
            Params={
                "Bucket": self.bucket,
                "Key": object_key,
                "ResponseContentDisposition": content_disposition(mode, filename),
            },
            ExpiresIn=self.expiry_seconds,
        )
        return SignedUrl(url=url, expires_at=issued_at + timedelta(seconds=self.expiry_seconds))

    def put(self, fileobj: BinaryIO, folder: str, filename: str, content_type: Optional[str] = None) -> str:
        """Store a blob under a fresh random key and return the key."""
        client = self._require_client()

        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
        key = f"{folder.strip('/')}/{secrets.token_hex(16)}.{ext}"

        try:
            client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=fileobj,
                ContentType=content_type or "application/octet-stream",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"R2 upload failed for {folder}: {e}")
            raise UpstreamUnavailable("File upload failed") from e

        return key
