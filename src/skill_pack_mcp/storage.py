"""Object storage for built skill pack archives."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from skill_pack_mcp.config import Config
from skill_pack_mcp.entries import sanitize_name
from skill_pack_mcp.exceptions import StorageError

logger = logging.getLogger(__name__)

ARCHIVE_CONTENT_TYPE = "application/zip"


def skill_key(session_id: str, skill_name: str) -> str:
    """Storage key for a session's skill pack archive."""
    return f"skills/{sanitize_name(session_id)}/{sanitize_name(skill_name)}.skills"


class ObjectStorage(ABC):
    """Key/value blob storage with signed download links."""

    @abstractmethod
    def upload(
        self, key: str, data: bytes, content_type: str = ARCHIVE_CONTENT_TYPE
    ) -> None:
        """Store bytes under key, replacing any existing object."""

    @abstractmethod
    def download(self, key: str) -> bytes:
        """Fetch the bytes stored under key."""

    @abstractmethod
    def get_signed_download_url(self, key: str) -> str:
        """Return a URL the client can use to download key."""


class LocalObjectStorage(ObjectStorage):
    """Filesystem-backed storage rooted at a directory."""

    def __init__(self, root: Path):
        self.root = Path(root).resolve()

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if path == self.root or self.root not in path.parents:
            raise StorageError(f"Invalid storage key: {key}")
        return path

    def upload(
        self, key: str, data: bytes, content_type: str = ARCHIVE_CONTENT_TYPE
    ) -> None:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}") from e
        logger.info(f"Stored {key} ({len(data)} bytes, {content_type})")

    def download(self, key: str) -> bytes:
        path = self._path_for(key)
        if not path.is_file():
            raise StorageError(f"Object not found: {key}")
        return path.read_bytes()

    def get_signed_download_url(self, key: str) -> str:
        path = self._path_for(key)
        if not path.is_file():
            raise StorageError(f"Object not found: {key}")
        return path.as_uri()


class S3ObjectStorage(ObjectStorage):
    """S3-compatible storage (e.g., Cloudflare R2) via boto3."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        region: str = "auto",
        expiry_seconds: int = 24 * 60 * 60,
        client=None,
    ):
        """Initialize the S3 storage.

        Args:
            bucket: Bucket name.
            endpoint_url: S3-compatible endpoint. None uses AWS defaults.
            access_key_id: Access key ID.
            secret_access_key: Secret access key.
            region: Region name for request signing.
            expiry_seconds: Lifetime of presigned download URLs.
            client: Preconfigured boto3 S3 client (mainly for tests).
        """
        self.bucket = bucket
        self.expiry_seconds = expiry_seconds

        if client is None:
            import boto3
            from botocore.config import Config as BotoConfig

            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                region_name=region,
                config=BotoConfig(signature_version="s3v4"),
            )
        self._client = client

    def upload(
        self, key: str, data: bytes, content_type: str = ARCHIVE_CONTENT_TYPE
    ) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload {key}: {e}") from e
        logger.info(f"Uploaded {key} to bucket {self.bucket} ({len(data)} bytes)")

    def download(self, key: str) -> bytes:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to download {key}: {e}") from e

    def get_signed_download_url(self, key: str) -> str:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=self.expiry_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to sign download URL for {key}: {e}") from e


def create_object_storage(config: Config) -> ObjectStorage | None:
    """Create the storage backend selected in config.

    Returns:
        Storage instance, or None if storage is disabled or not configured.

    Raises:
        ValueError: If the backend name is unknown.
    """
    config.validate_storage_config()
    backend = config.storage_backend.lower()

    if backend == "none":
        return None

    if backend == "s3":
        if not config.is_s3_configured():
            logger.warning(
                "S3 storage selected but R2_ENDPOINT, R2_ACCESS_KEY_ID, "
                "R2_SECRET_ACCESS_KEY or R2_BUCKET is missing; storage disabled"
            )
            return None
        return S3ObjectStorage(
            bucket=config.r2_bucket,
            endpoint_url=config.r2_endpoint,
            access_key_id=config.r2_access_key_id,
            secret_access_key=config.r2_secret_access_key,
            region=config.r2_region,
            expiry_seconds=config.download_url_expiry_seconds,
        )

    return LocalObjectStorage(config.storage_directory)
