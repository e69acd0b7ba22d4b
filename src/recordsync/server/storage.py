"""Object storage for record attachments.

This module provides:
- Abstract interface for attachment storage
- LocalFSStorage for development/testing
- S3Storage for production (AWS, MinIO, etc.)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from recordsync.core.errors import RecordSyncError

if TYPE_CHECKING:
    from typing import Any


class ObjectNotFoundError(RecordSyncError):
    """Raised when a stored object does not exist."""


def object_key(folder: str, name: str) -> str:
    """Build the location token of an object.

    Args:
        folder: Destination folder (may be empty).
        name: File name.

    Returns:
        ``"folder/name"``, or ``"name"`` without a folder.

    Raises:
        ValueError: If the name would escape its folder.
    """
    clean_name = PurePosixPath(name).name
    if not clean_name or clean_name in (".", ".."):
        raise ValueError(f"Invalid object name: {name!r}")
    folder = folder.strip("/")
    return f"{folder}/{clean_name}" if folder else clean_name


class ObjectStorage(ABC):
    """Abstract interface for attachment storage."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Return a human-readable description of where objects are stored."""

    @abstractmethod
    def transfer(self, data: bytes, name: str, mime_type: str, folder: str) -> str:
        """Store a file.

        Args:
            data: File content.
            name: Destination file name.
            mime_type: Content type.
            folder: Destination folder.

        Returns:
            Location token to store in the owning record.
        """

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Retrieve a stored file.

        Args:
            key: Location token returned by transfer().

        Raises:
            ObjectNotFoundError: If the object doesn't exist.
        """

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check if an object exists."""


class LocalFSStorage(ObjectStorage):
    """Local filesystem storage for development and testing."""

    def __init__(self, base_path: Path | str) -> None:
        """Initialize local storage.

        Args:
            base_path: Base directory for stored files.
        """
        self._base_path = Path(base_path).resolve()
        self._base_path.mkdir(parents=True, exist_ok=True)

    @property
    def location(self) -> str:
        """Return the local storage path."""
        return f"Local filesystem: {self._base_path}"

    def _path(self, key: str) -> Path:
        return self._base_path.joinpath(*PurePosixPath(key).parts)

    def transfer(self, data: bytes, name: str, mime_type: str, folder: str) -> str:
        """Write the file under base_path/folder/name."""
        key = object_key(folder, name)
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return key

    def get(self, key: str) -> bytes:
        """Read a stored file."""
        path = self._path(key)
        if not path.exists():
            raise ObjectNotFoundError(f"Object not found: {key}")
        return path.read_bytes()

    def exists(self, key: str) -> bool:
        """Check if a file exists."""
        return self._path(key).exists()


class S3Storage(ObjectStorage):
    """S3-compatible storage for production (AWS, MinIO, etc.)."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str = "us-east-1",
        prefix: str = "attachments",
    ) -> None:
        """Initialize S3 storage.

        Args:
            bucket: S3 bucket name.
            endpoint_url: Custom endpoint URL (for MinIO, etc.).
            access_key: AWS access key ID.
            secret_key: AWS secret access key.
            region: AWS region (default: us-east-1).
            prefix: Key prefix under which attachments are stored.
        """
        import boto3

        self._bucket = bucket
        self._endpoint_url = endpoint_url
        self._prefix = prefix.strip("/")
        self._client: Any = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )

    @property
    def location(self) -> str:
        """Return the S3 bucket location."""
        if self._endpoint_url:
            return f"S3: {self._endpoint_url}/{self._bucket}"
        return f"S3: s3://{self._bucket}"

    def _s3_key(self, key: str) -> str:
        return f"{self._prefix}/{key}" if self._prefix else key

    def transfer(self, data: bytes, name: str, mime_type: str, folder: str) -> str:
        """Upload the file with its content type."""
        key = object_key(folder, name)
        self._client.put_object(
            Bucket=self._bucket,
            Key=self._s3_key(key),
            Body=data,
            ContentType=mime_type or "application/octet-stream",
        )
        return key

    def get(self, key: str) -> bytes:
        """Download a stored file."""
        from botocore.exceptions import ClientError

        try:
            response = self._client.get_object(Bucket=self._bucket, Key=self._s3_key(key))
            body: bytes = response["Body"].read()
            return body
        except ClientError as e:
            if e.response["Error"]["Code"] == "NoSuchKey":
                raise ObjectNotFoundError(f"Object not found: {key}") from e
            raise

    def exists(self, key: str) -> bool:
        """Check if an object exists."""
        from botocore.exceptions import ClientError

        try:
            self._client.head_object(Bucket=self._bucket, Key=self._s3_key(key))
            return True
        except ClientError:
            return False


def create_storage(config: dict[str, str | None]) -> ObjectStorage:
    """Factory function to create storage from configuration.

    Args:
        config: Storage configuration dict with keys:
            - type: "local" or "s3"
            - For local: local_path
            - For S3: bucket, endpoint_url, access_key, secret_key, region

    Returns:
        Configured ObjectStorage instance.

    Raises:
        ValueError: If storage type is unknown.
    """
    storage_type = config.get("type", "local")

    if storage_type == "local":
        return LocalFSStorage(config.get("local_path") or "./storage")

    if storage_type == "s3":
        bucket = config.get("bucket")
        if not bucket:
            raise ValueError("S3 storage requires 'bucket' configuration")
        return S3Storage(
            bucket=bucket,
            endpoint_url=config.get("endpoint_url"),
            access_key=config.get("access_key"),
            secret_key=config.get("secret_key"),
            region=config.get("region") or "us-east-1",
        )

    raise ValueError(f"Unknown storage type: {storage_type}")
