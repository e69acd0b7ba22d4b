"""Tests for attachment storage backends."""

from pathlib import Path

import pytest

from recordsync.server.storage import (
    LocalFSStorage,
    ObjectNotFoundError,
    S3Storage,
    create_storage,
    object_key,
)


class TestObjectKey:
    """Tests for object_key."""

    def test_folder_and_name(self) -> None:
        """Should join folder and name with a slash."""
        assert object_key("Users_Images", "photo.jpg") == "Users_Images/photo.jpg"

    def test_no_folder(self) -> None:
        assert object_key("", "photo.jpg") == "photo.jpg"

    def test_strips_directories_from_name(self) -> None:
        """Should keep only the final component of the name."""
        assert object_key("Docs", "../../etc/passwd") == "Docs/passwd"

    def test_rejects_empty_name(self) -> None:
        with pytest.raises(ValueError):
            object_key("Docs", "..")


class TestLocalFSStorage:
    """Tests for LocalFSStorage."""

    @pytest.fixture
    def storage(self, tmp_path: Path) -> LocalFSStorage:
        """Create a LocalFSStorage instance for testing."""
        return LocalFSStorage(tmp_path / "files")

    def test_transfer_writes_file(self, storage: LocalFSStorage, tmp_path: Path) -> None:
        """transfer() should write under base/folder/name and return the key."""
        key = storage.transfer(b"%PDF", "statement.pdf", "application/pdf", "Active Debts_Statements")

        assert key == "Active Debts_Statements/statement.pdf"
        assert (tmp_path / "files" / "Active Debts_Statements" / "statement.pdf").read_bytes() == b"%PDF"

    def test_get_returns_data(self, storage: LocalFSStorage) -> None:
        key = storage.transfer(b"data", "a.txt", "text/plain", "Docs")
        assert storage.get(key) == b"data"

    def test_get_raises_on_missing(self, storage: LocalFSStorage) -> None:
        with pytest.raises(ObjectNotFoundError):
            storage.get("Docs/missing.txt")

    def test_exists(self, storage: LocalFSStorage) -> None:
        key = storage.transfer(b"data", "a.txt", "text/plain", "Docs")
        assert storage.exists(key) is True
        assert storage.exists("Docs/b.txt") is False

    def test_overwrite(self, storage: LocalFSStorage) -> None:
        """A second transfer with the same name should replace the file."""
        storage.transfer(b"old", "a.txt", "text/plain", "Docs")
        storage.transfer(b"new", "a.txt", "text/plain", "Docs")
        assert storage.get("Docs/a.txt") == b"new"


class TestS3Storage:
    """Tests for S3Storage using moto mock."""

    @pytest.fixture
    def mock_s3(self) -> None:
        """Set up moto mock for S3."""
        pytest.importorskip("moto")
        import boto3
        from moto import mock_aws

        with mock_aws():
            # Create the bucket
            client = boto3.client("s3", region_name="us-east-1")
            client.create_bucket(Bucket="test-bucket")
            yield

    @pytest.fixture
    def storage(self, mock_s3: None) -> S3Storage:
        """Create an S3Storage instance for testing."""
        return S3Storage(bucket="test-bucket", region="us-east-1")

    def test_transfer_and_get(self, storage: S3Storage) -> None:
        """transfer() and get() should work correctly."""
        key = storage.transfer(b"jpeg", "photo.jpg", "image/jpeg", "Users_Images")

        assert key == "Users_Images/photo.jpg"
        assert storage.get(key) == b"jpeg"

    def test_content_type_and_prefix(self, storage: S3Storage) -> None:
        """Objects should be stored under the prefix with their content type."""
        import boto3

        storage.transfer(b"jpeg", "photo.jpg", "image/jpeg", "Users_Images")

        head = boto3.client("s3", region_name="us-east-1").head_object(
            Bucket="test-bucket", Key="attachments/Users_Images/photo.jpg"
        )
        assert head["ContentType"] == "image/jpeg"

    def test_get_raises_on_missing(self, storage: S3Storage) -> None:
        with pytest.raises(ObjectNotFoundError):
            storage.get("Users_Images/missing.jpg")

    def test_exists(self, storage: S3Storage) -> None:
        storage.transfer(b"x", "a.pdf", "application/pdf", "Docs")
        assert storage.exists("Docs/a.pdf") is True
        assert storage.exists("Docs/b.pdf") is False


class TestCreateStorage:
    """Tests for the create_storage factory function."""

    def test_create_local_storage(self, tmp_path: Path) -> None:
        """Should create LocalFSStorage for type='local'."""
        config: dict[str, str | None] = {"type": "local", "local_path": str(tmp_path / "files")}

        storage = create_storage(config)

        assert isinstance(storage, LocalFSStorage)
        assert str(tmp_path / "files") in storage.location

    def test_create_s3_storage(self) -> None:
        """Should create S3Storage for type='s3'."""
        pytest.importorskip("moto")
        from moto import mock_aws

        with mock_aws():
            config: dict[str, str | None] = {
                "type": "s3",
                "bucket": "my-bucket",
                "region": "us-east-1",
            }

            storage = create_storage(config)

            assert isinstance(storage, S3Storage)
            assert storage.location == "S3: s3://my-bucket"

    def test_create_s3_requires_bucket(self) -> None:
        """Should raise ValueError if bucket is missing."""
        config: dict[str, str | None] = {"type": "s3"}

        with pytest.raises(ValueError, match="requires 'bucket'"):
            create_storage(config)

    def test_unknown_type_raises(self) -> None:
        """Should raise ValueError for unknown storage type."""
        config: dict[str, str | None] = {"type": "ftp"}

        with pytest.raises(ValueError, match="Unknown storage type"):
            create_storage(config)
