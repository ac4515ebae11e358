# docshare/storage/blob_storage.py
import os
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from docshare.logger import get_logger

logger = get_logger(__name__)


class BlobStorageError(Exception):
    """Raised by a BlobStorage backend when a read or write fails."""


class BlobStorage(ABC):
    """
    Opaque byte storage keyed by a generated string.
    - write_blob: persist bytes, return the stored key/path
    - read_blob: fetch bytes back
    - resolve_public_url: URL a browser can download the blob from
    """

    @abstractmethod
    def write_blob(self, key: str, data: bytes) -> str:
        ...

    @abstractmethod
    def read_blob(self, key: str) -> bytes:
        ...

    @abstractmethod
    def resolve_public_url(self, key: str) -> str:
        ...


class LocalBlobStorage(BlobStorage):
    """
    Blobs as files under one directory.
    Public URLs point at the /blobs/<key> route served by the app.
    """

    def __init__(self, root_dir: str, public_base_url: str = "/blobs") -> None:
        self.root_dir = os.path.abspath(root_dir)
        self.public_base_url = public_base_url.rstrip("/")
        os.makedirs(self.root_dir, exist_ok=True)

    def _path_for(self, key: str) -> str:
        # key 只能是单层文件名，禁止穿越目录
        if not key or key in (".", "..") or "/" in key or "\\" in key:
            raise BlobStorageError(f"Invalid blob key: {key!r}")
        return os.path.join(self.root_dir, key)

    def write_blob(self, key: str, data: bytes) -> str:
        path = self._path_for(key)
        if os.path.exists(path):
            raise BlobStorageError(f"Blob already exists: {key}")
        try:
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Failed to write blob {key} to {self.root_dir}: {e}")
            raise BlobStorageError(str(e)) from e
        return key

    def read_blob(self, key: str) -> bytes:
        path = self._path_for(key)
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            logger.error(f"Failed to read blob {key} from {self.root_dir}: {e}")
            raise BlobStorageError(str(e)) from e

    def resolve_public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def path_for(self, key: str) -> str:
        """Filesystem path of a stored blob, for send_file()."""
        return self._path_for(key)


class S3BlobStorage(BlobStorage):
    """
    Blobs as S3 objects. The stored key is the object key (with prefix).
    Explicit credentials are optional; without them boto3 falls back to its
    default credential chain (env/IAM, etc.).
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        client: Any = None,
        region_name: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        url_expires_in: int = 3600,
    ) -> None:
        if not bucket:
            raise RuntimeError("S3_BUCKET must be configured when USE_S3_STORAGE is enabled.")
        self.bucket = bucket
        self.prefix = (prefix or "").strip("/")
        self.url_expires_in = url_expires_in
        if client is None:
            session = boto3.session.Session(
                aws_access_key_id=aws_access_key_id,
                aws_secret_access_key=aws_secret_access_key,
                region_name=region_name,
            )
            client = session.client("s3")
        self.client = client

    def _object_key(self, key: str) -> str:
        parts = [p for p in [self.prefix, key] if p]
        return "/".join(parts)

    def write_blob(self, key: str, data: bytes) -> str:
        object_key = self._object_key(key)
        try:
            self.client.put_object(Bucket=self.bucket, Key=object_key, Body=data)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to upload blob to S3 (bucket={self.bucket}, key={object_key}): {e}")
            raise BlobStorageError(str(e)) from e
        return object_key

    def read_blob(self, key: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to read blob from S3 (bucket={self.bucket}, key={key}): {e}")
            raise BlobStorageError(str(e)) from e

    def resolve_public_url(self, key: str) -> str:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=self.url_expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to presign S3 URL (bucket={self.bucket}, key={key}): {e}")
            raise BlobStorageError(str(e)) from e


def get_blob_storage(config: Mapping[str, Any]) -> BlobStorage:
    """
    Build the configured backend.
    - USE_S3_STORAGE false: LocalBlobStorage under BLOB_FOLDER
    - USE_S3_STORAGE true: S3BlobStorage on S3_BUCKET / S3_PREFIX
    """
    if config.get("USE_S3_STORAGE"):
        return S3BlobStorage(
            bucket=config.get("S3_BUCKET"),
            prefix=config.get("S3_PREFIX", ""),
            region_name=config.get("AWS_REGION"),
            aws_access_key_id=config.get("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=config.get("AWS_SECRET_ACCESS_KEY"),
            url_expires_in=int(config.get("PUBLIC_URL_EXPIRES", 3600)),
        )
    return LocalBlobStorage(config["BLOB_FOLDER"])
