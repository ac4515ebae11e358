import base64
import binascii
import time
from hashlib import sha256
from typing import Callable, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from docshare.db.enums import RejectReason
from docshare.errors import (
    InvalidPayload,
    MetadataWriteFailed,
    StorageWriteFailed,
    UploadRejected,
)
from docshare.logger import get_logger
from docshare.models.file_record import FileRecord
from docshare.services.upload_validator import sanitize_file_name, validate_candidate
from docshare.storage.blob_storage import BlobStorage, BlobStorageError

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]

# 服务端的拒绝原因名称与前端校验略有不同
_REJECT_KINDS = {
    RejectReason.FileTooLarge: "FileTooLarge",
    RejectReason.UnsupportedType: "InvalidFileType",
}
_REJECT_MESSAGES = {
    RejectReason.FileTooLarge: "File size exceeds 5MB limit",
    RejectReason.UnsupportedType: "Invalid file type",
}


def decode_data_url(data_url: str) -> bytes:
    """
    Decode the ``data:<mime>;base64,<payload>`` string sent by the upload form.
    A bare base64 string (no ``data:`` header) is accepted as well.
    """
    if not isinstance(data_url, str) or not data_url:
        raise InvalidPayload("Missing file data")

    payload = data_url.split(",", 1)[1] if "," in data_url else data_url
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidPayload("File data is not valid base64") from e


def build_storage_key(file_name: str) -> str:
    """毫秒时间戳 + 随机后缀，避免同名文件互相覆盖"""
    timestamp = str(int(time.time() * 1000))
    return f"{timestamp}-{uuid4().hex[:8]}-{sanitize_file_name(file_name)}"


class UploadService:
    """
    Turns raw bytes + filename into a persisted FileRecord.

    Responsibilities:
    - Re-validate size / type (client checks are advisory only)
    - Write the blob under a freshly generated key
    - Insert the FileRecord only after the blob write succeeded
    """

    def __init__(
        self,
        db: Session,
        blob_storage: BlobStorage,
    ):
        self.db = db
        self.blob_storage = blob_storage

    def upload(
        self,
        *,
        file_bytes: bytes,
        file_name: str,
        progress: Optional[ProgressCallback] = None,
    ) -> FileRecord:
        """
        Store a file and create its FileRecord.

        :param file_bytes: Raw bytes of the file
        :type file_bytes: bytes
        :param file_name: Original filename as supplied by the user
        :type file_name: str
        :param progress: Optional callback receiving 0..100; 100 is only
            reported once the record is committed
        :return: The committed FileRecord, including its generated id
        :raises UploadRejected: type or size check failed
        :raises StorageWriteFailed: blob write failed, nothing was recorded
        :raises MetadataWriteFailed: blob written but the record insert failed
        """
        report = progress or (lambda pct: None)
        report(0)

        # 1. 服务端再校验一次
        result = validate_candidate(file_name, len(file_bytes))
        if not result.ok:
            logger.info(f"Upload rejected name={file_name!r} reason={result.reason.value}")
            raise UploadRejected(_REJECT_KINDS[result.reason], _REJECT_MESSAGES[result.reason])

        # 2. 生成存储 key
        key = build_storage_key(file_name)

        # 3. 写 blob，失败则不创建任何记录
        try:
            stored_key = self.blob_storage.write_blob(key, file_bytes)
        except BlobStorageError as e:
            logger.error(f"Blob write failed key={key}: {e}")
            raise StorageWriteFailed(f"Error uploading file: {e}") from e
        report(50)

        # 4. 插入 FileRecord
        record = FileRecord(
            id=str(uuid4()),
            name=file_name,
            url=stored_key,
            file_hash=sha256(file_bytes).hexdigest(),
            size_bytes=len(file_bytes),
        )
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            self.db.rollback()
            # blob 已经写入但没有记录指向它，只记录，不自动修复
            logger.error(f"Orphaned blob key={stored_key}: metadata insert failed: {e}")
            raise MetadataWriteFailed() from e

        logger.info(f"Uploaded file id={record.id} name={file_name!r} key={stored_key} size={len(file_bytes)}")
        report(100)
        return record
