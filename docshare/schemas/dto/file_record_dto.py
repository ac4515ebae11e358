from datetime import datetime
from typing import Optional

from docshare.models.file_record import FileRecord
from docshare.schemas.dto.base_dto import BaseDTO, ensure_utc


class FileRecordDTO(BaseDTO):
    id: str
    name: str
    url: str
    created_at: datetime

    @classmethod
    def from_orm_model(cls, file_record: FileRecord) -> "FileRecordDTO":
        return cls(
            id=file_record.id,
            name=file_record.name,
            url=file_record.url,
            created_at=ensure_utc(file_record.created_at),
        )


class FileDetailDTO(FileRecordDTO):
    # ===== 派生字段 =====
    kind: str
    download_url: str
    share_url: str
    size_bytes: Optional[int] = None
    size_display: Optional[str] = None
