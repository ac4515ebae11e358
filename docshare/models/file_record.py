# docshare/models/file_record.py
from sqlalchemy import (
    String,
    DateTime,
    Integer,
    func,
)
from docshare.db.base import Base
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime


class FileRecord(Base):
    """
    Metadata row for an uploaded file.
    Created once after the blob write succeeds; never updated, never deleted.
    """
    __tablename__ = "files"
    # =========
    # 🔒 Immutable facts
    # =========
    id :Mapped[str] = mapped_column(String(36), primary_key=True, comment="FileRecord UUID")

    name :Mapped[str] = mapped_column(String(255), nullable=False, comment="Original filename uploaded by user")

    url :Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        unique=True,
        comment="Storage key of the blob, assigned once at creation",
    )

    file_hash :Mapped[str] = mapped_column(String(64), nullable=True, comment="SHA-256 hash of the file for integrity verification")

    size_bytes :Mapped[int] = mapped_column(Integer, nullable=True, comment="Size of the stored blob in bytes")

    created_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Creation timestamp"
    )

    def __repr__(self) -> str:
        return f"<FileRecord id={self.id} name={self.name!r} url={self.url!r}>"
