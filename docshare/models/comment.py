# docshare/models/comment.py
from sqlalchemy import (
    String,
    Text,
    DateTime,
    Integer,
    Float,
    ForeignKey,
    Index,
)
from docshare.db.base import Base
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from typing import Optional


def _utcnow() -> datetime:
    # 精确到微秒，同一秒内的评论也能排出先后
    return datetime.now(timezone.utc)


class Comment(Base):
    __tablename__ = "comments"

    # 自增 id 同时充当到达顺序，用于 created_at 相同时的排序
    id :Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="Comment id")

    file_id :Mapped[str] = mapped_column(
        String(36),
        ForeignKey("files.id"),
        nullable=False,
        comment="FileRecord this comment belongs to",
    )

    user_name :Mapped[str] = mapped_column(String(100), nullable=False, comment="Display name supplied by the commenter")

    content :Mapped[str] = mapped_column(Text, nullable=False, comment="Comment body")

    created_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
        comment="Creation timestamp"
    )

    # =========
    # Positional annotation (optional, currently unused)
    # =========
    page_number :Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="Page the comment points at")
    x_position :Mapped[Optional[float]] = mapped_column(Float, nullable=True, comment="Horizontal marker position")
    y_position :Mapped[Optional[float]] = mapped_column(Float, nullable=True, comment="Vertical marker position")

    __table_args__ = (
        Index("idx_comments_file_created", "file_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Comment id={self.id} file_id={self.file_id} user={self.user_name!r}>"
