from datetime import datetime
from typing import Optional

from docshare.models.comment import Comment
from docshare.schemas.dto.base_dto import BaseDTO, ensure_utc


class CommentDTO(BaseDTO):
    id: int
    file_id: str
    user_name: str
    content: str
    created_at: datetime

    page_number: Optional[int] = None
    x_position: Optional[float] = None
    y_position: Optional[float] = None

    @classmethod
    def from_orm_model(cls, comment: Comment) -> "CommentDTO":
        return cls(
            id=comment.id,
            file_id=comment.file_id,
            user_name=comment.user_name,
            content=comment.content,
            created_at=ensure_utc(comment.created_at),
            page_number=comment.page_number,
            x_position=comment.x_position,
            y_position=comment.y_position,
        )
