from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from docshare.errors import CommentValidationError, CommentWriteFailed, FileNotFound
from docshare.logger import get_logger
from docshare.models.comment import Comment
from docshare.models.file_record import FileRecord

logger = get_logger(__name__)


class CommentService:
    """
    Server side of the comment thread: load ordered, append one.
    Comments are immutable once written.
    """

    def __init__(self, db: Session):
        self.db = db

    def load(self, file_id: str) -> List[Comment]:
        """
        All comments of a file, oldest first.
        Ties on created_at fall back to arrival order (id).
        Returns [] when the file has no comments.
        """
        return (
            self.db.query(Comment)
            .filter(Comment.file_id == file_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
            .all()
        )

    def append(
        self,
        *,
        file_id: str,
        user_name: str,
        content: str,
        page_number: Optional[int] = None,
        x_position: Optional[float] = None,
        y_position: Optional[float] = None,
    ) -> Comment:
        '''
        新增一条评论

        :param file_id: 所属 FileRecord id
        :param user_name: 评论者显示名，去空白后不能为空
        :param content: 评论内容，去空白后不能为空
        :raises CommentValidationError: 名字或内容为空，不会写库
        :raises FileNotFound: file_id 不存在
        :raises CommentWriteFailed: 数据库写入失败
        '''
        if not content or not content.strip():
            raise CommentValidationError("Comment content must not be empty")
        if not user_name or not user_name.strip():
            raise CommentValidationError("User name must not be empty")

        if self.db.get(FileRecord, file_id) is None:
            raise FileNotFound(f"File {file_id} not found")

        comment = Comment(
            file_id=file_id,
            user_name=user_name.strip(),
            content=content,
            page_number=page_number,
            x_position=x_position,
            y_position=y_position,
        )
        try:
            self.db.add(comment)
            self.db.commit()
            self.db.refresh(comment)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error saving comment file_id={file_id}: {e}")
            raise CommentWriteFailed() from e

        logger.info(f"Comment added id={comment.id} file_id={file_id} user={comment.user_name!r}")
        return comment
