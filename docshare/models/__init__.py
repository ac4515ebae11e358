from docshare.models.file_record import FileRecord
from docshare.models.comment import Comment

__all__ = ["FileRecord", "Comment"]
