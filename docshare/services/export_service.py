import io
import os
import zipfile
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from docshare.db.enums import ExportVariant
from docshare.errors import ExportFailed
from docshare.logger import get_logger
from docshare.models.comment import Comment
from docshare.models.file_record import FileRecord

logger = get_logger(__name__)

COMMENTS_FILE_NAME = "comments.txt"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_comment_timestamp(value: datetime, tz: Optional[timezone] = None) -> str:
    """Human readable local time; naive datetimes are read as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).strftime(TIMESTAMP_FORMAT)


def render_comments_text(comments: Iterable[Comment], tz: Optional[timezone] = None) -> str:
    """One paragraph per comment, blank line between them, in the given order."""
    return "\n\n".join(
        f"{c.user_name} ({format_comment_timestamp(c.created_at, tz)}): {c.content}"
        for c in comments
    )


def export_file_name(file_record: FileRecord, variant: ExportVariant = ExportVariant.zip) -> str:
    stem, _ = os.path.splitext(file_record.name)
    stem = stem or "file"
    if variant == ExportVariant.txt:
        return f"{stem}-comments.txt"
    return f"{stem}-with-comments.zip"


class ExportService:
    """
    Packs already-loaded state into a downloadable file. No storage or network
    access happens here; the caller supplies the bytes and the comment list.
    """

    def __init__(self, tz: Optional[timezone] = None):
        self.tz = tz

    def export_archive(
        self,
        *,
        file_record: FileRecord,
        file_bytes: Optional[bytes],
        comments: Sequence[Comment],
    ) -> bytes:
        """
        Zip containing the original file under its original name and
        comments.txt. The archive is built fully in memory; on failure nothing
        is returned.
        """
        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                if file_bytes is not None:
                    zf.writestr(os.path.basename(file_record.name) or "file", file_bytes)
                zf.writestr(COMMENTS_FILE_NAME, render_comments_text(comments, self.tz))
        except (zipfile.BadZipFile, OSError, ValueError) as e:
            logger.error(f"Error creating export file_id={file_record.id}: {e}")
            raise ExportFailed() from e

        data = buffer.getvalue()
        logger.info(f"Exported file_id={file_record.id} comments={len(comments)} bytes={len(data)}")
        return data

    def export_text(self, *, comments: Sequence[Comment]) -> bytes:
        try:
            return render_comments_text(comments, self.tz).encode("utf-8")
        except UnicodeEncodeError as e:
            raise ExportFailed() from e

    def export(
        self,
        *,
        file_record: FileRecord,
        file_bytes: Optional[bytes],
        comments: Sequence[Comment],
        variant: ExportVariant = ExportVariant.zip,
    ) -> bytes:
        if variant == ExportVariant.txt:
            return self.export_text(comments=comments)
        return self.export_archive(file_record=file_record, file_bytes=file_bytes, comments=comments)
