# docshare/services/upload_validator.py
"""
Pure checks applied to a candidate file before any network or storage call.

Nothing here touches the database or the blob store, so the helpers can be
called speculatively (e.g. while a file is dragged over the drop zone).
"""
import re

from docshare.db.enums import FileKind, RejectReason
from docshare.schemas.validation_result import ValidationResult

MAX_FILE_SIZE = 5 * 1024 * 1024
ALLOWED_EXTENSIONS = {"pdf", "doc", "docx"}
WORD_EXTENSIONS = {"doc", "docx"}

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def file_extension(name: str) -> str:
    """Substring after the last '.', lowercased; '' when there is no dot."""
    if not name or "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def validate_candidate(name: str, size_bytes: int) -> ValidationResult:
    """
    校验候选文件，规则按顺序执行，第一条失败即返回：
    1. size_bytes > 5MB -> FileTooLarge
    2. 扩展名不在 {pdf, doc, docx} -> UnsupportedType
    """
    if size_bytes > MAX_FILE_SIZE:
        return ValidationResult.reject(
            RejectReason.FileTooLarge,
            "File size must be less than 5MB",
        )

    if file_extension(name) not in ALLOWED_EXTENSIONS:
        return ValidationResult.reject(
            RejectReason.UnsupportedType,
            "Only PDF and DOC files are allowed",
        )

    return ValidationResult.accept()


def sanitize_file_name(name: str) -> str:
    """Replace every character outside [A-Za-z0-9._-] with '_'."""
    return _UNSAFE_KEY_CHARS.sub("_", name or "")


def classify_file(name: str) -> FileKind:
    ext = file_extension(name)
    if ext == "pdf":
        return FileKind.pdf
    if ext in WORD_EXTENSIONS:
        return FileKind.word_doc
    return FileKind.unsupported


def human_readable_size(size_bytes: int) -> str:
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"
