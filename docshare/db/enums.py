# docshare/db/enums.py
import enum


# FileRecord related enums
class FileKind(enum.Enum):
    """
    How a stored file can be shown.
    Decided once from the extension when the document is loaded.
    """
    pdf = "pdf"                  # 可以逐页渲染
    word_doc = "word_doc"        # doc / docx，只提供下载
    unsupported = "unsupported"


# Upload validation enums
class RejectReason(str, enum.Enum):
    FileTooLarge = "FileTooLarge"
    UnsupportedType = "UnsupportedType"


# Export enums
class ExportVariant(str, enum.Enum):
    zip = "zip"   # 原文件 + comments.txt
    txt = "txt"   # 只有 comments.txt
