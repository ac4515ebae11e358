# docshare/errors.py
"""
Exceptions raised by the service layer.

Each error carries an ErrorType (how the UI should treat it), a short
``kind`` string that is sent to clients, and the HTTP status code the
routes answer with.
"""
from typing import Any, Dict, Optional

from docshare.schemas.error_type import ErrorType


class DocShareError(Exception):
    error_type: ErrorType = ErrorType.TRANSIENT_IO_ERROR
    kind: str = "Error"
    status_code: int = 500
    default_message: str = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "kind": self.kind}


# =========
# Validation (user-correctable)
# =========
class UploadRejected(DocShareError):
    error_type = ErrorType.VALIDATION_ERROR
    status_code = 400

    def __init__(self, kind: str, message: str):
        self.kind = kind  # InvalidFileType / FileTooLarge
        super().__init__(message)


class InvalidPayload(DocShareError):
    error_type = ErrorType.VALIDATION_ERROR
    kind = "InvalidPayload"
    status_code = 400
    default_message = "Malformed request body"


class CommentValidationError(DocShareError):
    error_type = ErrorType.VALIDATION_ERROR
    kind = "ValidationError"
    status_code = 400
    default_message = "Comment content and user name must not be empty"


# =========
# Storage / IO
# =========
class StorageWriteFailed(DocShareError):
    kind = "StorageWriteFailed"
    default_message = "Error uploading file"


class MetadataWriteFailed(DocShareError):
    error_type = ErrorType.INCONSISTENCY
    kind = "MetadataWriteFailed"
    default_message = "File stored but its record could not be saved"


class FetchFailed(DocShareError):
    kind = "FetchFailed"
    status_code = 502
    default_message = "Could not fetch the file from storage"


class RenderFailed(DocShareError):
    kind = "RenderFailed"
    default_message = "Could not render the document"


class CommentWriteFailed(DocShareError):
    kind = "WriteFailed"
    default_message = "Error saving comment"


class ExportFailed(DocShareError):
    kind = "ExportFailed"
    default_message = "Error creating export"


# =========
# Lookup / capability
# =========
class FileNotFound(DocShareError):
    error_type = ErrorType.NOT_FOUND
    kind = "NotFound"
    status_code = 404
    default_message = "File not found"


class UnsupportedFileType(DocShareError):
    error_type = ErrorType.UNSUPPORTED_TYPE
    kind = "UnsupportedType"
    status_code = 415
    default_message = "This file type cannot be displayed"


class StaleRender(DocShareError):
    """The view moved on to another file while this render was running."""
    kind = "StaleRender"
    status_code = 409
    default_message = "Render result discarded"
