# docshare/client/api_client.py
import base64
import mimetypes
import os
from typing import Any, Callable, Dict, List, Optional

import requests

from docshare.errors import DocShareError, UploadRejected
from docshare.schemas.dto.comment_dto import CommentDTO
from docshare.schemas.dto.file_record_dto import FileDetailDTO, FileRecordDTO
from docshare.schemas.dto.render_dto import DocumentViewDTO
from docshare.schemas.error_type import ErrorType
from docshare.services.upload_validator import validate_candidate

API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:5000")
DEFAULT_TIMEOUT = 60

ProgressCallback = Callable[[int], None]

_ERROR_TYPES_BY_STATUS = {
    400: ErrorType.VALIDATION_ERROR,
    404: ErrorType.NOT_FOUND,
    415: ErrorType.UNSUPPORTED_TYPE,
}


class ApiError(DocShareError):
    """Non-2xx answer from the server, or the request never completed."""

    def __init__(self, message: str, status_code: int = 0, kind: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.kind = kind or "TransientIOError"
        self.error_type = _ERROR_TYPES_BY_STATUS.get(status_code, ErrorType.TRANSIENT_IO_ERROR)


def to_data_url(file_name: str, data: bytes) -> str:
    mime, _ = mimetypes.guess_type(file_name)
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime or 'application/octet-stream'};base64,{encoded}"


class APIClient:
    """
    HTTP client for the docshare API.
    Failures raise ApiError; nothing is retried automatically.
    """

    def __init__(self, base_url: Optional[str] = None, http: Any = None, timeout: int = DEFAULT_TIMEOUT):
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.http = http or requests.Session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}{path}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            res = self.http.request(method, self._url(path), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ApiError(f"Network error: {e}") from e

        if res.status_code >= 400:
            try:
                body = res.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            raise ApiError(
                body.get("error") or f"HTTP {res.status_code}",
                status_code=res.status_code,
                kind=body.get("kind"),
            )
        return res

    # --- FILES ---
    def upload_file(
        self,
        file_name: str,
        data: bytes,
        progress: Optional[ProgressCallback] = None,
    ) -> FileRecordDTO:
        """
        Validate locally, then POST the file as a data URL.
        A rejected candidate raises UploadRejected before any request is made.
        Progress reaches 100 only after the server confirmed the record.
        """
        report = progress or (lambda pct: None)

        result = validate_candidate(file_name, len(data))
        if not result.ok:
            raise UploadRejected(result.reason.value, result.message)

        report(0)
        body = {"file": to_data_url(file_name, data), "fileName": file_name}
        report(10)
        try:
            res = self._request("POST", "/api/upload", json=body)
        except ApiError:
            report(0)
            raise
        report(90)
        record = FileRecordDTO.model_validate(res.json())
        report(100)
        return record

    def upload_path(self, path: str, progress: Optional[ProgressCallback] = None) -> FileRecordDTO:
        file_name = os.path.basename(path)
        # 先看大小，超限时不读文件内容
        result = validate_candidate(file_name, os.path.getsize(path))
        if not result.ok:
            raise UploadRejected(result.reason.value, result.message)
        with open(path, "rb") as f:
            data = f.read()
        return self.upload_file(file_name, data, progress=progress)

    def get_file(self, file_id: str) -> FileDetailDTO:
        res = self._request("GET", f"/api/files/{file_id}")
        return FileDetailDTO.model_validate(res.json())

    def share_link(self, file_id: str) -> str:
        """The /file/<id> link other people can open."""
        return self.get_file(file_id).share_url

    def get_pages(self, file_id: str) -> DocumentViewDTO:
        res = self._request("GET", f"/api/files/{file_id}/pages")
        return DocumentViewDTO.model_validate(res.json())

    def download(self, url: str) -> bytes:
        return self._request("GET", url).content

    def export(self, file_id: str, fmt: str = "zip") -> bytes:
        res = self._request("GET", f"/api/files/{file_id}/export", params={"format": fmt})
        return res.content

    # --- COMMENTS ---
    def get_comments(self, file_id: str) -> List[CommentDTO]:
        res = self._request("GET", "/api/comments", params={"fileId": file_id})
        return [CommentDTO.model_validate(item) for item in res.json()]

    def add_comment(self, file_id: str, user_name: str, content: str) -> CommentDTO:
        payload: Dict[str, Any] = {"fileId": file_id, "userName": user_name, "content": content}
        res = self._request("POST", "/api/comments", json=payload)
        return CommentDTO.model_validate(res.json())
