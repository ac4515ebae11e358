# docshare/client/page_controller.py
"""
Client-side state of the document page: which file is shown, its rendered
pages, the comment thread and the commenter's name.

Every load is tagged with a view generation. Opening another file bumps the
generation, and results that come back for an older generation are dropped
instead of being applied to the new view.
"""
from typing import List, Optional

from docshare.client.api_client import APIClient
from docshare.db.enums import ExportVariant
from docshare.errors import CommentValidationError
from docshare.logger import get_logger
from docshare.schemas.dto.comment_dto import CommentDTO
from docshare.schemas.dto.file_record_dto import FileDetailDTO
from docshare.schemas.dto.render_dto import RenderedPageDTO
from docshare.services.export_service import ExportService
from docshare.services.name_session import NameSession

logger = get_logger(__name__)


class CommentThread:
    """
    Append-only local copy of one file's comments.
    load() takes the server order as-is; append() adds to the end.
    """

    def __init__(self, api: APIClient, file_id: str):
        self.api = api
        self.file_id = file_id
        self._comments: List[CommentDTO] = []

    @property
    def comments(self) -> List[CommentDTO]:
        return list(self._comments)

    def load(self) -> List[CommentDTO]:
        self._comments = self.api.get_comments(self.file_id)
        return self.comments

    def append(self, user_name: str, content: str) -> CommentDTO:
        # 本地先校验，不合法不发请求
        if not content or not content.strip():
            raise CommentValidationError("Comment content must not be empty")
        if not user_name or not user_name.strip():
            raise CommentValidationError("User name must not be empty")

        comment = self.api.add_comment(self.file_id, user_name, content)
        self._comments.append(comment)
        return comment


class DocumentPageController:
    def __init__(self, api: APIClient, name_session: NameSession):
        self.api = api
        self.name_session = name_session
        self._generation = 0
        self.file_id: Optional[str] = None
        self.file: Optional[FileDetailDTO] = None
        self.thread: Optional[CommentThread] = None
        self.pages: List[RenderedPageDTO] = []

    def _is_current(self, generation: int, file_id: str) -> bool:
        return generation == self._generation and file_id == self.file_id

    def open(self, file_id: str) -> FileDetailDTO:
        """Switch the view to a file: metadata and comments are loaded, pages reset."""
        self._generation += 1
        generation = self._generation
        self.file_id = file_id
        self.file = None
        self.pages = []
        self.thread = CommentThread(self.api, file_id)

        detail = self.api.get_file(file_id)
        self.thread.load()
        if self._is_current(generation, file_id):
            self.file = detail
        return detail

    def render(self) -> Optional[List[RenderedPageDTO]]:
        """
        Fetch rendered pages for the current file.
        Returns None (and leaves the view untouched) if another file was
        opened while the request was in flight.
        """
        if self.file_id is None:
            return None
        generation, file_id = self._generation, self.file_id

        view = self.api.get_pages(file_id)
        if not self._is_current(generation, file_id):
            logger.info(f"Discarding stale render for file_id={file_id}")
            return None

        self.pages = list(view.pages)
        return self.pages

    def share_link(self) -> Optional[str]:
        return self.file.share_url if self.file is not None else None

    def submit_name(self, user_name: str) -> str:
        return self.name_session.submit_name(user_name)

    def post_comment(self, content: str) -> CommentDTO:
        user_name = self.name_session.require_name()
        if self.thread is None:
            raise CommentValidationError("Open a file before commenting")
        return self.thread.append(user_name, content)

    def export(self, variant: ExportVariant = ExportVariant.zip) -> bytes:
        """
        Build the export locally from what the page already holds.
        The file bytes are downloaded once for the zip variant.
        """
        if self.file is None or self.thread is None:
            raise CommentValidationError("Open a file before exporting")

        file_bytes = None
        if variant == ExportVariant.zip:
            file_bytes = self.api.download(self.file.download_url)
        return ExportService().export(
            file_record=self.file,
            file_bytes=file_bytes,
            comments=self.thread.comments,
            variant=variant,
        )
