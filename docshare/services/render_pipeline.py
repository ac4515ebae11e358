# docshare/services/render_pipeline.py
"""
Document retrieval and page rendering.

The renderer is an opaque capability: open a document from bytes, ask for its
page count, rasterise page N at a scale. PyMuPdfRenderer is the production
implementation; tests inject fakes.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Tuple

import pymupdf
from sqlalchemy.orm import Session

from docshare.db.enums import FileKind
from docshare.errors import (
    DocShareError,
    FetchFailed,
    FileNotFound,
    RenderFailed,
    StaleRender,
    UnsupportedFileType,
)
from docshare.logger import get_logger
from docshare.models.file_record import FileRecord
from docshare.schemas.dto.render_dto import RenderedPage
from docshare.services.upload_validator import classify_file
from docshare.storage.blob_storage import BlobStorage, BlobStorageError

logger = get_logger(__name__)

DEFAULT_SCALE = 1.5


# =========
# Renderer capability
# =========
class DocumentHandle(Protocol):
    page_count: int

    def render_page(self, page_number: int, scale: float) -> RenderedPage:
        ...


class PdfRenderer(Protocol):
    def open_document(self, data: bytes) -> DocumentHandle:
        ...


class PyMuPdfDocument:
    def __init__(self, doc: "pymupdf.Document"):
        self._doc = doc

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def render_page(self, page_number: int, scale: float) -> RenderedPage:
        # page_number 从 1 开始，PyMuPDF 从 0 开始
        page = self._doc.load_page(page_number - 1)
        pix = page.get_pixmap(matrix=pymupdf.Matrix(scale, scale))
        return RenderedPage(
            page_number=page_number,
            width=pix.width,
            height=pix.height,
            png=pix.tobytes("png"),
        )

    def close(self) -> None:
        self._doc.close()


class PyMuPdfRenderer:
    def open_document(self, data: bytes) -> PyMuPdfDocument:
        return PyMuPdfDocument(pymupdf.open(stream=data, filetype="pdf"))


# =========
# Render output
# =========
class RenderTarget:
    """Ordered collection of rendered pages; the only thing the pipeline mutates."""

    def __init__(self) -> None:
        self._pages: List[RenderedPage] = []

    def append(self, page: RenderedPage) -> None:
        self._pages.append(page)

    def clear(self) -> None:
        self._pages.clear()

    @property
    def pages(self) -> List[RenderedPage]:
        return list(self._pages)

    def __len__(self) -> int:
        return len(self._pages)


@dataclass
class DocumentView:
    file: FileRecord
    kind: FileKind
    download_url: str
    page_count: int = 0


class RenderPipeline:
    """
    Given a file id: fetch the record, resolve its URL, fetch the bytes and,
    for PDFs, render every page in order into a RenderTarget.
    """

    def __init__(
        self,
        db: Session,
        blob_storage: BlobStorage,
        renderer: Optional[PdfRenderer] = None,
        scale: float = DEFAULT_SCALE,
    ):
        self.db = db
        self.blob_storage = blob_storage
        self.renderer = renderer or PyMuPdfRenderer()
        self.scale = scale

    def get_file(self, file_id: str) -> FileRecord:
        record = self.db.get(FileRecord, file_id)
        if record is None:
            raise FileNotFound(f"File {file_id} not found")
        return record

    def resolve_url(self, record: FileRecord) -> str:
        try:
            return self.blob_storage.resolve_public_url(record.url)
        except BlobStorageError as e:
            raise FetchFailed(f"Could not resolve URL for file {record.id}: {e}") from e

    def fetch(self, file_id: str) -> Tuple[FileRecord, bytes]:
        """FileRecord plus its raw bytes."""
        record = self.get_file(file_id)
        try:
            data = self.blob_storage.read_blob(record.url)
        except BlobStorageError as e:
            logger.error(f"Fetch failed file_id={file_id} key={record.url}: {e}")
            raise FetchFailed() from e
        return record, data

    def load_and_render(
        self,
        file_id: str,
        target: RenderTarget,
        is_current: Optional[Callable[[], bool]] = None,
    ) -> DocumentView:
        '''
        加载并渲染文件

        - pdf: 按页号 1..P 顺序渲染，逐页追加到 target（不能并行，页序必须确定）
        - doc/docx: 不渲染，只返回下载地址
        - 其他: UnsupportedFileType，不渲染任何内容

        任一步失败都会清空 target 再抛出；is_current() 变为 False 时丢弃结果并抛 StaleRender。
        '''
        still_current = is_current or (lambda: True)
        target.clear()
        try:
            record = self.get_file(file_id)
            kind = classify_file(record.name)
            if kind == FileKind.unsupported:
                raise UnsupportedFileType(f"No renderer for {record.name!r}")

            download_url = self.resolve_url(record)
            view = DocumentView(file=record, kind=kind, download_url=download_url)
            if kind == FileKind.word_doc:
                return view

            _, data = self.fetch(file_id)
            view.page_count = self._render_pdf(data, target, still_current)
        except DocShareError:
            target.clear()
            raise

        logger.info(f"Rendered file_id={file_id} pages={view.page_count} scale={self.scale}")
        return view

    def _render_pdf(self, data: bytes, target: RenderTarget, still_current: Callable[[], bool]) -> int:
        try:
            handle = self.renderer.open_document(data)
        except (RuntimeError, ValueError) as e:
            raise RenderFailed(f"Could not open document: {e}") from e

        try:
            try:
                page_count = handle.page_count
            except (RuntimeError, ValueError) as e:
                raise RenderFailed(f"Could not read page count: {e}") from e

            for page_number in range(1, page_count + 1):
                if not still_current():
                    raise StaleRender()
                try:
                    page = handle.render_page(page_number, self.scale)
                except (RuntimeError, ValueError) as e:
                    raise RenderFailed(f"Could not render page {page_number}: {e}") from e
                target.append(page)

            # 最后一页渲染完成时视图可能已经切换
            if not still_current():
                raise StaleRender()
        finally:
            close = getattr(handle, "close", None)
            if close is not None:
                close()

        return page_count
