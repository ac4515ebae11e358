import io
import zipfile

import pytest
import requests

from conftest import FlaskHttpAdapter, PDF_BYTES
from docshare.client.api_client import APIClient, ApiError
from docshare.client.page_controller import CommentThread, DocumentPageController
from docshare.db.enums import ExportVariant
from docshare.errors import CommentValidationError, UploadRejected
from docshare.schemas.error_type import ErrorType
from docshare.services.name_session import InMemorySessionStore, NameSession

MB = 1024 * 1024


@pytest.fixture
def http(client):
    return FlaskHttpAdapter(client)


@pytest.fixture
def api(http):
    return APIClient(base_url="http://docshare.test", http=http)


def test_upload_reports_progress_and_returns_record(api):
    progress = []

    record = api.upload_file("report.PDF", b"x" * (3 * MB), progress=progress.append)

    assert record.id
    assert record.name == "report.PDF"
    assert progress[-1] == 100
    assert progress == sorted(progress)


def test_rejected_upload_makes_no_request(api, http):
    with pytest.raises(UploadRejected) as exc:
        api.upload_file("notes.docx", b"x" * (6 * MB))

    assert exc.value.kind == "FileTooLarge"
    assert http.calls == []


def test_unsupported_type_makes_no_request(api, http):
    with pytest.raises(UploadRejected) as exc:
        api.upload_file("photo.png", b"x")

    assert exc.value.kind == "UnsupportedType"
    assert http.calls == []


def test_upload_path(api, tmp_path):
    path = tmp_path / "memo.doc"
    path.write_bytes(b"\xd0\xcf\x11\xe0")

    assert api.upload_path(str(path)).name == "memo.doc"


def test_server_errors_become_api_errors(api):
    with pytest.raises(ApiError) as exc:
        api.get_file("missing")

    assert exc.value.status_code == 404
    assert exc.value.kind == "NotFound"
    assert exc.value.error_type == ErrorType.NOT_FOUND


def test_network_errors_become_transient_api_errors():
    class BrokenHttp:
        def request(self, *args, **kwargs):
            raise requests.ConnectionError("refused")

    with pytest.raises(ApiError) as exc:
        APIClient(base_url="http://x", http=BrokenHttp()).get_comments("f")

    assert exc.value.error_type == ErrorType.TRANSIENT_IO_ERROR


def test_share_link(app, api):
    app.config["PUBLIC_BASE_URL"] = "https://docs.example.org"
    file_id = api.upload_file("report.pdf", PDF_BYTES).id

    assert api.share_link(file_id) == f"https://docs.example.org/file/{file_id}"

    page = DocumentPageController(api, NameSession(InMemorySessionStore()))
    assert page.share_link() is None
    page.open(file_id)
    assert page.share_link() == f"https://docs.example.org/file/{file_id}"


def test_server_side_export(api):
    file_id = api.upload_file("report.pdf", PDF_BYTES).id
    api.add_comment(file_id, "Bob", "looks good")

    archive = api.export(file_id)
    text = api.export(file_id, fmt="txt").decode()

    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        assert sorted(zf.namelist()) == ["comments.txt", "report.pdf"]
        assert zf.read("report.pdf") == PDF_BYTES
    assert text.startswith("Bob (") and text.endswith("): looks good")


def test_comment_thread_append_after_load(api):
    file_id = api.upload_file("a.pdf", PDF_BYTES).id
    api.add_comment(file_id, "Bob", "existing")
    thread = CommentThread(api, file_id)

    thread.load()
    thread.append("Alice", "hello")

    assert [c.content for c in thread.comments] == ["existing", "hello"]
    assert [c.content for c in api.get_comments(file_id)] == ["existing", "hello"]


def test_comment_thread_rejects_blank_without_request(api, http):
    file_id = api.upload_file("a.pdf", PDF_BYTES).id
    thread = CommentThread(api, file_id)
    calls_before = len(http.calls)

    with pytest.raises(CommentValidationError):
        thread.append("Alice", "   ")

    assert len(http.calls) == calls_before


def test_page_controller_flow(api):
    file_id = api.upload_file("report.pdf", PDF_BYTES).id
    page = DocumentPageController(api, NameSession(InMemorySessionStore()))

    page.open(file_id)
    pages = page.render()

    assert [p.page_number for p in pages] == [1, 2, 3]
    with pytest.raises(CommentValidationError):
        page.post_comment("before name")

    page.submit_name("Alice")
    page.post_comment("hi")

    assert [c.user_name for c in page.thread.comments] == ["Alice"]
    exported = page.export(ExportVariant.txt).decode()
    assert exported.startswith("Alice (") and exported.endswith("): hi")


def test_page_controller_export_zip(api, monkeypatch):
    file_id = api.upload_file("report.pdf", PDF_BYTES).id
    page = DocumentPageController(api, NameSession(InMemorySessionStore({"userName": "Bob"})))
    page.open(file_id)

    # 内存存储下 /blobs 返回 404，直接替换下载
    monkeypatch.setattr(api, "download", lambda url: PDF_BYTES)
    data = page.export(ExportVariant.zip)

    assert data[:2] == b"PK"


class SlowPagesApi:
    """get_pages() lets the user open another file before it returns."""

    def __init__(self, controller_ref):
        self.controller_ref = controller_ref
        self.switch_during_render = True

    def get_file(self, file_id):
        return None

    def get_comments(self, file_id):
        return []

    def get_pages(self, file_id):
        from docshare.schemas.dto.render_dto import DocumentViewDTO, RenderedPageDTO
        from docshare.schemas.dto.file_record_dto import FileRecordDTO
        from datetime import datetime, timezone

        if self.switch_during_render:
            self.switch_during_render = False
            self.controller_ref[0].open("second")
        return DocumentViewDTO(
            file=FileRecordDTO(id=file_id, name="a.pdf", url="k", created_at=datetime.now(timezone.utc)),
            kind="pdf",
            download_url="/blobs/k",
            page_count=1,
            pages=[RenderedPageDTO(page_number=1, width=1, height=1, image=f"data:{file_id}")],
        )


def test_stale_render_not_applied_to_new_view():
    ref = []
    api = SlowPagesApi(ref)
    page = DocumentPageController(api, NameSession(InMemorySessionStore()))
    ref.append(page)

    page.open("first")
    assert page.render() is None
    assert page.file_id == "second"
    assert page.pages == []

    fresh = page.render()
    assert fresh[0].image == "data:second"
