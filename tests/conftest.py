import json
import os
import tempfile
from urllib.parse import urlsplit

# 日志目录放到临时目录，必须在导入 docshare 之前设置
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="docshare-logs-"))

import pytest

from docshare.app_factory import create_app
from docshare.db.init_db import init_db
from docshare.db.session import get_session, reset_engine
from docshare.schemas.dto.render_dto import RenderedPage
from docshare.storage.blob_storage import BlobStorage, BlobStorageError

PDF_BYTES = b"%PDF-1.4 fake document"


class MemoryBlobStorage(BlobStorage):
    def __init__(self):
        self.blobs = {}
        self.fail_writes = False
        self.fail_reads = False

    def write_blob(self, key, data):
        if self.fail_writes:
            raise BlobStorageError("storage unavailable")
        self.blobs[key] = data
        return key

    def read_blob(self, key):
        if self.fail_reads or key not in self.blobs:
            raise BlobStorageError(f"missing blob {key}")
        return self.blobs[key]

    def resolve_public_url(self, key):
        return f"/blobs/{key}"


class FakeDocument:
    def __init__(self, renderer):
        self.renderer = renderer
        self.page_count = renderer.page_count
        self.closed = False

    def render_page(self, page_number, scale):
        self.renderer.calls.append((page_number, scale))
        if page_number in self.renderer.fail_on_pages:
            raise RuntimeError(f"cannot render page {page_number}")
        return RenderedPage(
            page_number=page_number,
            width=int(100 * scale),
            height=int(200 * scale),
            png=f"png-{page_number}".encode(),
        )

    def close(self):
        self.closed = True


class FakeRenderer:
    def __init__(self, page_count=3, fail_on_pages=(), fail_open=False):
        self.page_count = page_count
        self.fail_on_pages = set(fail_on_pages)
        self.fail_open = fail_open
        self.calls = []
        self.opened = []

    def open_document(self, data):
        if self.fail_open:
            raise RuntimeError("cannot open document")
        doc = FakeDocument(self)
        self.opened.append(doc)
        return doc


class FakeResponse:
    def __init__(self, status_code, content):
        self.status_code = status_code
        self.content = content

    def json(self):
        return json.loads(self.content)


class FlaskHttpAdapter:
    """Routes requests made by APIClient into the Flask test client."""

    def __init__(self, test_client):
        self.test_client = test_client
        self.calls = []

    def request(self, method, url, timeout=None, json=None, params=None):
        self.calls.append((method, url))
        path = urlsplit(url).path
        res = self.test_client.open(path, method=method, json=json, query_string=params)
        return FakeResponse(res.status_code, res.get_data())


@pytest.fixture
def blob_storage():
    return MemoryBlobStorage()


@pytest.fixture
def renderer():
    return FakeRenderer(page_count=3)


@pytest.fixture
def app(tmp_path, blob_storage, renderer):
    app = create_app({
        "TESTING": True,
        "DATABASE_URL": f"sqlite:///{tmp_path / 'test.db'}",
        "SESSION_CACHE_DIR": str(tmp_path / "sessions"),
        "BLOB_STORAGE": blob_storage,
        "PDF_RENDERER": renderer,
    })
    init_db()
    yield app
    reset_engine()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    session = get_session()
    yield session
    session.close()
