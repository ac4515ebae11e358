import io

import boto3
import pytest
from botocore.response import StreamingBody
from botocore.stub import Stubber

from docshare.storage.blob_storage import (
    BlobStorageError,
    LocalBlobStorage,
    S3BlobStorage,
    get_blob_storage,
)


def test_local_write_read_and_url(tmp_path):
    storage = LocalBlobStorage(str(tmp_path / "blobs"))

    key = storage.write_blob("123-a.pdf", b"data")

    assert key == "123-a.pdf"
    assert storage.read_blob(key) == b"data"
    assert storage.resolve_public_url(key) == "/blobs/123-a.pdf"


def test_local_refuses_overwrite_and_traversal(tmp_path):
    storage = LocalBlobStorage(str(tmp_path))
    storage.write_blob("k.pdf", b"1")

    with pytest.raises(BlobStorageError):
        storage.write_blob("k.pdf", b"2")
    with pytest.raises(BlobStorageError):
        storage.write_blob("../escape.pdf", b"x")
    with pytest.raises(BlobStorageError):
        storage.read_blob("missing.pdf")


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def test_s3_write_uses_prefix(s3_client):
    storage = S3BlobStorage(bucket="docs", prefix="/shared/", client=s3_client)

    with Stubber(s3_client) as stubber:
        stubber.add_response("put_object", {}, {"Bucket": "docs", "Key": "shared/1-a.pdf", "Body": b"data"})
        key = storage.write_blob("1-a.pdf", b"data")
        stubber.assert_no_pending_responses()

    assert key == "shared/1-a.pdf"


def test_s3_read(s3_client):
    storage = S3BlobStorage(bucket="docs", client=s3_client)

    with Stubber(s3_client) as stubber:
        stubber.add_response(
            "get_object",
            {"Body": StreamingBody(io.BytesIO(b"data"), 4)},
            {"Bucket": "docs", "Key": "1-a.pdf"},
        )
        assert storage.read_blob("1-a.pdf") == b"data"


def test_s3_errors_become_blob_storage_errors(s3_client):
    storage = S3BlobStorage(bucket="docs", client=s3_client)

    with Stubber(s3_client) as stubber:
        stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
        stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)
        with pytest.raises(BlobStorageError):
            storage.write_blob("k.pdf", b"x")
        with pytest.raises(BlobStorageError):
            storage.read_blob("k.pdf")


def test_s3_presigned_url(s3_client):
    storage = S3BlobStorage(bucket="docs", client=s3_client, url_expires_in=60)

    url = storage.resolve_public_url("shared/1-a.pdf")

    assert "docs" in url
    assert "1-a.pdf" in url
    assert "Expires=60" in url or "X-Amz-Expires=60" in url


def test_s3_requires_bucket():
    with pytest.raises(RuntimeError):
        S3BlobStorage(bucket="")


def test_get_blob_storage_defaults_to_local(tmp_path):
    storage = get_blob_storage({"USE_S3_STORAGE": False, "BLOB_FOLDER": str(tmp_path)})
    assert isinstance(storage, LocalBlobStorage)


def test_get_blob_storage_s3():
    storage = get_blob_storage({
        "USE_S3_STORAGE": True,
        "S3_BUCKET": "docs",
        "AWS_REGION": "us-east-1",
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
    })
    assert isinstance(storage, S3BlobStorage)
    assert storage.bucket == "docs"
