from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from docshare.errors import CommentValidationError, CommentWriteFailed, FileNotFound
from docshare.models.comment import Comment
from docshare.services.comment_service import CommentService
from docshare.services.upload_service import UploadService


@pytest.fixture
def file_record(db, blob_storage):
    return UploadService(db, blob_storage).upload(file_bytes=b"%PDF", file_name="doc.pdf")


def test_load_without_comments_returns_empty_list(db, file_record):
    assert CommentService(db).load(file_record.id) == []


def test_load_unknown_file_returns_empty_list(db):
    assert CommentService(db).load("does-not-exist") == []


def test_append_then_load_places_comment_last(db, file_record):
    service = CommentService(db)
    service.append(file_id=file_record.id, user_name="Bob", content="first")
    service.append(file_id=file_record.id, user_name="Carol", content="second")

    added = service.append(file_id=file_record.id, user_name="Alice", content="hello")
    comments = service.load(file_record.id)

    assert comments[-1].id == added.id
    assert comments[-1].user_name == "Alice"
    assert comments[-1].content == "hello"
    assert [c.content for c in comments] == ["first", "second", "hello"]


def test_load_orders_by_created_at_then_arrival(db, file_record):
    base = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    rows = [
        Comment(file_id=file_record.id, user_name="u", content="late", created_at=base + timedelta(minutes=5)),
        Comment(file_id=file_record.id, user_name="u", content="tie-1", created_at=base),
        Comment(file_id=file_record.id, user_name="u", content="tie-2", created_at=base),
        Comment(file_id=file_record.id, user_name="u", content="early", created_at=base - timedelta(minutes=5)),
    ]
    for row in rows:
        db.add(row)
        db.flush()
    db.commit()

    comments = CommentService(db).load(file_record.id)

    assert [c.content for c in comments] == ["early", "tie-1", "tie-2", "late"]
    stamps = [c.created_at for c in comments]
    assert stamps == sorted(stamps)


def test_comments_are_scoped_to_their_file(db, blob_storage, file_record):
    other = UploadService(db, blob_storage).upload(file_bytes=b"%PDF", file_name="other.pdf")
    service = CommentService(db)
    service.append(file_id=file_record.id, user_name="A", content="mine")
    service.append(file_id=other.id, user_name="B", content="theirs")

    assert [c.content for c in service.load(file_record.id)] == ["mine"]


@pytest.mark.parametrize("user_name, content", [
    ("Alice", ""),
    ("Alice", "   \n\t"),
    ("", "hello"),
    ("   ", "hello"),
])
def test_blank_input_rejected_without_write(db, file_record, user_name, content):
    with pytest.raises(CommentValidationError):
        CommentService(db).append(file_id=file_record.id, user_name=user_name, content=content)

    assert db.query(Comment).count() == 0


def test_append_to_unknown_file(db):
    with pytest.raises(FileNotFound):
        CommentService(db).append(file_id="missing", user_name="A", content="hi")


def test_write_failure_is_reported(db, file_record, monkeypatch):
    def broken_commit():
        raise SQLAlchemyError("locked")

    monkeypatch.setattr(db, "commit", broken_commit)

    with pytest.raises(CommentWriteFailed):
        CommentService(db).append(file_id=file_record.id, user_name="A", content="hi")


def test_positional_fields_are_optional(db, file_record):
    comment = CommentService(db).append(
        file_id=file_record.id, user_name="A", content="see here", page_number=2, x_position=0.5, y_position=0.25
    )
    assert comment.page_number == 2
    assert CommentService(db).append(file_id=file_record.id, user_name="A", content="plain").page_number is None
