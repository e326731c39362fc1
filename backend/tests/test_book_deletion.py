from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from domain.errors import NotFoundError, PermissionDeniedError, PersistenceError
from domain.models import Book, BucketKind
from repositories import BooksRepository
from services.book_deletion import BookDeletionService

COVER_URL = "https://res.cloudinary.com/demo/image/upload/v1712/book-covers/dune.jpg"
FILE_URL = "https://res.cloudinary.com/demo/raw/upload/v1712/book-pdfs/dune.pdf"


@pytest.fixture
def service(remote_store):
    return BookDeletionService(remote_store)


@pytest.fixture
def book(session, author):
    return BooksRepository().create_book(
        session,
        Book(
            id="book-1",
            title="Dune",
            description="Spice and sand.",
            genre="SciFi",
            author_id=author.id,
            cover_image_url=COVER_URL,
            file_url=FILE_URL,
        ),
    )


def test_delete_removes_remote_objects_and_record(service, session, remote_store, book):
    service.delete_book(session, book.id, caller_id="user-1")

    assert remote_store.destroyed == [
        ("book-covers/dune", BucketKind.IMAGE),
        ("book-pdfs/dune.pdf", BucketKind.RAW),
    ]
    assert BooksRepository().get_book(session, book.id) is None


def test_delete_missing_book(service, session, remote_store):
    with pytest.raises(NotFoundError):
        service.delete_book(session, "missing", caller_id="user-1")
    assert remote_store.destroyed == []


def test_delete_by_non_owner_is_denied(service, session, remote_store, book, other_user):
    with pytest.raises(PermissionDeniedError, match="You can not delete others book."):
        service.delete_book(session, book.id, caller_id=other_user.id)

    assert remote_store.destroyed == []
    assert BooksRepository().get_book(session, book.id) is not None


def test_raw_destroy_failure_still_removes_record(service, session, remote_store, book, caplog):
    remote_store.fail_destroy_kinds.add(BucketKind.RAW)

    with caplog.at_level("WARNING"):
        service.delete_book(session, book.id, caller_id="user-1")

    assert remote_store.destroyed == [("book-covers/dune", BucketKind.IMAGE)]
    assert BooksRepository().get_book(session, book.id) is None
    assert "Failed to delete raw object" in caplog.text


def test_image_destroy_failure_still_attempts_raw(service, session, remote_store, book):
    remote_store.fail_destroy_kinds.add(BucketKind.IMAGE)

    service.delete_book(session, book.id, caller_id="user-1")

    assert remote_store.destroyed == [("book-pdfs/dune.pdf", BucketKind.RAW)]
    assert BooksRepository().get_book(session, book.id) is None


def test_underivable_url_is_tolerated(service, session, remote_store, author):
    repo = BooksRepository()
    repo.create_book(
        session,
        Book(
            id="odd",
            title="Odd",
            description="d",
            genre="g",
            author_id=author.id,
            cover_image_url="cover.jpg",
            file_url=FILE_URL,
        ),
    )

    service.delete_book(session, "odd", caller_id="user-1")

    assert remote_store.destroyed == [("book-pdfs/dune.pdf", BucketKind.RAW)]
    assert repo.get_book(session, "odd") is None


def test_catalog_failure_is_a_persistence_error(service, session, book):
    with patch.object(service.books_repo, "delete_book", side_effect=OperationalError("DELETE", {}, Exception("locked"))):
        with pytest.raises(PersistenceError, match="Error while deleting book") as exc_info:
            service.delete_book(session, book.id, caller_id="user-1")
    assert exc_info.value.status_code == 500
