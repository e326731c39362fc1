"""
Deletion of catalog records and their remote files.

The catalog wins over the remote store: once ownership is confirmed the
record is always deleted, even if one or both remote objects could not be
removed. Those objects stay behind as orphans and are only logged.
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.errors import NotFoundError, PermissionDeniedError, PersistenceError
from domain.models import BucketKind
from repositories import BooksRepository
from services.public_ids import derive_public_id
from storage.remote_store import RemoteObjectStore

logger = logging.getLogger(__name__)


class BookDeletionService:
    def __init__(self, remote_store: RemoteObjectStore, books_repo: Optional[BooksRepository] = None):
        self.remote_store = remote_store
        self.books_repo = books_repo or BooksRepository()

    def _destroy_quietly(self, url: str, kind: BucketKind) -> bool:
        try:
            public_id = derive_public_id(url, kind)
            logger.info("Deleting %s object %s", kind.value, public_id)
            self.remote_store.destroy(public_id, kind)
            return True
        except Exception as e:
            logger.warning("Failed to delete %s object for %s: %s", kind.value, url, e)
            return False

    def delete_book(self, session: Session, book_id: str, *, caller_id: str) -> None:
        book = self.books_repo.get_book(session, book_id)
        if not book:
            raise NotFoundError("Book not found")
        if str(book.author_id) != str(caller_id):
            raise PermissionDeniedError("You can not delete others book.")

        self._destroy_quietly(book.cover_image_url, BucketKind.IMAGE)
        self._destroy_quietly(book.file_url, BucketKind.RAW)

        try:
            self.books_repo.delete_book(session, book_id)
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(f"Error while deleting book: {e}") from e
        logger.info("Book deleted: %s", book_id)
