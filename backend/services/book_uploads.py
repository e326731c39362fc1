"""
Upload orchestration for catalog records.

Creating a book is a chain of side effects that can fail halfway:

    validate -> check staged files -> upload cover (image) -> upload document (raw)
    -> persist record -> discard staged files

Uploads run strictly one after another so a failure is always attributable
to a single step. Staged files are owned by this service for the whole
request and removed on every exit path of ``create_book``. Remote objects
uploaded before a later step fails are *not* deleted; they are logged as
orphans by the compensation log.
"""
from __future__ import annotations

import logging
from functools import partial
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from domain.errors import (
    BookstoreError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    UnknownError,
    UpstreamStorageError,
    ValidationError,
)
from domain.models import Book, BucketKind, RemoteObjectRef, StagedFile
from repositories import BooksRepository, BookValidationError
from services.compensation import CompensationLog
from storage.file_storage import FileStorage
from storage.remote_store import RemoteObjectStore, RemoteStoreError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
PDF_FORMAT = "pdf"


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _check_cover_type(cover_file: StagedFile) -> None:
    if not cover_file.mime_type.startswith("image/"):
        raise ValidationError("Cover image must be an image file")


def _check_document_type(document_file: StagedFile) -> None:
    if document_file.mime_type != PDF_MIME_TYPE:
        raise ValidationError("Book file must be a PDF")


def classify_failure(exc: Exception, fallback: str) -> BookstoreError:
    """Map an arbitrary failure onto the error taxonomy by its type."""
    if isinstance(exc, BookstoreError):
        return exc
    if isinstance(exc, RemoteStoreError):
        return UpstreamStorageError("Error uploading files to cloud storage")
    if isinstance(exc, BookValidationError):
        return PersistenceError(f"Invalid book data: {exc}", client_fault=True)
    if isinstance(exc, IntegrityError):
        return PersistenceError(f"Invalid book data: {exc.orig}", client_fault=True)
    if isinstance(exc, SQLAlchemyError):
        return PersistenceError(f"{fallback}: {exc}")
    if isinstance(exc, FileNotFoundError):
        return ValidationError("File not found on server")
    return UnknownError(f"{fallback}: {exc}")


class BookUploadService:
    """Creates and updates catalog records together with their remote files."""

    def __init__(
        self,
        remote_store: RemoteObjectStore,
        file_storage: FileStorage,
        books_repo: Optional[BooksRepository] = None,
        cover_folder: str = "book-covers",
        document_folder: str = "book-pdfs",
    ):
        self.remote_store = remote_store
        self.file_storage = file_storage
        self.books_repo = books_repo or BooksRepository()
        self.cover_folder = cover_folder
        self.document_folder = document_folder

    # ------------------------------------------------------------------
    # Remote transfers
    # ------------------------------------------------------------------

    def _upload_cover(self, cover_file: StagedFile) -> RemoteObjectRef:
        return self.remote_store.upload(
            self.file_storage.resolve(cover_file),
            BucketKind.IMAGE,
            folder=self.cover_folder,
            fmt=cover_file.subtype,
            filename_override=cover_file.filename,
        )

    def _upload_document(self, document_file: StagedFile) -> RemoteObjectRef:
        return self.remote_store.upload(
            self.file_storage.resolve(document_file),
            BucketKind.RAW,
            folder=self.document_folder,
            fmt=PDF_FORMAT,
            filename_override=document_file.filename,
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def _validate_create(
        self,
        title: Optional[str],
        genre: Optional[str],
        description: Optional[str],
        cover_file: Optional[StagedFile],
        document_file: Optional[StagedFile],
    ) -> None:
        if _is_blank(title) or _is_blank(genre) or _is_blank(description):
            raise ValidationError("Title, genre, and description are required")
        if cover_file is None:
            raise ValidationError("Cover image is required")
        if document_file is None:
            raise ValidationError("Book file is required")
        _check_cover_type(cover_file)
        _check_document_type(document_file)
        if not self.file_storage.exists(cover_file):
            raise ValidationError("Cover image file not found on server")
        if not self.file_storage.exists(document_file):
            raise ValidationError("Book file not found on server")

    def create_book(
        self,
        session: Session,
        *,
        title: Optional[str],
        genre: Optional[str],
        description: Optional[str],
        cover_file: Optional[StagedFile],
        document_file: Optional[StagedFile],
        author_id: str,
    ) -> Book:
        """
        Upload both files and create exactly one catalog record for them.

        Title, genre and description must each hold more than whitespace;
        a value of only spaces is rejected like a missing one.

        Raises:
            ValidationError: bad fields or files; nothing was uploaded.
            UpstreamStorageError: the remote store failed.
            PersistenceError: the catalog store refused the record.
            UnknownError: anything else.
        """
        try:
            self._validate_create(title, genre, description, cover_file, document_file)
        except ValidationError:
            self.file_storage.discard_quietly(cover_file)
            self.file_storage.discard_quietly(document_file)
            raise

        saga = CompensationLog("create_book")
        saga.record(f"staged cover {cover_file.filename}", undo=partial(self.file_storage.discard, cover_file))
        saga.record(f"staged book file {document_file.filename}", undo=partial(self.file_storage.discard, document_file))

        try:
            logger.info("Uploading cover image %s", cover_file.original_name)
            cover = self._upload_cover(cover_file)
            saga.record(f"remote image {cover.public_id}")

            logger.info("Uploading book file %s", document_file.original_name)
            document = self._upload_document(document_file)
            saga.record(f"remote raw {document.public_id}")

            book = self.books_repo.create_book(
                session,
                Book(
                    id=Book.generate_id(),
                    title=title,
                    description=description,
                    genre=genre,
                    author_id=str(author_id),
                    cover_image_url=cover.public_url,
                    file_url=document.public_url,
                ),
            )
        except Exception as e:
            logger.error("create_book failed: %s", e, exc_info=True)
            saga.unwind()
            raise classify_failure(e, "Error while uploading the files") from e

        logger.info("Book created: %s", book.id)
        self.file_storage.discard_quietly(cover_file)
        self.file_storage.discard_quietly(document_file)
        return book

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def _replace(
        self,
        staged: StagedFile,
        upload,
        error_message: str,
        saga: CompensationLog,
    ) -> RemoteObjectRef:
        try:
            ref = upload(staged)
        except RemoteStoreError as e:
            logger.error("%s: %s", error_message, e)
            saga.unwind()
            raise UpstreamStorageError(error_message) from e
        except Exception as e:
            logger.error("%s: %s", error_message, e, exc_info=True)
            saga.unwind()
            raise classify_failure(e, "Error while updating the book") from e
        saga.record(f"remote {ref.kind.value} {ref.public_id}")
        self.file_storage.discard_quietly(staged)
        return ref

    def update_book(
        self,
        session: Session,
        book_id: str,
        *,
        caller_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        genre: Optional[str] = None,
        cover_file: Optional[StagedFile] = None,
        document_file: Optional[StagedFile] = None,
    ) -> Book:
        """
        Update metadata and optionally replace the cover and/or the document.

        Text fields left as ``None`` keep their stored value. Replacement
        files are uploaded before the record is touched, and the record is
        written in one update call. Staged files are only discarded after
        their own upload succeeds.
        """
        book = self.books_repo.get_book(session, book_id)
        if not book:
            raise NotFoundError("Book not found")
        if str(book.author_id) != str(caller_id):
            raise PermissionDeniedError("You can not update others book.")

        if cover_file is not None:
            _check_cover_type(cover_file)
        if document_file is not None:
            _check_document_type(document_file)
        if cover_file is not None and not self.file_storage.exists(cover_file):
            raise ValidationError("Cover image file not found on server")
        if document_file is not None and not self.file_storage.exists(document_file):
            raise ValidationError("Book file not found on server")

        saga = CompensationLog("update_book")
        cover_url = book.cover_image_url
        file_url = book.file_url

        if cover_file is not None:
            cover_url = self._replace(cover_file, self._upload_cover, "Error uploading cover image", saga).public_url
        if document_file is not None:
            file_url = self._replace(document_file, self._upload_document, "Error uploading book file", saga).public_url

        changes = Book(
            id=book.id,
            title=book.title if title is None else title,
            description=book.description if description is None else description,
            genre=book.genre if genre is None else genre,
            author_id=book.author_id,
            cover_image_url=cover_url,
            file_url=file_url,
        )
        try:
            updated = self.books_repo.update_book(session, changes)
        except Exception as e:
            logger.error("update_book %s failed: %s", book_id, e, exc_info=True)
            saga.unwind()
            raise classify_failure(e, "Error while updating the book") from e

        logger.info("Book updated: %s", updated.id)
        return updated
