"""
Book repository backed by SQLAlchemy.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session, joinedload

from domain.models import Author, Book
from repositories.models import BookORM

REQUIRED_FIELDS = ("title", "description", "genre", "author_id", "cover_image_url", "file_url")


class BookValidationError(ValueError):
    """A record failed schema validation before reaching the database."""


def _validate(book: Book) -> None:
    missing = [name for name in REQUIRED_FIELDS if not str(getattr(book, name) or "").strip()]
    if missing:
        raise BookValidationError(f"Book validation failed: {', '.join(missing)} required")


def _book_from_orm(orm: BookORM) -> Book:
    author = None
    if orm.author is not None:
        author = Author(id=orm.author.id, name=orm.author.name)
    return Book(
        id=orm.id,
        title=orm.title,
        description=orm.description,
        genre=orm.genre,
        author_id=orm.author_id,
        cover_image_url=orm.cover_image_url,
        file_url=orm.file_url,
        created_at=orm.created_at,
        updated_at=orm.updated_at,
        author=author,
    )


def _update_orm_from_book(orm: BookORM, book: Book) -> None:
    orm.title = book.title
    orm.description = book.description
    orm.genre = book.genre
    orm.cover_image_url = book.cover_image_url
    orm.file_url = book.file_url
    orm.updated_at = datetime.utcnow()


class BooksRepository:
    """CRUD operations for books."""

    def list_books(self, session: Session) -> List[Book]:
        books = (
            session.query(BookORM)
            .options(joinedload(BookORM.author))
            .order_by(BookORM.created_at.asc())
            .all()
        )
        return [_book_from_orm(b) for b in books]

    def get_book(self, session: Session, book_id: str) -> Optional[Book]:
        orm = session.get(BookORM, book_id, options=[joinedload(BookORM.author)])
        if not orm:
            return None
        return _book_from_orm(orm)

    def create_book(self, session: Session, book: Book) -> Book:
        _validate(book)
        now = datetime.utcnow()
        orm = BookORM(
            id=book.id,
            title=book.title,
            description=book.description,
            genre=book.genre,
            author_id=book.author_id,
            cover_image_url=book.cover_image_url,
            file_url=book.file_url,
            created_at=book.created_at or now,
            updated_at=book.updated_at or now,
        )
        session.add(orm)
        try:
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(orm)
        return _book_from_orm(orm)

    def update_book(self, session: Session, book: Book) -> Book:
        """Write every mutable field of ``book`` in a single commit."""
        _validate(book)
        orm = session.get(BookORM, book.id)
        if not orm:
            raise ValueError("Book not found")
        _update_orm_from_book(orm, book)
        session.add(orm)
        try:
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(orm)
        return _book_from_orm(orm)

    def delete_book(self, session: Session, book_id: str) -> None:
        orm = session.get(BookORM, book_id)
        if orm:
            session.delete(orm)
            session.commit()
