"""
Books API routes.
"""
import logging
from functools import lru_cache
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from api.auth import get_current_user_id
from db import SessionLocal
from domain.models import Book, StagedFile
from repositories import BooksRepository
from services.book_deletion import BookDeletionService
from services.book_uploads import BookUploadService
from settings import settings
from storage.cloudinary_client import CloudinaryClient
from storage.file_storage import FileStorage
from storage.remote_store import RemoteObjectStore

router = APIRouter()
books_repo = BooksRepository()
logger = logging.getLogger(__name__)


class AuthorResponse(BaseModel):
    name: str


class BookResponse(BaseModel):
    id: str
    title: str
    description: str
    genre: str
    author_id: str
    author: Optional[AuthorResponse] = None
    cover_image_url: str
    file_url: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class BookCreatedResponse(BaseModel):
    id: str


def book_to_response(book: Book) -> BookResponse:
    """Convert domain Book to API response."""
    return BookResponse(
        id=book.id,
        title=book.title,
        description=book.description,
        genre=book.genre,
        author_id=book.author_id,
        author=AuthorResponse(name=book.author.name) if book.author else None,
        cover_image_url=book.cover_image_url,
        file_url=book.file_url,
        created_at=book.created_at.isoformat() if book.created_at else None,
        updated_at=book.updated_at.isoformat() if book.updated_at else None,
    )


@lru_cache(maxsize=1)
def get_file_storage() -> FileStorage:
    return FileStorage(settings.UPLOAD_DIR)


@lru_cache(maxsize=1)
def get_remote_store() -> RemoteObjectStore:
    return CloudinaryClient.from_settings(settings)


def _stage(storage: FileStorage, upload: Optional[UploadFile]) -> Optional[StagedFile]:
    """Write an incoming upload to the staging directory."""
    if upload is None or not upload.filename:
        return None
    return storage.stage(upload.file, upload.filename, upload.content_type)


@router.get("", response_model=List[BookResponse])
async def list_books():
    """List all books."""
    with SessionLocal() as session:
        books = books_repo.list_books(session)
        return [book_to_response(b) for b in books]


@router.post("", response_model=BookCreatedResponse, status_code=201)
async def create_book(
    title: Optional[str] = Form(None),
    genre: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    coverImage: Optional[UploadFile] = File(None),
    file: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    storage: FileStorage = Depends(get_file_storage),
    remote_store: RemoteObjectStore = Depends(get_remote_store),
):
    """Upload a cover and a PDF and create a book referencing them."""
    cover_file = _stage(storage, coverImage)
    document_file = _stage(storage, file)
    service = BookUploadService(
        remote_store,
        storage,
        books_repo=books_repo,
        cover_folder=settings.COVER_FOLDER,
        document_folder=settings.DOCUMENT_FOLDER,
    )
    with SessionLocal() as session:
        book = await run_in_threadpool(
            service.create_book,
            session,
            title=title,
            genre=genre,
            description=description,
            cover_file=cover_file,
            document_file=document_file,
            author_id=user_id,
        )
    return BookCreatedResponse(id=book.id)


@router.get("/{book_id}", response_model=BookResponse)
async def get_book(book_id: str):
    """Get a book by ID."""
    with SessionLocal() as session:
        book = books_repo.get_book(session, book_id)
        if not book:
            raise HTTPException(status_code=404, detail="Book not found.")
        return book_to_response(book)


@router.patch("/{book_id}", response_model=BookResponse)
async def update_book(
    book_id: str,
    title: Optional[str] = Form(None),
    genre: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    coverImage: Optional[UploadFile] = File(None),
    file: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    storage: FileStorage = Depends(get_file_storage),
    remote_store: RemoteObjectStore = Depends(get_remote_store),
):
    """Update book metadata and optionally replace its cover and/or file."""
    cover_file = _stage(storage, coverImage)
    document_file = _stage(storage, file)
    service = BookUploadService(
        remote_store,
        storage,
        books_repo=books_repo,
        cover_folder=settings.COVER_FOLDER,
        document_folder=settings.DOCUMENT_FOLDER,
    )
    with SessionLocal() as session:
        book = await run_in_threadpool(
            service.update_book,
            session,
            book_id,
            caller_id=user_id,
            title=title,
            description=description,
            genre=genre,
            cover_file=cover_file,
            document_file=document_file,
        )
        return book_to_response(book)


@router.delete("/{book_id}", status_code=204)
async def delete_book(
    book_id: str,
    user_id: str = Depends(get_current_user_id),
    remote_store: RemoteObjectStore = Depends(get_remote_store),
):
    """Delete a book and its remote files; remote failures do not block the delete."""
    service = BookDeletionService(remote_store, books_repo=books_repo)
    with SessionLocal() as session:
        await run_in_threadpool(service.delete_book, session, book_id, caller_id=user_id)
    return Response(status_code=204)
