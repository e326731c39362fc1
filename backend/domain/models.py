"""
Core domain models for the bookstore backend.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional
import uuid


class BucketKind(str, Enum):
    """
    Logical partition of the remote object store.

    Images get the store's default media handling; raw objects are stored
    byte-for-byte and must be addressed explicitly as raw on deletion.
    """
    IMAGE = "image"
    RAW = "raw"


@dataclass
class Author:
    """Minimal projection of a user, as exposed next to a book."""
    id: str
    name: str


@dataclass
class Book:
    """
    A catalog record.

    Both URLs point at objects in the remote store; a record is never
    persisted while either of them is empty.
    """
    id: str
    title: str
    description: str
    genre: str
    author_id: str
    cover_image_url: str
    file_url: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    author: Optional[Author] = None

    @staticmethod
    def generate_id() -> str:
        return str(uuid.uuid4())


@dataclass(frozen=True)
class StagedFile:
    """A file written to the local staging directory before remote transfer."""
    local_path: Path
    mime_type: str
    original_name: str

    @property
    def filename(self) -> str:
        return self.local_path.name

    @property
    def subtype(self) -> str:
        """MIME subtype, e.g. ``jpeg`` for ``image/jpeg``."""
        return self.mime_type.split("/")[-1].split(";")[0].strip()


@dataclass(frozen=True)
class RemoteObjectRef:
    """An object stored remotely, addressed by its public URL."""
    kind: BucketKind
    public_url: str
    public_id: str
