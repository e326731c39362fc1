import io
import sys
from pathlib import Path

import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from db import init_db  # noqa: E402
from domain.models import BucketKind, RemoteObjectRef  # noqa: E402
from repositories import UsersRepository  # noqa: E402
from storage.file_storage import FileStorage  # noqa: E402
from storage.remote_store import RemoteStoreError  # noqa: E402

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << /Root 1 0 R >>\n%%EOF\n"


class FakeRemoteStore:
    """Records uploads/destroys and fails on demand per bucket kind."""

    def __init__(self):
        self.uploads = []
        self.destroyed = []
        self.fail_upload_kinds = set()
        self.fail_destroy_kinds = set()

    def upload(self, local_path, kind, folder, fmt, filename_override=None):
        self.uploads.append(
            {"path": Path(local_path), "kind": kind, "folder": folder, "format": fmt, "filename": filename_override}
        )
        if kind in self.fail_upload_kinds:
            raise RemoteStoreError(f"{kind.value} upload failed", 500)
        stem = Path(local_path).stem
        if kind == BucketKind.IMAGE:
            public_id = f"{folder}/{stem}"
            url = f"https://res.cloudinary.com/demo/image/upload/v1700000000/{public_id}.{fmt}"
        else:
            public_id = f"{folder}/{stem}.{fmt}"
            url = f"https://res.cloudinary.com/demo/raw/upload/v1700000000/{public_id}"
        return RemoteObjectRef(kind=kind, public_url=url, public_id=public_id)

    def destroy(self, public_id, kind=BucketKind.IMAGE):
        if kind in self.fail_destroy_kinds:
            raise RemoteStoreError(f"{kind.value} destroy failed", 500)
        self.destroyed.append((public_id, kind))


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def session(session_factory):
    with session_factory() as s:
        yield s


@pytest.fixture
def file_storage(tmp_path):
    return FileStorage(tmp_path / "uploads")


@pytest.fixture
def remote_store():
    return FakeRemoteStore()


@pytest.fixture
def jpeg_bytes():
    img = Image.new("RGB", (16, 24), color="navy")
    buf = io.BytesIO()
    img.save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture
def pdf_bytes():
    return PDF_BYTES


@pytest.fixture
def staged_cover(file_storage, jpeg_bytes):
    return file_storage.stage(io.BytesIO(jpeg_bytes), "cover.jpg", "image/jpeg")


@pytest.fixture
def staged_pdf(file_storage, pdf_bytes):
    return file_storage.stage(io.BytesIO(pdf_bytes), "book.pdf", "application/pdf")


@pytest.fixture
def author(session):
    return UsersRepository().create_user(session, name="Frank Herbert", email="frank@example.com", user_id="user-1")


@pytest.fixture
def other_user(session):
    return UsersRepository().create_user(session, name="Someone Else", email="else@example.com", user_id="user-2")
