import os
from pathlib import Path

# Basic settings helper to read environment configuration.

BACKEND_ROOT = Path(__file__).resolve().parent


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_list(val: str | None, default: list[str]) -> list[str]:
    if not val:
        return default
    return [item.strip() for item in val.split(",") if item.strip()]


class Settings:
    def __init__(self) -> None:
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{BACKEND_ROOT / 'app.db'}")
        self.UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", str(BACKEND_ROOT / "data" / "uploads"))

        self.CLOUDINARY_CLOUD_NAME: str = os.getenv("CLOUDINARY_CLOUD_NAME", "")
        self.CLOUDINARY_API_KEY: str = os.getenv("CLOUDINARY_API_KEY", "")
        self.CLOUDINARY_API_SECRET: str = os.getenv("CLOUDINARY_API_SECRET", "")
        self.COVER_FOLDER: str = os.getenv("COVER_FOLDER", "book-covers")
        self.DOCUMENT_FOLDER: str = os.getenv("DOCUMENT_FOLDER", "book-pdfs")

        self.REMOTE_STORE_TIMEOUT: float = float(os.getenv("REMOTE_STORE_TIMEOUT", "30"))
        self.REMOTE_STORE_MAX_ATTEMPTS: int = int(os.getenv("REMOTE_STORE_MAX_ATTEMPTS", "3"))
        self.REMOTE_STORE_BACKOFF: float = float(os.getenv("REMOTE_STORE_BACKOFF", "0.5"))

        self.JWT_SECRET: str = os.getenv("JWT_SECRET", "")
        self.CORS_ORIGINS: list[str] = _as_list(os.getenv("CORS_ORIGINS"), ["*"])
        self.CORS_ALLOW_CREDENTIALS: bool = _as_bool(os.getenv("CORS_ALLOW_CREDENTIALS"), False)
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
