"""
Local staging storage.

Uploaded files land here before they are pushed to the remote object
store. Everything under the staging root is disposable.
"""
import logging
import shutil
from pathlib import Path
from typing import BinaryIO, Optional, Union
import uuid

from domain.models import StagedFile

logger = logging.getLogger(__name__)


class FileStorage:
    """
    Local file storage for staged uploads.

    Files are written flat into ``upload_root`` as ``{uuid}{ext}`` so two
    requests uploading ``cover.jpg`` never collide.
    """

    def __init__(self, upload_root: Union[str, Path]):
        self.upload_root = Path(upload_root)
        self.upload_root.mkdir(parents=True, exist_ok=True)

    def stage(self, file: BinaryIO, filename: Optional[str], mime_type: Optional[str]) -> StagedFile:
        """
        Copy an incoming upload into the staging directory.

        Args:
            file: File-like object with the upload data
            filename: Original client-side filename
            mime_type: Declared content type

        Returns:
            StagedFile pointing at the written copy
        """
        original_name = filename or "upload"
        ext = Path(original_name).suffix.lower()
        file_path = self.upload_root / f"{uuid.uuid4().hex}{ext}"

        with open(file_path, "wb") as f:
            shutil.copyfileobj(file, f)

        return StagedFile(
            local_path=file_path,
            mime_type=mime_type or "application/octet-stream",
            original_name=original_name,
        )

    def resolve(self, staged: StagedFile) -> Path:
        """Absolute path of a staged file; relative paths are taken from the staging root."""
        path = Path(staged.local_path)
        if not path.is_absolute():
            path = self.upload_root / path
        return path.resolve()

    def exists(self, staged: StagedFile) -> bool:
        return self.resolve(staged).is_file()

    def discard(self, staged: StagedFile) -> bool:
        """Delete a staged file. Returns True if deleted."""
        path = self.resolve(staged)
        if path.exists():
            path.unlink()
            return True
        return False

    def discard_quietly(self, staged: Optional[StagedFile]) -> None:
        """Best-effort delete; failures are logged, never raised."""
        if staged is None:
            return
        try:
            self.discard(staged)
        except OSError as e:
            logger.warning("Failed to delete staged file %s: %s", staged.local_path, e)
