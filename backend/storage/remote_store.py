"""
Remote object store interface.

The orchestrators only depend on this protocol, so a fake can stand in for
the Cloudinary client in tests.
"""
from pathlib import Path
from typing import Optional, Protocol

from domain.models import BucketKind, RemoteObjectRef


class RemoteStoreError(Exception):
    """Any failure talking to the remote object store."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteObjectStore(Protocol):
    def upload(
        self,
        local_path: Path,
        kind: BucketKind,
        folder: str,
        fmt: str,
        filename_override: Optional[str] = None,
    ) -> RemoteObjectRef:
        ...

    def destroy(self, public_id: str, kind: BucketKind = BucketKind.IMAGE) -> None:
        ...
