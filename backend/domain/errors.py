"""
Error taxonomy shared by the orchestrators and the HTTP layer.

Every failure that leaves a service is one of these; the API renders them
as ``{"detail": message}`` with the attached status code.
"""
from typing import Optional


class BookstoreError(Exception):
    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(BookstoreError):
    """Missing or malformed request fields or files."""
    status_code = 400


class NotFoundError(BookstoreError):
    status_code = 404


class PermissionDeniedError(BookstoreError):
    """The caller does not own the record."""
    status_code = 403


class UpstreamStorageError(BookstoreError):
    """The remote object store rejected or failed an operation."""
    status_code = 500


class PersistenceError(BookstoreError):
    """The catalog store refused a write."""

    def __init__(self, message: str, client_fault: bool = False):
        super().__init__(message, status_code=400 if client_fault else 500)
        self.client_fault = client_fault


class UnknownError(BookstoreError):
    status_code = 500
