"""
Cloudinary client built on the ``cloudinary`` SDK.

Covers go to the ``image`` resource type, documents to ``raw``. Credentials
are passed with every call instead of being written into the SDK's global
config, so several clients can coexist. Transient failures (network errors,
rate limiting, server errors) are retried a bounded number of times with
exponential backoff and full jitter.
"""
from __future__ import annotations

import logging
import random
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from cloudinary import exceptions as cloudinary_errors
from cloudinary import uploader

from domain.models import BucketKind, RemoteObjectRef
from services.public_ids import derive_public_id
from storage.remote_store import RemoteStoreError

logger = logging.getLogger(__name__)

# Status codes behind the SDK's exception classes
ERROR_STATUS_CODES = {
    cloudinary_errors.BadRequest: 400,
    cloudinary_errors.AuthorizationRequired: 401,
    cloudinary_errors.NotAllowed: 403,
    cloudinary_errors.NotFound: 404,
    cloudinary_errors.AlreadyExists: 409,
    cloudinary_errors.RateLimited: 420,
    cloudinary_errors.GeneralError: 500,
}
# The bare ``Error`` class covers network failures and unexpected statuses
RETRYABLE_ERRORS = (cloudinary_errors.RateLimited, cloudinary_errors.GeneralError)


def _is_retryable(exc: cloudinary_errors.Error) -> bool:
    return type(exc) is cloudinary_errors.Error or isinstance(exc, RETRYABLE_ERRORS)


class CloudinaryClient:
    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        timeout: float = 30.0,
        max_attempts: int = 3,
        backoff_base: float = 0.5,
        max_backoff: float = 8.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_base = backoff_base
        self.max_backoff = max_backoff
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings) -> "CloudinaryClient":
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            timeout=settings.REMOTE_STORE_TIMEOUT,
            max_attempts=settings.REMOTE_STORE_MAX_ATTEMPTS,
            backoff_base=settings.REMOTE_STORE_BACKOFF,
        )

    def _options(self, kind: BucketKind, **extra: Any) -> Dict[str, Any]:
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise RemoteStoreError("Cloudinary credentials are not configured")
        options = {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
            "resource_type": kind.value,
            "timeout": self.timeout,
        }
        options.update({k: v for k, v in extra.items() if v not in (None, "")})
        return options

    def _backoff(self, attempt: int) -> float:
        ceiling = min(self.backoff_base * (2 ** attempt), self.max_backoff)
        return random.uniform(0, ceiling)

    def _call(self, action: str, fn: Callable[[], dict]) -> dict:
        """Run an SDK call with bounded retries; returns its result dict."""
        last_error: Optional[str] = None
        for attempt in range(self.max_attempts):
            try:
                return fn()
            except cloudinary_errors.Error as e:
                if not _is_retryable(e):
                    raise RemoteStoreError(
                        f"Cloudinary rejected {action}: {e}", ERROR_STATUS_CODES.get(type(e))
                    ) from e
                last_error = f"{type(e).__name__}: {e}"

            if attempt + 1 >= self.max_attempts:
                break
            delay = self._backoff(attempt)
            logger.warning(
                "Cloudinary %s failed (%s), retrying in %.2fs (attempt %d/%d)",
                action,
                last_error,
                delay,
                attempt + 1,
                self.max_attempts,
            )
            self._sleep(delay)

        raise RemoteStoreError(f"Cloudinary {action} failed after {self.max_attempts} attempts: {last_error}")

    def upload(
        self,
        local_path: Path,
        kind: BucketKind,
        folder: str,
        fmt: str,
        filename_override: Optional[str] = None,
    ) -> RemoteObjectRef:
        """Upload a local file and return a reference to the stored object."""
        local_path = Path(local_path)
        options = self._options(kind, folder=folder, format=fmt, filename_override=filename_override)

        def _send() -> dict:
            # reopened per attempt so a retry re-sends the whole file
            with open(local_path, "rb") as fh:
                return uploader.upload(fh, **options)

        body = self._call("upload", _send)
        url = body.get("secure_url") or body.get("url")
        if not url:
            raise RemoteStoreError("Cloudinary upload response did not include a URL")
        public_id = body.get("public_id") or derive_public_id(url, kind)
        logger.info("Uploaded %s to %s as %s", local_path.name, kind.value, public_id)
        return RemoteObjectRef(kind=kind, public_url=url, public_id=public_id)

    def destroy(self, public_id: str, kind: BucketKind = BucketKind.IMAGE) -> None:
        """Delete a stored object. An already-missing object counts as deleted."""
        options = self._options(kind)
        body = self._call("destroy", lambda: uploader.destroy(public_id, **options))
        result = body.get("result")
        if result not in ("ok", "not found"):
            raise RemoteStoreError(f"Cloudinary destroy of {public_id} returned {result!r}")
        logger.info("Destroyed %s object %s (%s)", kind.value, public_id, result)
