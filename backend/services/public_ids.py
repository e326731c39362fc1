"""
Derive remote object identifiers from stored URLs.

Only URLs are persisted, so deleting a remote object means recovering its
public ID from the URL. Delivery URLs have the shape::

    https://res.cloudinary.com/<cloud>/<image|raw>/upload/v<version>/<folder>/<name>[.<ext>]

Contract:

* query string and fragment are ignored;
* when a ``v<digits>`` version segment follows the resource type, the
  public ID is every segment after the first such segment (nested folders
  survive, even ones named like a version);
* otherwise the public ID is ``<folder>/<name>`` from the last two segments;
* image IDs drop the file extension, raw IDs keep the name verbatim because
  raw objects are stored with their extension as part of the ID.

Anything with fewer than two path segments is rejected.
"""
from __future__ import annotations

import re
from typing import List
from urllib.parse import unquote, urlsplit

from domain.models import BucketKind

_VERSION_SEGMENT = re.compile(r"^v\d+$")
_RESOURCE_TYPES = {"image", "raw", "video"}


class InvalidRemoteUrl(ValueError):
    pass


def _path_segments(url: str) -> List[str]:
    path = urlsplit(url.strip()).path
    return [unquote(p) for p in path.split("/") if p]


def _strip_extension(name: str) -> str:
    if "." in name:
        stem = name.rsplit(".", 1)[0]
        if stem:
            return stem
    return name


def _version_scan_start(segments: List[str]) -> int:
    # /<cloud>/<resource type>/<delivery type>/v<version>/...
    for idx, segment in enumerate(segments[:-1]):
        if segment in _RESOURCE_TYPES:
            return idx + 2
    return 0


def derive_public_id(url: str, kind: BucketKind) -> str:
    """Return the public ID a delete call should target for ``url``."""
    segments = _path_segments(url or "")
    if len(segments) < 2:
        raise InvalidRemoteUrl(f"Cannot derive a public id from {url!r}")

    tail = segments[-2:]
    for idx in range(_version_scan_start(segments), len(segments) - 1):
        if _VERSION_SEGMENT.match(segments[idx]):
            tail = segments[idx + 1:]
            break

    *folders, name = tail
    if kind == BucketKind.IMAGE:
        name = _strip_extension(name)
    return "/".join([*folders, name])
