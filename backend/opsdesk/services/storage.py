# Overview: Object-storage collaborator for media assets and ID-card images.

"""
Blob storage boundary.

The rest of the app talks to a BlobStore held in app.extensions["blob_store"].
Production uses Aliyun OSS through oss2; tests install an in-memory store.

KEY LAYOUT:
- media/{user_id}/YYYY/MM/DD/{millis}-{rand}{ext}
- merchant/{user_id}/YYYY/MM/DD/{millis}-{rand}{ext}
"""

from __future__ import annotations

import logging
import os
import secrets

import oss2
from oss2.exceptions import OssError
from flask import current_app

from opsdesk.time_utils import utcnow


logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


class BlobStore:
    """Interface every storage backend implements."""

    def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        raise NotImplementedError

    def signed_read_url(self, key: str, ttl: int) -> str:
        raise NotImplementedError

    def signed_write_url(self, key: str, content_type: str | None, ttl: int) -> str:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class OssBlobStore(BlobStore):
    """BlobStore backed by an Aliyun OSS bucket."""

    def __init__(self, access_key_id: str, access_key_secret: str, endpoint: str, bucket_name: str):
        auth = oss2.Auth(access_key_id, access_key_secret)
        self.bucket = oss2.Bucket(auth, endpoint, bucket_name)

    @classmethod
    def from_config(cls, config) -> "OssBlobStore":
        return cls(
            config["OSS_ACCESS_KEY_ID"],
            config["OSS_ACCESS_KEY_SECRET"],
            config["OSS_ENDPOINT"],
            config["OSS_BUCKET"],
        )

    def put(self, key, data, content_type=None):
        headers = {"Content-Type": content_type} if content_type else None
        self.bucket.put_object(key, data, headers=headers)

    def signed_read_url(self, key, ttl):
        return self.bucket.sign_url("GET", key, ttl)

    def signed_write_url(self, key, content_type, ttl):
        headers = {"Content-Type": content_type} if content_type else None
        return self.bucket.sign_url("PUT", key, ttl, headers=headers)

    def delete(self, key):
        self.bucket.delete_object(key)


def get_blob_store() -> BlobStore:
    return current_app.extensions["blob_store"]


def build_key(prefix: str, user_id: int, filename: str, *, now=None) -> str:
    """Storage key partitioned by user and upload day, keeping the file extension."""
    now = now or utcnow()
    _, ext = os.path.splitext(filename or "")
    rand = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    millis = int(now.timestamp() * 1000)
    return f"{prefix}/{user_id}/{now:%Y/%m/%d}/{millis}-{rand}{ext.lower()}"


def media_key(user_id: int, filename: str) -> str:
    return build_key("media", user_id, filename)


def merchant_key(user_id: int, filename: str) -> str:
    return build_key("merchant", user_id, filename)


def read_url(key: str | None) -> str | None:
    if not key:
        return None
    return get_blob_store().signed_read_url(key, current_app.config["SIGNED_READ_TTL"])


def write_url(key: str, content_type: str | None) -> str:
    return get_blob_store().signed_write_url(key, content_type, current_app.config["SIGNED_WRITE_TTL"])


def delete_quietly(key: str | None) -> bool:
    """
    Delete a stored object, reporting failure instead of raising.

    Used when the owning DB record is being deleted: the record is authoritative
    and an orphaned object is acceptable.
    """
    if not key:
        return False
    try:
        get_blob_store().delete(key)
        return True
    except (OssError, OSError):
        logger.exception("Failed to delete stored object %s", key)
        return False
