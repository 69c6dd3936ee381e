"""
Bucketed object storage over Django's `default_storage`.

A bucket is a directory under `storage/`; it exists once a marker file has
been written into it by `create_bucket`.
"""

import logging
import posixpath
import uuid

from django.conf import settings
from django.core.exceptions import SuspiciousFileOperation
from django.core.files.base import ContentFile, File
from django.core.files.storage import default_storage

from .errors import UploadError

logger = logging.getLogger(__name__)

ROOT = "storage"
MARKER = ".bucket"


def _bucket_dir(bucket: str) -> str:
    if not bucket or "/" in bucket or bucket.startswith("."):
        raise UploadError(f"Invalid bucket name: {bucket!r}", code="invalid_bucket")
    return posixpath.join(ROOT, bucket)


def _object_name(bucket: str, path: str) -> str:
    clean = posixpath.normpath(path.lstrip("/"))
    if clean.startswith("..") or clean in ("", "."):
        raise UploadError(f"Invalid object path: {path!r}", code="invalid_path")
    return posixpath.join(_bucket_dir(bucket), clean)


class StorageClient:
    def __init__(self, storage=None):
        self._storage = storage or default_storage

    def list_buckets(self) -> list:
        try:
            if not self._storage.exists(ROOT):
                return []
            dirs, _ = self._storage.listdir(ROOT)
        except OSError as exc:
            raise UploadError(str(exc), code="storage_error") from exc
        return [
            {"id": name, "name": name, "public": True}
            for name in sorted(dirs)
            if self._storage.exists(posixpath.join(ROOT, name, MARKER))
        ]

    def bucket_exists(self, bucket: str) -> bool:
        return self._storage.exists(posixpath.join(_bucket_dir(bucket), MARKER))

    def create_bucket(self, bucket: str, public: bool = True) -> dict:
        if self.bucket_exists(bucket):
            raise UploadError("The resource already exists", code="bucket_exists")
        try:
            self._storage.save(posixpath.join(_bucket_dir(bucket), MARKER), ContentFile(b""))
        except (OSError, SuspiciousFileOperation) as exc:
            raise UploadError(str(exc), code="storage_error") from exc
        logger.info("created storage bucket %s", bucket)
        return {"name": bucket, "public": public}

    def upload(self, bucket: str, path: str, file, upsert: bool = False) -> dict:
        if not self.bucket_exists(bucket):
            raise UploadError("Bucket not found", code="bucket_not_found")
        name = _object_name(bucket, path)
        if isinstance(file, (bytes, bytearray)):
            content = ContentFile(bytes(file))
        elif isinstance(file, File):
            content = file
        else:
            content = File(file)
        try:
            if self._storage.exists(name):
                if not upsert:
                    raise UploadError("The resource already exists", code="duplicate")
                self._storage.delete(name)
            saved = self._storage.save(name, content)
        except (OSError, SuspiciousFileOperation) as exc:
            logger.warning("upload to %s failed: %s", name, exc)
            raise UploadError(str(exc), code="storage_error") from exc
        return {"path": path, "full_path": saved}

    def get_public_url(self, bucket: str, path: str) -> dict:
        url = self._storage.url(_object_name(bucket, path))
        if url.startswith("/"):
            url = settings.SITE_URL.rstrip("/") + url
        return {"public_url": url}

    def remove(self, bucket: str, paths: list) -> list:
        removed = []
        for path in paths:
            name = _object_name(bucket, path)
            if self._storage.exists(name):
                self._storage.delete(name)
                removed.append(path)
        return removed


AVATAR_BUCKET = "avatars"


def store_avatar(storage: StorageClient, user_id, file) -> str:
    """Upload an avatar under `<user_id>/` in the public avatars bucket; returns its public URL."""
    if not storage.bucket_exists(AVATAR_BUCKET):
        storage.create_bucket(AVATAR_BUCKET, public=True)
    filename = getattr(file, "name", "") or ""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
    path = f"{user_id}/{uuid.uuid4().hex}.{ext}"
    storage.upload(AVATAR_BUCKET, path, file, upsert=True)
    return storage.get_public_url(AVATAR_BUCKET, path)["public_url"]
