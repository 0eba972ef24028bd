"""
Adapter: Local Filesystem Storage

IStorageService over a directory tree (`<root>/<bucket>/<key>`), for
local development and tests. Files are served by the API under
`public_base_url`.
"""

import hashlib
import logging
from pathlib import Path

from src.core.exceptions import StorageError
from src.core.interfaces.storage_service import IStorageService, StoredObject

logger = logging.getLogger(__name__)


class LocalStorageService(IStorageService):

    def __init__(self, root: str, bucket: str, public_base_url: str = "http://localhost:8000/files"):
        self._root = Path(root)
        self._bucket = bucket
        self._public_base_url = public_base_url.rstrip("/")

    @property
    def bucket_dir(self) -> Path:
        return self._root / self._bucket

    def _path(self, key: str) -> Path:
        path = (self.bucket_dir / key).resolve()
        if not path.is_relative_to(self.bucket_dir.resolve()):
            raise StorageError(f"Key escapes the bucket: {key}")
        return path

    def upload(self, data: bytes, key: str, content_type: str = "image/jpeg") -> StoredObject:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Upload failed for {key}: {e}", original_error=e)

        logger.debug(f"Stored {key} ({len(data)} bytes) at {path}")
        return StoredObject(
            bucket=self._bucket,
            key=key,
            size_bytes=len(data),
            sha256=hashlib.sha256(data).hexdigest(),
            content_type=content_type,
        )

    def download(self, key: str) -> bytes:
        path = self._path(key)
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f"Download failed for {key}: {e}", original_error=e)

    def get_url(self, key: str, expires_seconds: int = 3600) -> str:
        # No signing locally
        return self.get_public_url(key)

    def get_public_url(self, key: str) -> str:
        return f"{self._public_base_url}/{self._bucket}/{key}"
