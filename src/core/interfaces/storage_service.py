"""
Contract: Storage Service

Object storage for customer documents and the vendor media copied out of
identity verification sessions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class StoredObject:
    """Location and fingerprint of one stored blob."""
    bucket: str
    key: str
    size_bytes: int
    sha256: str
    content_type: str


class IStorageService(ABC):
    """
    Port: Storage Service

    Keys are bucket-relative paths such as `<customer>/<file>` or
    `veriff/<session>/<context>.<ext>`.
    """

    @abstractmethod
    def upload(self, data: bytes, key: str, content_type: str = "image/jpeg") -> StoredObject:
        """
        Write `data` at `key`, replacing any existing object.

        Raises:
            StorageError: the write failed.
        """
        ...

    @abstractmethod
    def download(self, key: str) -> bytes:
        """
        Raises:
            StorageError: if the object is missing or unreadable.
        """
        ...

    @abstractmethod
    def get_url(self, key: str, expires_seconds: int = 3600) -> str:
        """Time-limited URL for private objects."""
        ...

    @abstractmethod
    def get_public_url(self, key: str) -> str:
        """Stable URL stored on verification records."""
        ...
