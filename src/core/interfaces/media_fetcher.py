"""
Contract: Verification Media Fetcher

Copies a vendor session's images (document front/back, face) into the
application's own object storage.
"""

from abc import ABC, abstractmethod

from src.core.entities.verification import MediaSet


class IMediaFetcher(ABC):
    """
    Port: Media Fetcher

    Partial results are normal: an image that fails to download is
    skipped, never fatal.
    """

    @abstractmethod
    def fetch_media(self, session_id: str) -> MediaSet | None:
        """
        Fetch and store the session's media.

        Returns:
            MediaSet with the stored public URLs, or None when the media
            listing itself is unavailable.
        """
        ...
