"""
Use Case: Fetch Verification Media

Re-runs media retrieval for an existing verification, e.g. when the
webhook's own attempt found nothing yet.
"""

import logging
from dataclasses import dataclass, field

from src.core.exceptions import ConfigurationError, DocumentNotFoundError
from src.core.interfaces.media_fetcher import IMediaFetcher
from src.core.interfaces.repositories import IVerificationRepository

logger = logging.getLogger(__name__)


@dataclass
class MediaFetchOutcome:
    ok: bool
    message: str = ""
    urls: dict = field(default_factory=dict)
    error: str | None = None


class FetchVerificationMediaUseCase:

    def __init__(self, verifications: IVerificationRepository, media_fetcher: IMediaFetcher | None):
        self._verifications = verifications
        self._media = media_fetcher

    def execute(self, verification_id: str | None = None, session_id: str | None = None) -> MediaFetchOutcome:
        """
        Raises:
            ValueError: neither identifier given.
            ConfigurationError: vendor credentials are not configured.
            DocumentNotFoundError: no matching verification record.
        """
        if not verification_id and not session_id:
            raise ValueError("verificationId or sessionId required")
        if self._media is None:
            raise ConfigurationError("Veriff API credentials not configured")

        if verification_id:
            record = self._verifications.get(verification_id)
        else:
            record = self._verifications.find_latest_by_session(session_id)
        if record is None:
            raise DocumentNotFoundError(f"Verification not found: {verification_id or session_id}")

        media = self._media.fetch_media(record.session_id)
        if media is None:
            return MediaFetchOutcome(ok=False, error=f"Failed to fetch media for session {record.session_id}")

        self._verifications.store_media(record.id, media)
        urls = media.to_dict()
        logger.info(f"Verification {record.id}: fetched {len(urls)} image(s)")
        return MediaFetchOutcome(ok=True, message=f"Fetched {len(urls)} images", urls=urls)
