"""
Adapter: Veriff Media Client

Lists a session's media through the Veriff API, downloads the document
front/back and face images, and re-uploads them into our own object
storage under `veriff/<session_id>/<context>.<ext>`.
"""

import logging
from typing import Optional

import httpx

from src.core.entities.verification import MediaSet
from src.core.exceptions import StorageError
from src.core.interfaces.media_fetcher import IMediaFetcher
from src.core.interfaces.storage_service import IStorageService
from src.infrastructure.veriff.signatures import sign

logger = logging.getLogger(__name__)

# image context -> MediaSet field
MEDIA_CONTEXTS = {
    "document-front": "document_front_url",
    "document-back": "document_back_url",
    "face": "face_image_url",
}


class VeriffMediaClient(IMediaFetcher):
    """Authenticated media retrieval (X-AUTH-CLIENT + X-HMAC-SIGNATURE)."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        storage: IStorageService,
        base_url: str = "https://stationapi.veriff.com",
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 30.0,
    ):
        self._api_key = api_key
        self._api_secret = api_secret
        self._storage = storage
        self._base_url = base_url.rstrip("/")
        self._http = http_client or httpx.Client(timeout=timeout_seconds)

    def _headers(self, signed_value: str) -> dict:
        return {
            "X-AUTH-CLIENT": self._api_key,
            "X-HMAC-SIGNATURE": sign(signed_value, self._api_secret),
            "Content-Type": "application/json",
        }

    def list_media(self, session_id: str) -> Optional[list[dict]]:
        """GET /v1/sessions/{id}/media -> the `images` array, or None on failure."""
        url = f"{self._base_url}/v1/sessions/{session_id}/media"
        try:
            response = self._http.get(url, headers=self._headers(session_id))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Veriff media listing failed for session {session_id}: {e}")
            return None

        if response.status_code != 200:
            logger.error(
                f"Veriff media listing for session {session_id} returned "
                f"{response.status_code}: {response.text[:500]}"
            )
            return None

        try:
            images = response.json().get("images") or []
        except (ValueError, AttributeError) as e:
            logger.error(f"Veriff media listing for session {session_id} is not a JSON object: {e}")
            return None
        if not isinstance(images, list):
            logger.error(f"Veriff media listing for session {session_id}: `images` is not a list")
            return None
        logger.info(f"Veriff session {session_id}: {len(images)} image(s) available")
        return images

    def download_and_store(self, image_url: str, session_id: str, context: str) -> Optional[str]:
        """Copy one image into storage; returns its public URL or None."""
        media_id = image_url.rstrip("/").split("/")[-1]
        if not media_id:
            logger.error(f"Cannot derive media id from {image_url}")
            return None

        try:
            response = self._http.get(image_url, headers=self._headers(media_id))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Download of {context} for session {session_id} failed: {e}")
            return None
        if response.status_code != 200:
            logger.warning(
                f"Download of {context} for session {session_id} returned {response.status_code}"
            )
            return None

        content_type = response.headers.get("content-type", "image/jpeg")
        extension = "png" if "png" in content_type else "jpg"
        key = f"veriff/{session_id}/{context}.{extension}"

        try:
            self._storage.upload(response.content, key, content_type=content_type)
        except StorageError as e:
            logger.warning(f"Storing {context} for session {session_id} failed: {e}")
            return None

        url = self._storage.get_public_url(key)
        logger.info(f"Stored {context} for session {session_id}: {url}")
        return url

    def fetch_media(self, session_id: str) -> MediaSet | None:
        images = self.list_media(session_id)
        if images is None:
            return None

        media = MediaSet()
        for image in images:
            if not isinstance(image, dict):
                logger.warning(f"Session {session_id}: skipping malformed media entry {image!r}")
                continue
            context = image.get("context")
            url = image.get("url")
            field_name = MEDIA_CONTEXTS.get(context) if isinstance(context, str) else None
            if not field_name or not url or not isinstance(url, str):
                continue
            try:
                stored = self.download_and_store(url, session_id, context)
            except Exception as e:
                logger.exception(f"Unexpected error storing {context} for session {session_id}: {e}")
                continue
            if stored:
                setattr(media, field_name, stored)
        return media
