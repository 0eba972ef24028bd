"""
Document Fetcher & Encoder

Downloads a stored document and turns it into model-ready content:
PDF text (page by page) and/or a base64 inline attachment for images
and text-less PDFs. Extraction failures degrade to a placeholder,
they never abort the pipeline.
"""

import base64
import logging
import mimetypes
from typing import Optional
from urllib.parse import unquote, urlsplit

from src.core.entities.document import DocumentContent, InlineAttachment
from src.core.exceptions import StorageError, TextExtractionError
from src.core.interfaces.document_loader import IDocumentLoader
from src.core.interfaces.storage_service import IStorageService
from src.core.interfaces.text_extractor import ITextExtractor
from src.infrastructure.llm.prompts import text_placeholder

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"


def resolve_mime_type(file_name: str, declared: Optional[str]) -> str:
    """Declared MIME type, or a guess from the file extension."""
    if declared:
        return declared.strip().lower()
    guessed, _ = mimetypes.guess_type(file_name or "")
    return guessed or "application/octet-stream"


class DocumentFetcher(IDocumentLoader):
    """Loads raw bytes from object storage and encodes them."""

    def __init__(self, storage: IStorageService, text_extractor: ITextExtractor):
        self._storage = storage
        self._text_extractor = text_extractor

    def storage_key(self, path: str) -> str:
        """
        Bucket key for a document path.

        Absolute URLs are only accepted when they point into our own
        bucket (its public URL prefix); anything else is refused without
        being requested.

        Raises:
            StorageError: foreign URL or empty key.
        """
        if not path.startswith(("http://", "https://")):
            return path
        prefix = self._storage.get_public_url("")
        if not path.startswith(prefix):
            raise StorageError(f"Refusing to download {path}: not a document storage URL")
        key = unquote(urlsplit(path[len(prefix):]).path)
        if not key:
            raise StorageError(f"No object key in {path}")
        return key

    def fetch(self, path: str) -> bytes:
        """
        Download a document.

        Args:
            path: Storage key, or a public URL of an object in our bucket.

        Raises:
            StorageError: if the document cannot be read.
        """
        return self._storage.download(self.storage_key(path))

    def prepare(
        self,
        data: bytes,
        file_name: str,
        mime_type: Optional[str],
        min_text_chars: int = 50,
    ) -> DocumentContent:
        """
        Build model input from raw bytes.

        PDFs get their text layer; when that text is missing or shorter
        than `min_text_chars` the PDF itself is attached so the model can
        read it visually. Images are always attached.
        """
        mime_type = resolve_mime_type(file_name, mime_type)
        content = DocumentContent(file_name=file_name, mime_type=mime_type, size_bytes=len(data))

        if mime_type == PDF_MIME:
            try:
                pages = self._text_extractor.extract_pages(data)
                content.page_count = len(pages)
                content.text = "\n\n".join(page.strip() for page in pages if page and page.strip())
            except TextExtractionError as e:
                logger.warning(f"PDF text extraction failed for {file_name}: {e}")
                content.text = text_placeholder(file_name)
                content.text_extraction_failed = True

            if not content.has_usable_text or len(content.text.strip()) < min_text_chars:
                logger.info(f"{file_name}: little or no PDF text, attaching document for visual reading")
                content.attachment = _encode(data, mime_type)

        elif mime_type.startswith("image/"):
            content.attachment = _encode(data, mime_type)

        else:
            logger.warning(f"{file_name}: unsupported MIME type {mime_type}, sending filename only")

        return content

    def load(self, path: str, file_name: str, mime_type: Optional[str], min_text_chars: int = 50) -> DocumentContent:
        """fetch() followed by prepare()."""
        data = self.fetch(path)
        logger.info(f"Downloaded {file_name} ({len(data)} bytes)")
        return self.prepare(data, file_name, mime_type, min_text_chars=min_text_chars)


def _encode(data: bytes, mime_type: str) -> InlineAttachment:
    return InlineAttachment(mime_type=mime_type, data_base64=base64.b64encode(data).decode("ascii"))
