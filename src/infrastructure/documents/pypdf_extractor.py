"""
Adapter: pypdf Text Extractor

Concrete ITextExtractor reading the embedded text layer of a PDF.
Scanned PDFs without a text layer yield empty pages, not an error.
"""

import io
import logging

from pypdf import PdfReader

from src.core.exceptions import TextExtractionError
from src.core.interfaces.text_extractor import ITextExtractor

logger = logging.getLogger(__name__)


class PyPDFTextExtractor(ITextExtractor):
    """Page-by-page text extraction with pypdf."""

    def extract_pages(self, data: bytes) -> list[str]:
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                reader.decrypt("")
            pages = [page.extract_text() or "" for page in reader.pages]
        except Exception as e:
            raise TextExtractionError(f"PDF text extraction failed: {e}", original_error=e)

        logger.debug(f"Extracted text from {len(pages)} page(s)")
        return pages
