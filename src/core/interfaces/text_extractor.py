"""
Contract: Text Extractor

Extracts raw text from PDF documents, page by page.
"""

from abc import ABC, abstractmethod


class ITextExtractor(ABC):
    """
    Port: Text Extractor

    Any engine (pypdf, pdfminer, external API) must implement this.
    """

    @abstractmethod
    def extract_pages(self, data: bytes) -> list[str]:
        """
        Extract text from each page.

        Args:
            data: PDF file content.

        Returns:
            One string per page (possibly empty).

        Raises:
            TextExtractionError: if the document cannot be read.
        """
        ...
