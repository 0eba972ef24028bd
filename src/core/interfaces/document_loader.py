"""
Contract: Document Loader

Downloads a stored document and prepares it as model input.
"""

from abc import ABC, abstractmethod

from src.core.entities.document import DocumentContent


class IDocumentLoader(ABC):

    @abstractmethod
    def load(self, path: str, file_name: str, mime_type: str | None, min_text_chars: int = 50) -> DocumentContent:
        """
        Args:
            path: Storage key or absolute URL.
            file_name: Original upload filename.
            mime_type: Declared MIME type (guessed from the name when empty).
            min_text_chars: PDFs with less text than this are attached whole.

        Raises:
            StorageError: the document could not be downloaded.
        """
        ...
