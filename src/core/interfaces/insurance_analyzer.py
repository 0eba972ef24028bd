"""
Contract: Insurance Analyzer

Asks a model about one prepared document: either a three-way
verification verdict or a full field extraction.
"""

from abc import ABC, abstractmethod

from src.core.entities.document import DocumentContent
from src.core.entities.insurance import ExtractedInsuranceData
from src.core.entities.verification_result import VerificationResult


class IInsuranceAnalyzer(ABC):
    """
    Port: Insurance Analyzer

    Owns prompt construction and reply parsing; the use cases only see
    typed results.
    """

    @abstractmethod
    def verify(self, content: DocumentContent) -> VerificationResult:
        """
        Decide approved / rejected / pending_review.

        Never raises: model unavailability and unparseable replies
        degrade to a pending_review (or heuristic) result.
        """
        ...

    @abstractmethod
    def extract(self, content: DocumentContent) -> ExtractedInsuranceData:
        """
        Extract the insurance fields.

        Raises:
            ModelUnavailableError: every model credential failed.
            ExtractionParseError: the reply held no usable JSON object.
        """
        ...
