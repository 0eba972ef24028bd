"""
Use Case: Verify Insurance

Orchestrates: begin scan → load document → model verdict → write back.
Always ends in approved / rejected / pending_review; the document never
stays in `processing`.
"""

import logging
import time

from src.core.entities.document import DocumentContent
from src.core.entities.verification_result import VerificationOutcome, VerificationResult
from src.core.exceptions import StorageError
from src.core.interfaces.document_loader import IDocumentLoader
from src.core.interfaces.insurance_analyzer import IInsuranceAnalyzer
from src.core.interfaces.repositories import IDocumentRepository

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Document verification failed"
DEFAULT_SUGGESTION = "Please upload a valid insurance document"


def extracted_data_blob(result: VerificationResult) -> dict:
    """Shape stored in the document's extracted-data JSON."""
    extract = result.extracted_data
    return {
        "verification_status": result.status.value,
        "confidence": result.confidence,
        "message": result.message,
        "validation_checks": result.validation_checks.to_dict(),
        "provider": extract.provider if extract else None,
        "policyNumber": extract.policy_number if extract else None,
        "policyholderName": extract.policyholder_name if extract else None,
        "startDate": extract.start_date if extract else None,
        "endDate": extract.end_date if extract else None,
        "needsManualReview": result.needs_manual_review,
    }


class VerifyInsuranceUseCase:
    """
    Use Case: stored document → three-way verification result.

    Dependency Injection: all collaborators come through the constructor.
    """

    def __init__(
        self,
        analyzer: IInsuranceAnalyzer,
        loader: IDocumentLoader,
        documents: IDocumentRepository,
        min_pdf_text_chars: int = 50,
    ):
        self._analyzer = analyzer
        self._loader = loader
        self._documents = documents
        self._min_pdf_text_chars = min_pdf_text_chars

    def execute(
        self,
        document_id: str,
        file_url: str,
        file_name: str | None = None,
        mime_type: str | None = None,
    ) -> VerificationResult:
        """
        Verify one uploaded document.

        Raises:
            DocumentNotFoundError: unknown document id (nothing written).
            ScanConflictError: a scan is already running (nothing written).
            Exception: anything unexpected, after the document was marked failed.
        """
        t0 = time.perf_counter()
        file_name = file_name or file_url.rstrip("/").split("/")[-1]

        self._documents.begin_scan(document_id, rescan=True)
        try:
            content = self._load(file_url, file_name, mime_type)
            result = self._analyzer.verify(content)
            self._persist(document_id, result)
        except Exception as e:
            logger.error(f"Verification of document {document_id} failed: {e}")
            self._mark_failed(document_id, e)
            raise

        latency = (time.perf_counter() - t0) * 1000
        logger.info(
            f"Document {document_id} verified: {result.status.value} "
            f"(confidence={result.confidence}, {latency:.0f} ms)"
        )
        return result

    def _load(self, file_url: str, file_name: str, mime_type: str | None) -> DocumentContent:
        try:
            return self._loader.load(file_url, file_name, mime_type, min_text_chars=self._min_pdf_text_chars)
        except StorageError as e:
            # Continue on the filename alone; the prompt steers that to manual review
            logger.warning(f"Could not download {file_name}, analyzing by filename only: {e}")
            return DocumentContent(file_name=file_name, mime_type=mime_type or "")

    def _persist(self, document_id: str, result: VerificationResult) -> None:
        blob = extracted_data_blob(result)
        if result.status == VerificationOutcome.REJECTED:
            self._documents.fail_scan(
                document_id,
                [result.rejection_reason or DEFAULT_REJECTION_REASON, result.suggestion or DEFAULT_SUGGESTION],
                extracted_data=blob,
            )
        else:
            self._documents.complete_scan(document_id, blob, confidence_score=result.confidence)

    def _mark_failed(self, document_id: str, error: Exception) -> None:
        try:
            self._documents.fail_scan(document_id, [str(error)], extracted_data={"needsManualReview": True})
        except Exception as write_error:
            logger.error(f"Could not mark document {document_id} as failed: {write_error}")
