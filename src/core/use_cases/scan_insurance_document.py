"""
Use Case: Scan Insurance Document

Orchestrates: begin scan → load document → model extraction → scoring
→ write back. Any failure is terminal: the document is marked failed
with `needsManualReview` and the error is re-raised.
"""

import logging
import time
from dataclasses import dataclass
from datetime import date

from src.core.exceptions import StorageError
from src.core.interfaces.document_loader import IDocumentLoader
from src.core.interfaces.insurance_analyzer import IInsuranceAnalyzer
from src.core.interfaces.repositories import IDocumentRepository
from src.core.interfaces.scoring_engine import IScoringEngine, ScanDecision

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Payload returned by POST /api/scan-insurance-document."""
    extracted_data: dict
    validation_score: float
    confidence_score: float
    decision: ScanDecision
    fraud_risk_score: float
    requires_manual_review: bool

    def to_dict(self) -> dict:
        return {
            "extractedData": self.extracted_data,
            "validationScore": self.validation_score,
            "confidenceScore": self.confidence_score,
            "verificationDecision": self.decision.value,
            "fraudRiskScore": self.fraud_risk_score,
            "requiresManualReview": self.requires_manual_review,
        }


class ScanInsuranceDocumentUseCase:
    """Use Case: document id → extracted fields, scores and decision."""

    def __init__(
        self,
        analyzer: IInsuranceAnalyzer,
        loader: IDocumentLoader,
        scoring: IScoringEngine,
        documents: IDocumentRepository,
        min_pdf_text_chars: int = 50,
    ):
        self._analyzer = analyzer
        self._loader = loader
        self._scoring = scoring
        self._documents = documents
        self._min_pdf_text_chars = min_pdf_text_chars

    def execute(self, document_id: str, file_url: str | None = None, today: date | None = None) -> ScanResult:
        """
        Re-derive everything from the source file.

        Raises:
            DocumentNotFoundError: unknown document id.
            ScanConflictError: a scan is already running.
            VerificationPipelineError: download, model or parse failure
                (after the document was marked failed).
        """
        t0 = time.perf_counter()
        document = self._documents.begin_scan(document_id, rescan=True)

        try:
            path = file_url or document.file_url
            if not path:
                raise StorageError(f"Document {document_id} has no stored file")
            file_name = document.file_name or path.rstrip("/").split("/")[-1]

            content = self._loader.load(path, file_name, document.mime_type, min_text_chars=self._min_pdf_text_chars)
            data = self._analyzer.extract(content)
            assessment = self._scoring.assess(data, today=today)

            extracted = data.to_dict()
            extracted.update({
                "isExpired": assessment.fraud.is_expired or bool(data.is_expired),
                "hasInconsistentDates": assessment.fraud.has_inconsistent_dates,
                "suspiciousIndicators": list(assessment.fraud.suspicious_indicators),
                "fraudRiskScore": assessment.fraud.fraud_risk_score,
                "verificationDecision": assessment.decision.value,
                "requiresManualReview": assessment.requires_manual_review,
                "rulesVersion": assessment.rules_version,
            })

            self._documents.complete_scan(
                document_id,
                extracted,
                confidence_score=assessment.confidence_score,
                validation_score=assessment.validation_score,
            )
        except Exception as e:
            logger.error(f"Scan of document {document_id} failed: {e}")
            self._mark_failed(document_id, e)
            raise

        latency = (time.perf_counter() - t0) * 1000
        logger.info(
            f"Document {document_id} scanned: {assessment.decision.value} "
            f"(validation={assessment.validation_score}, confidence={assessment.confidence_score}, "
            f"fraud={assessment.fraud.fraud_risk_score}, {latency:.0f} ms)"
        )
        return ScanResult(
            extracted_data=extracted,
            validation_score=assessment.validation_score,
            confidence_score=assessment.confidence_score,
            decision=assessment.decision,
            fraud_risk_score=assessment.fraud.fraud_risk_score,
            requires_manual_review=assessment.requires_manual_review,
        )

    def _mark_failed(self, document_id: str, error: Exception) -> None:
        try:
            self._documents.fail_scan(document_id, [str(error)], extracted_data={"needsManualReview": True})
        except Exception as write_error:
            logger.error(f"Could not mark document {document_id} as failed: {write_error}")
