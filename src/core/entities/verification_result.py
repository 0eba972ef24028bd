"""
Entity: Verification Result

Outcome of the verify-insurance flow: always exactly one of approved,
rejected or pending_review, whatever the model returned.
"""

from dataclasses import dataclass, field
from enum import Enum


class VerificationOutcome(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    PENDING_REVIEW = "pending_review"


class CheckOutcome(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    UNKNOWN = "UNKNOWN"


_RECOMMENDATIONS = {
    "APPROVE": VerificationOutcome.APPROVED,
    "REJECT": VerificationOutcome.REJECTED,
    "MANUAL_REVIEW": VerificationOutcome.PENDING_REVIEW,
}


def outcome_for_recommendation(recommendation: str | None) -> VerificationOutcome:
    """APPROVE|REJECT|MANUAL_REVIEW -> internal status; anything else is review."""
    key = (recommendation or "").strip().upper()
    return _RECOMMENDATIONS.get(key, VerificationOutcome.PENDING_REVIEW)


@dataclass
class ValidationChecks:
    document_type: CheckOutcome = CheckOutcome.UNKNOWN
    policy_active: CheckOutcome = CheckOutcome.UNKNOWN
    coverage_adequate: CheckOutcome = CheckOutcome.UNKNOWN
    required_fields_present: CheckOutcome = CheckOutcome.UNKNOWN

    def to_dict(self) -> dict:
        return {
            "documentType": self.document_type.value,
            "policyActive": self.policy_active.value,
            "coverageAdequate": self.coverage_adequate.value,
            "requiredFieldsPresent": self.required_fields_present.value,
        }


@dataclass
class VerificationExtract:
    """Key fields surfaced to the booking flow."""
    provider: str | None = None
    policy_number: str | None = None
    policyholder_name: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    liability_limit: str | None = None
    vehicle_info: str | None = None

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "policyNumber": self.policy_number,
            "policyholderName": self.policyholder_name,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "liabilityLimit": self.liability_limit,
            "vehicleInfo": self.vehicle_info,
        }


@dataclass
class ModelVerdict:
    """Structured reply to the verification prompt."""
    is_insurance_document: bool | None = None
    confidence: float | None = None
    document_type: str | None = None
    extracted: VerificationExtract | None = None
    is_document_valid: bool | None = None
    is_policy_active: bool | None = None
    has_required_fields: bool | None = None
    recommendation: str | None = None
    rejection_reason: str | None = None
    message: str | None = None


@dataclass
class VerificationResult:
    """Result returned by POST /api/verify-insurance."""
    status: VerificationOutcome
    confidence: float
    message: str
    validation_checks: ValidationChecks = field(default_factory=ValidationChecks)
    extracted_data: VerificationExtract | None = None
    rejection_reason: str | None = None
    suggestion: str | None = None
    source: str = "model"                  # "model", "heuristic", "unavailable"

    @property
    def needs_manual_review(self) -> bool:
        return self.status == VerificationOutcome.PENDING_REVIEW

    def to_dict(self) -> dict:
        data = {
            "status": self.status.value,
            "confidence": self.confidence,
            "message": self.message,
            "validationChecks": self.validation_checks.to_dict(),
            "extractedData": self.extracted_data.to_dict() if self.extracted_data else None,
        }
        if self.rejection_reason:
            data["rejectionReason"] = self.rejection_reason
        if self.suggestion:
            data["suggestion"] = self.suggestion
        return data
