"""
Entity: Extracted Insurance Data

Structured fields read from an insurance document by the model. Every
field is optional: absence is expected, not an error.
"""

import re
from dataclasses import dataclass, field


@dataclass
class CoverageLimits:
    liability: float | None = None
    collision: float | None = None
    comprehensive: float | None = None

    def any_present(self) -> bool:
        return any(v is not None for v in (self.liability, self.collision, self.comprehensive))


@dataclass
class ExtractedInsuranceData:
    """Structured record produced from one model reply."""
    provider: str | None = None
    policy_number: str | None = None
    policyholder_name: str | None = None
    effective_date: str | None = None       # YYYY-MM-DD
    expiration_date: str | None = None      # YYYY-MM-DD
    coverage_type: str | None = None
    coverage_limits: CoverageLimits = field(default_factory=CoverageLimits)
    is_valid: bool | None = None
    is_expired: bool | None = None
    document_type: str | None = None
    validation_notes: str | None = None
    needs_manual_review: bool = False
    review_reasons: list[str] = field(default_factory=list)
    suspicious_indicators: list[str] = field(default_factory=list)

    @classmethod
    def from_model_payload(cls, payload: dict) -> "ExtractedInsuranceData":
        """
        Map a model's JSON object onto the internal shape.

        Models drift between field names ("insurer" vs "provider",
        "namedInsured" vs "policyholderName"), so each field accepts its
        known aliases. Nested "extractedData" objects are flattened.

        Raises:
            TypeError: if `payload` is not a JSON object.
        """
        if not isinstance(payload, dict):
            raise TypeError(f"Expected a JSON object, got {type(payload).__name__}")

        data = dict(payload)
        nested = payload.get("extractedData")
        if isinstance(nested, dict):
            data.update(nested)

        limits = data.get("coverageLimits")
        if not isinstance(limits, dict):
            limits = {}

        return cls(
            provider=_text(data, "provider", "insurer", "insuranceCompany"),
            policy_number=_text(data, "policyNumber", "policy_number"),
            policyholder_name=_text(data, "policyholderName", "namedInsured", "insuredName"),
            effective_date=_text(data, "effectiveDate", "startDate"),
            expiration_date=_text(data, "expirationDate", "endDate", "expiryDate"),
            coverage_type=_text(data, "coverageType"),
            coverage_limits=CoverageLimits(
                liability=_amount(limits.get("liability", data.get("liabilityLimit"))),
                collision=_amount(limits.get("collision")),
                comprehensive=_amount(limits.get("comprehensive")),
            ),
            is_valid=_flag(data.get("isValid", data.get("isDocumentValid"))),
            is_expired=_flag(data.get("isExpired")),
            document_type=_text(data, "documentType"),
            validation_notes=_text(data, "validationNotes", "notes"),
            needs_manual_review=bool(_flag(data.get("needsManualReview"))),
            review_reasons=_strings(data.get("reviewReasons")),
            suspicious_indicators=_strings(data.get("suspiciousIndicators")),
        )

    def to_dict(self) -> dict:
        """JSON blob shape stored on the document record."""
        return {
            "provider": self.provider,
            "policyNumber": self.policy_number,
            "policyholderName": self.policyholder_name,
            "effectiveDate": self.effective_date,
            "expirationDate": self.expiration_date,
            "coverageType": self.coverage_type,
            "coverageLimits": {
                "liability": self.coverage_limits.liability,
                "collision": self.coverage_limits.collision,
                "comprehensive": self.coverage_limits.comprehensive,
            },
            "isValid": self.is_valid,
            "isExpired": self.is_expired,
            "documentType": self.document_type,
            "validationNotes": self.validation_notes,
            "needsManualReview": self.needs_manual_review,
            "reviewReasons": list(self.review_reasons),
            "suspiciousIndicators": list(self.suspicious_indicators),
        }


_NULL_TEXT = {"", "null", "none", "n/a", "unknown"}


def _text(data: dict, *keys: str) -> str | None:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value.lower() not in _NULL_TEXT:
            return value
    return None


def _amount(value) -> float | None:
    """Parse 50000, "50000", "$50,000.00" -> 50000.0."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[^\d.]", "", str(value))
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def _flag(value) -> bool | None:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes"):
            return True
        if lowered in ("false", "no"):
            return False
    return None


def _strings(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v]
