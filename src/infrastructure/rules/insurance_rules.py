"""
Insurance Document Scoring Engine.

Rule-based scoring over the fields a model extracted from an insurance
certificate:
- Fraud risk (additive penalties, capped at 1.0)
- Validation score (weighted field completeness, penalized by fraud risk)
- Confidence score (field coverage)
- Three-way decision via fixed thresholds
"""
import re
from datetime import date
from typing import List, Optional, Tuple

from src.core.entities.insurance import ExtractedInsuranceData
from src.core.interfaces.scoring_engine import (
    FraudCheckResult,
    IScoringEngine,
    ScanAssessment,
    ScanDecision,
)


# ── Fraud penalties ─────────────────────────────────────────────────
PENALTY_EXPIRED = 0.3
PENALTY_INCONSISTENT_DATES = 0.4
PENALTY_MODEL_INVALID = 0.5
PENALTY_NO_IDENTIFIERS = 0.3
PENALTY_PER_KEYWORD = 0.2

SUSPICIOUS_KEYWORDS = ("tamper", "alter", "suspicious", "fake", "invalid")

# ── Validation weights ──────────────────────────────────────────────
VALIDATION_WEIGHTS = {
    "policy_number": 0.25,
    "provider": 0.20,
    "effective_date": 0.15,
    "expiration_date": 0.25,
    "coverage_limit": 0.10,
    "model_valid": 0.05,
}
FRAUD_PENALTY_FACTOR = 0.5

# ── Confidence ──────────────────────────────────────────────────────
CONFIDENCE_TRACKED_FIELDS = 7
CONFIDENCE_VALID_BONUS = 0.10
CONFIDENCE_REVIEW_PENALTY = 0.15

# ── Decision thresholds ─────────────────────────────────────────────
APPROVE_MIN_VALIDATION = 0.85
APPROVE_MAX_FRAUD = 0.3
REJECT_MAX_VALIDATION = 0.60
REJECT_MIN_FRAUD = 0.7

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse a strict YYYY-MM-DD string; anything else is None."""
    if not value or not _ISO_DATE.match(value.strip()):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def _present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


class InsuranceScoringEngine(IScoringEngine):
    """
    Insurance certificate scoring - 5 fraud rules:
    1. Expired policy
    2. Expiration on/before effective date
    3. Model flagged the document invalid
    4. No policy number and no provider
    5. Suspicious keywords in the model's validation notes
    """

    RULES_VERSION = "insurance-v1.0"

    def __init__(self):
        self._fraud_rules = [
            ("EXPIRED", self._rule_expired),
            ("INCONSISTENT_DATES", self._rule_inconsistent_dates),
            ("MODEL_INVALID", self._rule_model_invalid),
            ("NO_IDENTIFIERS", self._rule_no_identifiers),
            ("SUSPICIOUS_NOTES", self._rule_suspicious_notes),
        ]

    def assess(self, data: ExtractedInsuranceData, today: date | None = None) -> ScanAssessment:
        """Score a record and map it onto a decision."""
        today = today or date.today()

        fraud = self.check_fraud(data, today)
        validation = self.validation_score(data, fraud, today)
        confidence = self.confidence_score(data)
        decision = self.decide(validation, fraud.fraud_risk_score, data.needs_manual_review)

        return ScanAssessment(
            fraud=fraud,
            validation_score=validation,
            confidence_score=confidence,
            decision=decision,
            requires_manual_review=data.needs_manual_review or decision == ScanDecision.PENDING_REVIEW,
            rules_version=self.RULES_VERSION,
        )

    # ── Fraud risk ──────────────────────────────────────────────────

    def check_fraud(self, data: ExtractedInsuranceData, today: date) -> FraudCheckResult:
        result = FraudCheckResult()
        score = 0.0

        for rule_id, rule_fn in self._fraud_rules:
            for penalty, detail in rule_fn(data, today):
                score += penalty
                if rule_id == "EXPIRED":
                    result.is_expired = True
                elif rule_id == "INCONSISTENT_DATES":
                    result.has_inconsistent_dates = True
                result.suspicious_indicators.append(detail)

        # Indicators the model reported itself carry no extra weight
        for indicator in data.suspicious_indicators:
            if indicator not in result.suspicious_indicators:
                result.suspicious_indicators.append(indicator)

        result.fraud_risk_score = round(min(1.0, score), 2)
        return result

    def _rule_expired(self, data: ExtractedInsuranceData, today: date) -> List[Tuple[float, str]]:
        expiration = parse_iso_date(data.expiration_date)
        if expiration and expiration < today:
            return [(PENALTY_EXPIRED, f"Policy expired on {expiration.isoformat()}")]
        return []

    def _rule_inconsistent_dates(self, data: ExtractedInsuranceData, today: date) -> List[Tuple[float, str]]:
        effective = parse_iso_date(data.effective_date)
        expiration = parse_iso_date(data.expiration_date)
        if effective and expiration and expiration <= effective:
            return [(PENALTY_INCONSISTENT_DATES,
                     f"Expiration date {expiration.isoformat()} is not after effective date {effective.isoformat()}")]
        return []

    def _rule_model_invalid(self, data: ExtractedInsuranceData, today: date) -> List[Tuple[float, str]]:
        if data.is_valid is False:
            return [(PENALTY_MODEL_INVALID, "Document flagged as invalid during analysis")]
        return []

    def _rule_no_identifiers(self, data: ExtractedInsuranceData, today: date) -> List[Tuple[float, str]]:
        if not _present(data.policy_number) and not _present(data.provider):
            return [(PENALTY_NO_IDENTIFIERS, "Missing both policy number and insurance provider")]
        return []

    def _rule_suspicious_notes(self, data: ExtractedInsuranceData, today: date) -> List[Tuple[float, str]]:
        notes = (data.validation_notes or "").lower()
        return [
            (PENALTY_PER_KEYWORD, f"Validation notes mention '{keyword}'")
            for keyword in SUSPICIOUS_KEYWORDS
            if keyword in notes
        ]

    # ── Validation ──────────────────────────────────────────────────

    def validation_score(self, data: ExtractedInsuranceData, fraud: FraudCheckResult, today: date) -> float:
        # Expiration earns its weight when well-formed and not past, even
        # if it precedes the effective date (that case is penalized in fraud risk only).
        score = 0.0
        if _present(data.policy_number):
            score += VALIDATION_WEIGHTS["policy_number"]
        if _present(data.provider):
            score += VALIDATION_WEIGHTS["provider"]
        if parse_iso_date(data.effective_date):
            score += VALIDATION_WEIGHTS["effective_date"]
        expiration = parse_iso_date(data.expiration_date)
        if expiration and expiration >= today:
            score += VALIDATION_WEIGHTS["expiration_date"]
        if data.coverage_limits.any_present():
            score += VALIDATION_WEIGHTS["coverage_limit"]
        if data.is_valid is True:
            score += VALIDATION_WEIGHTS["model_valid"]

        score = min(1.0, score) * (1 - fraud.fraud_risk_score * FRAUD_PENALTY_FACTOR)
        return round(score, 2)

    # ── Confidence ──────────────────────────────────────────────────

    def confidence_score(self, data: ExtractedInsuranceData) -> float:
        tracked = [
            _present(data.provider),
            _present(data.policy_number),
            _present(data.policyholder_name),
            _present(data.effective_date),
            _present(data.expiration_date),
            _present(data.coverage_type),
            data.coverage_limits.any_present(),
        ]
        score = sum(tracked) / CONFIDENCE_TRACKED_FIELDS
        if data.is_valid is True:
            score += CONFIDENCE_VALID_BONUS
        if data.needs_manual_review:
            score -= CONFIDENCE_REVIEW_PENALTY
        return round(max(0.0, min(1.0, score)), 2)

    # ── Decision ────────────────────────────────────────────────────

    @staticmethod
    def decide(validation_score: float, fraud_risk_score: float, needs_manual_review: bool) -> ScanDecision:
        if (validation_score >= APPROVE_MIN_VALIDATION
                and not needs_manual_review
                and fraud_risk_score < APPROVE_MAX_FRAUD):
            return ScanDecision.AUTO_APPROVED
        if validation_score < REJECT_MAX_VALIDATION or fraud_risk_score >= REJECT_MIN_FRAUD:
            return ScanDecision.AUTO_REJECTED
        return ScanDecision.PENDING_REVIEW
