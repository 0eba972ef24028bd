"""
Contract: Scoring Engine

Turns an Extracted Insurance Data record into fraud-risk, validation and
confidence scores plus a three-way decision. Pure: no I/O, no hidden state.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from src.core.entities.insurance import ExtractedInsuranceData


class ScanDecision(str, Enum):
    AUTO_APPROVED = "auto_approved"
    PENDING_REVIEW = "pending_review"
    AUTO_REJECTED = "auto_rejected"


@dataclass
class FraudCheckResult:
    """Rule-based fraud indicators for one record."""
    is_expired: bool = False
    has_inconsistent_dates: bool = False
    suspicious_indicators: list[str] = field(default_factory=list)
    fraud_risk_score: float = 0.0     # 0.0 (clean) to 1.0 (high risk)


@dataclass
class ScanAssessment:
    """Scores and decision for one scanned document."""
    fraud: FraudCheckResult
    validation_score: float
    confidence_score: float
    decision: ScanDecision
    requires_manual_review: bool = False
    rules_version: str = ""


class IScoringEngine(ABC):
    """
    Port: Scoring Engine

    Applies deterministic business rules to the fields the model
    extracted. The same input and reference date always yield the
    same scores.
    """

    @abstractmethod
    def assess(self, data: ExtractedInsuranceData, today: date | None = None) -> ScanAssessment:
        """
        Score a record and decide.

        Args:
            data: Fields extracted from the document.
            today: Reference date for expiry checks (defaults to today).

        Returns:
            ScanAssessment with the three scores and the decision.
        """
        ...
