"""
Entity: Identity Verification

A KYC session driven by the external verification vendor. Records may
exist before a customer is linked (booking flow), so customer and tenant
references are optional.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from src.core.exceptions import InvalidTransitionError


class VerificationStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class ReviewResult(str, Enum):
    GREEN = "GREEN"
    RED = "RED"
    RETRY = "RETRY"


class CustomerVerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


# Vendor decision codes
VENDOR_DECISION_CODES = {
    9001: ReviewResult.GREEN,
    9102: ReviewResult.RED,
    9103: ReviewResult.RETRY,
}

# completed -> completed covers redelivered decisions
_TRANSITIONS: dict[VerificationStatus, set[VerificationStatus]] = {
    VerificationStatus.PENDING: {VerificationStatus.PENDING, VerificationStatus.COMPLETED},
    VerificationStatus.COMPLETED: {VerificationStatus.COMPLETED},
}


def review_result_for_code(code: int | None) -> ReviewResult | None:
    """Map a vendor status code onto a review result (None = still in progress)."""
    if code is None:
        return None
    return VENDOR_DECISION_CODES.get(code)


def status_for_result(result: ReviewResult | None) -> VerificationStatus:
    if result in (ReviewResult.GREEN, ReviewResult.RED):
        return VerificationStatus.COMPLETED
    return VerificationStatus.PENDING


def transition(current: VerificationStatus, target: VerificationStatus) -> VerificationStatus:
    """
    Validate a verification status change.

    Raises:
        InvalidTransitionError: e.g. a late "submitted" event after a decision.
    """
    current = VerificationStatus(current)
    target = VerificationStatus(target)
    if target not in _TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)
    return target


@dataclass
class MediaSet:
    """Stored copies of the vendor's session images."""
    document_front_url: str | None = None
    document_back_url: str | None = None
    face_image_url: str | None = None

    def to_dict(self) -> dict:
        return {
            k: v for k, v in (
                ("document_front_url", self.document_front_url),
                ("document_back_url", self.document_back_url),
                ("face_image_url", self.face_image_url),
            ) if v
        }

    @property
    def is_empty(self) -> bool:
        return not self.to_dict()


@dataclass
class IdentityVerification:
    """Domain entity: one vendor verification session."""
    id: str
    session_id: str
    provider: str = "veriff"
    customer_id: str | None = None
    tenant_id: str | None = None
    external_user_id: str | None = None
    status: VerificationStatus = VerificationStatus.PENDING
    review_status: str = "pending"
    review_result: ReviewResult | None = None
    rejection_reason: str | None = None
    document_type: str | None = None
    document_number: str | None = None
    document_country: str | None = None
    document_expiry_date: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: str | None = None
    media: MediaSet = field(default_factory=MediaSet)
    media_fetched_at: datetime | None = None
    verification_completed_at: datetime | None = None


@dataclass
class VerificationUpdate:
    """Field changes derived from one decision event."""
    status: VerificationStatus
    review_status: str
    review_result: ReviewResult | None = None
    rejection_reason: str | None = None
    document_type: str | None = None
    document_number: str | None = None
    document_country: str | None = None
    document_expiry_date: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: str | None = None
    media: MediaSet | None = None
    media_fetched_at: datetime | None = None
    verification_completed_at: datetime | None = None


@dataclass
class BlockedIdentity:
    """Tenant-scoped blocklist entry (read-only here)."""
    identity_number: str
    identity_type: str | None = None
    reason: str = ""
    is_active: bool = True
    tenant_id: str | None = None


@dataclass
class BlockedIdentityDetected:
    """Post-commit event: a verified document matched the tenant blocklist."""
    tenant_id: str
    customer_id: str | None
    document_number: str
    reason: str
