"""
Use Case: Handle Verification Webhook

Applies one vendor callback (started / submitted / decision) to the
identity verification record, the owning customer and the tenant
blocklist. Side effects that must not affect the outcome (admin
notifications) are returned as post-commit events instead of being
performed here.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from src.core.entities.verification import (
    BlockedIdentity,
    BlockedIdentityDetected,
    CustomerVerificationStatus,
    IdentityVerification,
    ReviewResult,
    VerificationStatus,
    VerificationUpdate,
    review_result_for_code,
    status_for_result,
    transition,
)
from src.core.exceptions import InvalidTransitionError
from src.core.interfaces.media_fetcher import IMediaFetcher
from src.core.interfaces.repositories import ICustomerRepository, IVerificationRepository

logger = logging.getLogger(__name__)

DEFAULT_DECLINE_REASON = "Verification declined"


@dataclass
class WebhookOutcome:
    """Result of one callback; `events` are delivered after commit."""
    ok: bool = True
    error: str | None = None
    action: str | None = None
    session_id: str | None = None
    verification_id: str | None = None
    events: list = field(default_factory=list)


def customer_status_for(result: ReviewResult | None, blocked: bool) -> CustomerVerificationStatus:
    """A blocklist match always wins over the vendor's decision."""
    if blocked:
        return CustomerVerificationStatus.REJECTED
    if result == ReviewResult.GREEN:
        return CustomerVerificationStatus.VERIFIED
    if result == ReviewResult.RED:
        return CustomerVerificationStatus.REJECTED
    return CustomerVerificationStatus.PENDING


def _code(value) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _value(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    return str(value) if value not in (None, "") else None


class HandleVerificationWebhookUseCase:
    """
    Use Case: vendor callback → verification record + customer status.

    Signature checks happen at the HTTP edge, before this runs.
    """

    def __init__(
        self,
        verifications: IVerificationRepository,
        customers: ICustomerRepository,
        media_fetcher: IMediaFetcher | None = None,
    ):
        self._verifications = verifications
        self._customers = customers
        self._media = media_fetcher

    def execute(self, payload: dict, now: datetime | None = None) -> WebhookOutcome:
        now = now or datetime.utcnow()
        action = (payload.get("action") or "").lower()

        if action == "started":
            logger.info(f"Verification session {payload.get('id')} started")
            return WebhookOutcome(action=action, session_id=payload.get("id"))

        if action == "submitted":
            return self._submitted(payload.get("id"))

        return self._decision(payload, action or "decision", now)

    # ── submitted ───────────────────────────────────────────────────

    def _submitted(self, session_id: Optional[str]) -> WebhookOutcome:
        outcome = WebhookOutcome(action="submitted", session_id=session_id)
        if not session_id:
            logger.warning("Submitted event without a session id; acknowledged")
            return outcome

        existing = self._verifications.find_latest_by_session(session_id)
        if existing is None:
            # Booking flow: the customer-linked record may not exist yet
            logger.info(f"No verification record for session {session_id} yet; submitted event acknowledged")
            return outcome

        try:
            transition(existing.status, VerificationStatus.PENDING)
        except InvalidTransitionError:
            logger.warning(f"Late submitted event for decided session {session_id}; ignored")
            return outcome

        updated = self._verifications.mark_submitted(session_id)
        outcome.verification_id = existing.id
        logger.info(f"Session {session_id} submitted ({updated} record(s) pending)")
        return outcome

    # ── decision ────────────────────────────────────────────────────

    def _decision(self, payload: dict, action: str, now: datetime) -> WebhookOutcome:
        verification = payload.get("verification")
        if not isinstance(verification, dict) or not verification.get("id"):
            logger.error(f"Decision payload ({action}) is missing verification.id")
            return WebhookOutcome(ok=False, error="Invalid decision payload: missing verification.id", action=action)

        session_id = str(verification["id"])
        result = review_result_for_code(_code(verification.get("code")))
        status = status_for_result(result)
        update = self._build_update(verification, result, status, now)
        outcome = WebhookOutcome(action=action, session_id=session_id)

        existing = self._verifications.find_latest_by_session(session_id)
        if existing is not None:
            try:
                transition(existing.status, status)
            except InvalidTransitionError as e:
                logger.warning(f"Session {session_id}: {e}; event ignored")
                outcome.verification_id = existing.id
                return outcome

        if result in (ReviewResult.GREEN, ReviewResult.RED):
            self._attach_media(session_id, update, now)

        if existing is None:
            created = self._create_record(session_id, payload.get("vendorData"), update)
            outcome.verification_id = created.id
            return outcome

        self._verifications.apply_update(existing.id, update)
        outcome.verification_id = existing.id
        logger.info(
            f"Verification {existing.id} (session {session_id}): "
            f"{status.value}/{result.value if result else 'in progress'}"
        )

        tenant_id = existing.tenant_id
        if not tenant_id and existing.customer_id:
            tenant_id = self._customers.get_tenant_id(existing.customer_id)

        block = self._check_blocklist(update.document_number, tenant_id)

        if existing.customer_id:
            self._customers.update_verification_status(
                existing.customer_id,
                customer_status_for(result, blocked=block is not None),
                license_number=update.document_number,
                blocked_reason=f"Blocked identity: {block.reason}" if block else None,
            )
        else:
            logger.info(f"Verification {existing.id} has no customer yet; customer status not updated")

        if block is not None:
            outcome.events.append(BlockedIdentityDetected(
                tenant_id=tenant_id,
                customer_id=existing.customer_id,
                document_number=update.document_number,
                reason=block.reason,
            ))
        return outcome

    def _build_update(
        self,
        verification: dict,
        result: ReviewResult | None,
        status: VerificationStatus,
        now: datetime,
    ) -> VerificationUpdate:
        document = verification.get("document") or {}
        person = verification.get("person") or {}
        return VerificationUpdate(
            status=status,
            review_status="completed" if status == VerificationStatus.COMPLETED else "pending",
            review_result=result,
            rejection_reason=(verification.get("reason") or DEFAULT_DECLINE_REASON)
            if result == ReviewResult.RED else None,
            document_type=_value(document, "type"),
            document_number=_value(document, "number"),
            document_country=_value(document, "country"),
            document_expiry_date=_value(document, "validUntil"),
            first_name=_value(person, "firstName"),
            last_name=_value(person, "lastName"),
            date_of_birth=_value(person, "dateOfBirth"),
            verification_completed_at=now if result == ReviewResult.GREEN else None,
        )

    def _attach_media(self, session_id: str, update: VerificationUpdate, now: datetime) -> None:
        if self._media is None:
            logger.info(f"Media retrieval not configured; skipping media for session {session_id}")
            return
        try:
            media = self._media.fetch_media(session_id)
        except Exception as e:
            logger.exception(f"Media retrieval for session {session_id} failed: {e}")
            return
        if media is None:
            logger.warning(f"No media retrieved for session {session_id}")
            return
        update.media = media
        update.media_fetched_at = now

    def _create_record(self, session_id: str, vendor_data, update: VerificationUpdate) -> IdentityVerification:
        logger.info(f"No verification record for session {session_id}; creating an unlinked one")
        record = IdentityVerification(
            id="",
            session_id=session_id,
            external_user_id=str(vendor_data) if vendor_data else None,
            status=update.status,
            review_status=update.review_status,
            review_result=update.review_result,
            rejection_reason=update.rejection_reason,
            document_type=update.document_type,
            document_number=update.document_number,
            document_country=update.document_country,
            document_expiry_date=update.document_expiry_date,
            first_name=update.first_name,
            last_name=update.last_name,
            date_of_birth=update.date_of_birth,
            verification_completed_at=update.verification_completed_at,
        )
        if update.media is not None:
            record.media = update.media
            record.media_fetched_at = update.media_fetched_at
        return self._verifications.create(record)

    def _check_blocklist(self, document_number: Optional[str], tenant_id: Optional[str]) -> Optional[BlockedIdentity]:
        if not document_number:
            return None
        if not tenant_id:
            logger.warning("No tenant for verification; skipping blocked identity check")
            return None
        block = self._customers.find_active_block(document_number, tenant_id)
        if block is not None:
            logger.warning(f"BLOCKED IDENTITY DETECTED: document {document_number}, tenant {tenant_id}: {block.reason}")
        return block
