"""
Repositories - SQLAlchemy implementations of the persistence ports.

Handles:
  - Document scan status (conditional updates guarded by the status machine)
  - Identity verification records
  - Customer status and tenant blocklist lookups
  - Admin notifications

Every method opens its own session through get_db(); a method either
commits entirely or rolls back.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import desc, update

from src.core.entities.document import DocumentRecord, ScanStatus, allowed_sources, transition
from src.core.entities.verification import (
    BlockedIdentity,
    CustomerVerificationStatus,
    IdentityVerification,
    MediaSet,
    ReviewResult,
    VerificationStatus,
    VerificationUpdate,
)
from src.core.exceptions import DocumentNotFoundError, InvalidTransitionError, ScanConflictError
from src.core.interfaces.repositories import (
    ICustomerRepository,
    IDocumentRepository,
    INotificationRepository,
    IVerificationRepository,
)
from src.infrastructure.db.database import get_db
from src.infrastructure.db.models import (
    AppUser,
    BlockedIdentityRecord,
    Customer,
    CustomerDocument,
    IdentityVerificationRecord,
    Notification,
)

logger = logging.getLogger(__name__)

ADMIN_ROLES = ("admin", "head_admin")


# ── Documents ────────────────────────────────────────────────────────

def _to_document(row: CustomerDocument) -> DocumentRecord:
    return DocumentRecord(
        id=row.id,
        customer_id=row.customer_id,
        tenant_id=row.tenant_id,
        file_name=row.file_name or "",
        file_url=row.file_url or "",
        mime_type=row.mime_type or "",
        scan_status=ScanStatus(row.ai_scan_status),
        extracted_data=row.ai_extracted_data,
        confidence_score=row.ai_confidence_score,
        validation_score=row.ai_validation_score,
        scan_errors=list(row.ai_scan_errors or []),
        scanned_at=row.scanned_at,
    )


class DocumentRepository(IDocumentRepository):
    """Scan fields on customer_documents."""

    def get(self, document_id: str) -> Optional[DocumentRecord]:
        with get_db() as db:
            row = db.get(CustomerDocument, document_id)
            return _to_document(row) if row else None

    def begin_scan(self, document_id: str, rescan: bool = True) -> DocumentRecord:
        with get_db() as db:
            row = db.get(CustomerDocument, document_id)
            if row is None:
                raise DocumentNotFoundError(f"Document {document_id} not found")

            current = ScanStatus(row.ai_scan_status)
            if current == ScanStatus.PROCESSING:
                raise ScanConflictError(current.value, ScanStatus.PROCESSING.value,
                                        f"Document {document_id} is already being scanned")
            transition(current, ScanStatus.PROCESSING, rescan=rescan)

            sources = [s.value for s in allowed_sources(ScanStatus.PROCESSING, rescan=rescan)]
            result = db.execute(
                update(CustomerDocument)
                .where(CustomerDocument.id == document_id, CustomerDocument.ai_scan_status.in_(sources))
                .values(ai_scan_status=ScanStatus.PROCESSING.value, ai_scan_errors=[])
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                # Another scan moved the row between our read and the update
                raise ScanConflictError(current.value, ScanStatus.PROCESSING.value,
                                        f"Document {document_id} is already being scanned")

            record = _to_document(row)
            record.scan_status = ScanStatus.PROCESSING
            record.scan_errors = []
            logger.info(f"Document {document_id}: {current.value} -> processing")
            return record

    def _finish(self, document_id: str, target: ScanStatus, values: dict) -> None:
        with get_db() as db:
            result = db.execute(
                update(CustomerDocument)
                .where(
                    CustomerDocument.id == document_id,
                    CustomerDocument.ai_scan_status.in_([s.value for s in allowed_sources(target)]),
                )
                .values(ai_scan_status=target.value, scanned_at=datetime.utcnow(), **values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                row = db.get(CustomerDocument, document_id)
                if row is None:
                    raise DocumentNotFoundError(f"Document {document_id} not found")
                raise InvalidTransitionError(row.ai_scan_status, target.value)
        logger.info(f"Document {document_id}: processing -> {target.value}")

    def complete_scan(
        self,
        document_id: str,
        extracted_data: dict,
        confidence_score: float | None = None,
        validation_score: float | None = None,
        scan_errors: list[str] | None = None,
    ) -> None:
        self._finish(document_id, ScanStatus.COMPLETED, {
            "ai_extracted_data": extracted_data,
            "ai_confidence_score": confidence_score,
            "ai_validation_score": validation_score,
            "ai_scan_errors": list(scan_errors or []),
        })

    def fail_scan(self, document_id: str, scan_errors: list[str], extracted_data: dict | None = None) -> None:
        values = {"ai_scan_errors": list(scan_errors)}
        if extracted_data is not None:
            values["ai_extracted_data"] = extracted_data
        self._finish(document_id, ScanStatus.FAILED, values)


# ── Identity verifications ──────────────────────────────────────────

def _to_verification(row: IdentityVerificationRecord) -> IdentityVerification:
    return IdentityVerification(
        id=row.id,
        session_id=row.session_id,
        provider=row.provider or "veriff",
        customer_id=row.customer_id,
        tenant_id=row.tenant_id,
        external_user_id=row.external_user_id,
        status=VerificationStatus(row.status),
        review_status=row.review_status or "pending",
        review_result=ReviewResult(row.review_result) if row.review_result else None,
        rejection_reason=row.rejection_reason,
        document_type=row.document_type,
        document_number=row.document_number,
        document_country=row.document_country,
        document_expiry_date=row.document_expiry_date,
        first_name=row.first_name,
        last_name=row.last_name,
        date_of_birth=row.date_of_birth,
        media=MediaSet(
            document_front_url=row.document_front_url,
            document_back_url=row.document_back_url,
            face_image_url=row.face_image_url,
        ),
        media_fetched_at=row.media_fetched_at,
        verification_completed_at=row.verification_completed_at,
    )


_OPTIONAL_FIELDS = (
    "review_result", "rejection_reason",
    "document_type", "document_number", "document_country", "document_expiry_date",
    "first_name", "last_name", "date_of_birth",
    "media_fetched_at", "verification_completed_at",
)


class VerificationRepository(IVerificationRepository):
    """identity_verifications table."""

    def get(self, verification_id: str) -> Optional[IdentityVerification]:
        with get_db() as db:
            row = db.get(IdentityVerificationRecord, verification_id)
            return _to_verification(row) if row else None

    def find_latest_by_session(self, session_id: str) -> Optional[IdentityVerification]:
        with get_db() as db:
            row = (
                db.query(IdentityVerificationRecord)
                .filter_by(session_id=session_id)
                .order_by(desc(IdentityVerificationRecord.created_at))
                .first()
            )
            return _to_verification(row) if row else None

    def create(self, record: IdentityVerification) -> IdentityVerification:
        with get_db() as db:
            row = IdentityVerificationRecord(
                provider=record.provider,
                session_id=record.session_id,
                customer_id=record.customer_id,
                tenant_id=record.tenant_id,
                external_user_id=record.external_user_id,
                status=record.status.value,
                review_status=record.review_status,
                review_result=record.review_result.value if record.review_result else None,
                rejection_reason=record.rejection_reason,
                document_type=record.document_type,
                document_number=record.document_number,
                document_country=record.document_country,
                document_expiry_date=record.document_expiry_date,
                first_name=record.first_name,
                last_name=record.last_name,
                date_of_birth=record.date_of_birth,
                document_front_url=record.media.document_front_url,
                document_back_url=record.media.document_back_url,
                face_image_url=record.media.face_image_url,
                media_fetched_at=record.media_fetched_at,
                verification_completed_at=record.verification_completed_at,
            )
            if record.id:
                row.id = record.id
            db.add(row)
            db.flush()
            logger.info(f"Created verification {row.id} for session {row.session_id} [{row.status}]")
            return _to_verification(row)

    def apply_update(self, verification_id: str, update_: VerificationUpdate) -> None:
        with get_db() as db:
            row = db.get(IdentityVerificationRecord, verification_id)
            if row is None:
                raise DocumentNotFoundError(f"Verification {verification_id} not found")

            row.status = update_.status.value
            row.review_status = update_.review_status
            for name in _OPTIONAL_FIELDS:
                value = getattr(update_, name)
                if value is not None:
                    setattr(row, name, value.value if isinstance(value, ReviewResult) else value)
            if update_.media is not None:
                for name, url in update_.media.to_dict().items():
                    setattr(row, name, url)
            row.updated_at = datetime.utcnow()

    def mark_submitted(self, session_id: str) -> int:
        """Refresh pending records of a session; decided records are left alone."""
        with get_db() as db:
            result = db.execute(
                update(IdentityVerificationRecord)
                .where(
                    IdentityVerificationRecord.session_id == session_id,
                    IdentityVerificationRecord.status == VerificationStatus.PENDING.value,
                )
                .values(status=VerificationStatus.PENDING.value, review_status="pending",
                        updated_at=datetime.utcnow())
                .execution_options(synchronize_session=False)
            )
            return result.rowcount

    def store_media(self, verification_id: str, media: MediaSet) -> None:
        with get_db() as db:
            row = db.get(IdentityVerificationRecord, verification_id)
            if row is None:
                raise DocumentNotFoundError(f"Verification {verification_id} not found")
            for name, url in media.to_dict().items():
                setattr(row, name, url)
            row.media_fetched_at = datetime.utcnow()
            row.updated_at = datetime.utcnow()


# ── Customers & blocklist ───────────────────────────────────────────

class CustomerRepository(ICustomerRepository):

    def get_tenant_id(self, customer_id: str) -> Optional[str]:
        with get_db() as db:
            row = db.get(Customer, customer_id)
            return row.tenant_id if row else None

    def find_active_block(self, identity_number: str, tenant_id: str) -> Optional[BlockedIdentity]:
        with get_db() as db:
            row = (
                db.query(BlockedIdentityRecord)
                .filter_by(identity_number=identity_number, tenant_id=tenant_id, is_active=True)
                .first()
            )
            if row is None:
                return None
            return BlockedIdentity(
                identity_number=row.identity_number,
                identity_type=row.identity_type,
                reason=row.reason or "",
                is_active=row.is_active,
                tenant_id=row.tenant_id,
            )

    def update_verification_status(
        self,
        customer_id: str,
        status: CustomerVerificationStatus,
        license_number: str | None = None,
        blocked_reason: str | None = None,
    ) -> None:
        with get_db() as db:
            row = db.get(Customer, customer_id)
            if row is None:
                logger.warning(f"Customer {customer_id} not found; verification status not updated")
                return
            row.identity_verification_status = status.value
            row.license_number = license_number
            if blocked_reason is not None:
                row.is_blocked = True
                row.blocked_at = datetime.utcnow()
                row.blocked_reason = blocked_reason


# ── Notifications ───────────────────────────────────────────────────

class NotificationRepository(INotificationRepository):

    def list_admin_ids(self, tenant_id: str | None) -> list[str]:
        with get_db() as db:
            query = db.query(AppUser.id).filter(AppUser.role.in_(ADMIN_ROLES))
            if tenant_id:
                query = query.filter(AppUser.tenant_id == tenant_id)
            return [user_id for (user_id,) in query.all()]

    def create(
        self,
        user_id: str,
        title: str,
        message: str,
        type_: str,
        link: str | None = None,
        metadata: dict | None = None,
        tenant_id: str | None = None,
    ) -> None:
        with get_db() as db:
            db.add(Notification(
                user_id=user_id,
                tenant_id=tenant_id,
                title=title,
                message=message,
                type=type_,
                link=link,
                metadata_=metadata or {},
            ))
