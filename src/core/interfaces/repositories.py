"""
Contract: Repositories

Persistence ports for the pipeline. The relational store behind them is
an external collaborator; the use cases only see these methods.
"""

from abc import ABC, abstractmethod

from src.core.entities.document import DocumentRecord
from src.core.entities.verification import (
    BlockedIdentity,
    CustomerVerificationStatus,
    IdentityVerification,
    MediaSet,
    VerificationUpdate,
)


class IDocumentRepository(ABC):
    """Port: document scan fields."""

    @abstractmethod
    def get(self, document_id: str) -> DocumentRecord | None:
        ...

    @abstractmethod
    def begin_scan(self, document_id: str, rescan: bool = True) -> DocumentRecord:
        """
        Move a document into `processing`.

        Raises:
            DocumentNotFoundError: unknown document id.
            ScanConflictError: a scan is already in flight.
            InvalidTransitionError: the current status forbids a scan.
        """
        ...

    @abstractmethod
    def complete_scan(
        self,
        document_id: str,
        extracted_data: dict,
        confidence_score: float | None = None,
        validation_score: float | None = None,
        scan_errors: list[str] | None = None,
    ) -> None:
        """processing -> completed with the extracted-data blob and scores."""
        ...

    @abstractmethod
    def fail_scan(self, document_id: str, scan_errors: list[str], extracted_data: dict | None = None) -> None:
        """processing -> failed with the error array."""
        ...


class IVerificationRepository(ABC):
    """Port: identity verification records."""

    @abstractmethod
    def get(self, verification_id: str) -> IdentityVerification | None:
        ...

    @abstractmethod
    def find_latest_by_session(self, session_id: str) -> IdentityVerification | None:
        ...

    @abstractmethod
    def create(self, record: IdentityVerification) -> IdentityVerification:
        ...

    @abstractmethod
    def apply_update(self, verification_id: str, update: VerificationUpdate) -> None:
        ...

    @abstractmethod
    def mark_submitted(self, session_id: str) -> int:
        """Move a session's records to pending; returns how many matched."""
        ...

    @abstractmethod
    def store_media(self, verification_id: str, media: MediaSet) -> None:
        """Merge media URLs and stamp media_fetched_at."""
        ...


class ICustomerRepository(ABC):
    """Port: customer verification status and tenant blocklist."""

    @abstractmethod
    def get_tenant_id(self, customer_id: str) -> str | None:
        ...

    @abstractmethod
    def find_active_block(self, identity_number: str, tenant_id: str) -> BlockedIdentity | None:
        ...

    @abstractmethod
    def update_verification_status(
        self,
        customer_id: str,
        status: CustomerVerificationStatus,
        license_number: str | None = None,
        blocked_reason: str | None = None,
    ) -> None:
        """Set the status; a blocked_reason also flags the customer as blocked."""
        ...


class INotificationRepository(ABC):
    """Port: admin notification rows."""

    @abstractmethod
    def list_admin_ids(self, tenant_id: str | None) -> list[str]:
        ...

    @abstractmethod
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
        ...
