"""
Entity: Document

An uploaded customer document (insurance certificate, ID scan) and its
AI scan lifecycle. Pure model, no framework or database dependency.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from src.core.exceptions import InvalidTransitionError


class ScanStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Normal lifecycle: pending -> processing -> {completed | failed}
_TRANSITIONS: dict[ScanStatus, set[ScanStatus]] = {
    ScanStatus.PENDING: {ScanStatus.PROCESSING},
    ScanStatus.PROCESSING: {ScanStatus.COMPLETED, ScanStatus.FAILED},
    ScanStatus.COMPLETED: set(),
    ScanStatus.FAILED: set(),
}

# A finished scan only re-enters processing through an explicit rescan
_RESCAN_SOURCES = {ScanStatus.COMPLETED, ScanStatus.FAILED}


def allowed_sources(target: ScanStatus, rescan: bool = False) -> set[ScanStatus]:
    """Statuses from which `target` may be entered."""
    sources = {status for status, targets in _TRANSITIONS.items() if target in targets}
    if rescan and target == ScanStatus.PROCESSING:
        sources |= _RESCAN_SOURCES
    return sources


def transition(current: ScanStatus, target: ScanStatus, rescan: bool = False) -> ScanStatus:
    """
    Validate a scan status change.

    Raises:
        InvalidTransitionError: if `target` cannot follow `current`.
    """
    current = ScanStatus(current)
    target = ScanStatus(target)
    if current not in allowed_sources(target, rescan=rescan):
        raise InvalidTransitionError(current.value, target.value)
    return target


@dataclass
class DocumentRecord:
    """Domain entity: an uploaded document and its latest scan."""
    id: str
    customer_id: str | None = None
    tenant_id: str | None = None
    file_name: str = ""
    file_url: str = ""                   # storage path or absolute URL
    mime_type: str = ""
    scan_status: ScanStatus = ScanStatus.PENDING
    extracted_data: dict | None = None
    confidence_score: float | None = None
    validation_score: float | None = None
    scan_errors: list[str] = field(default_factory=list)
    scanned_at: datetime | None = None


@dataclass
class InlineAttachment:
    """Raw file content sent to a multimodal model, base64-encoded."""
    mime_type: str
    data_base64: str


@dataclass
class DocumentContent:
    """Model-ready view of a downloaded document."""
    file_name: str
    mime_type: str
    size_bytes: int = 0
    text: str | None = None
    text_extraction_failed: bool = False
    page_count: int = 0
    attachment: InlineAttachment | None = None

    @property
    def has_usable_text(self) -> bool:
        return bool(self.text and self.text.strip()) and not self.text_extraction_failed
