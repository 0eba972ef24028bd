"""
Notification Dispatcher - delivers post-commit events.

Runs after the webhook's primary writes have committed. A delivery
failure is retried, then logged; it never changes the webhook outcome.
"""

import logging
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError

from src.core.entities.verification import BlockedIdentityDetected
from src.core.interfaces.repositories import INotificationRepository

logger = logging.getLogger(__name__)

BLOCKED_IDENTITY_TITLE = "Blocked Identity Detected"
BLOCKED_IDENTITY_TYPE = "reminder_critical"


class NotificationDispatcher:
    """Turns outbox events into notification rows for tenant admins."""

    def __init__(self, repository: INotificationRepository, max_attempts: int = 3):
        self._repository = repository
        self._max_attempts = max(1, max_attempts)

    def dispatch(self, events: Iterable[object]) -> int:
        """Deliver every event; returns the number of notification rows written."""
        delivered = 0
        for event in events:
            if isinstance(event, BlockedIdentityDetected):
                delivered += self._blocked_identity(event)
            else:
                logger.warning(f"No handler for event {type(event).__name__}; dropped")
        return delivered

    def _blocked_identity(self, event: BlockedIdentityDetected) -> int:
        admin_ids = self._with_retry(
            lambda: self._repository.list_admin_ids(event.tenant_id),
            f"admin lookup for tenant {event.tenant_id}",
        )
        if not admin_ids:
            logger.warning(f"No admins to notify about blocked identity in tenant {event.tenant_id}")
            return 0

        message = (
            f"A blocked identity was detected during verification. "
            f"Document: {event.document_number}. Reason: {event.reason}"
        )
        metadata = {
            "customer_id": event.customer_id,
            "document_number": event.document_number,
            "block_reason": event.reason,
        }

        delivered = 0
        for admin_id in admin_ids:
            ok = self._with_retry(
                lambda admin_id=admin_id: self._repository.create(
                    user_id=admin_id,
                    title=BLOCKED_IDENTITY_TITLE,
                    message=message,
                    type_=BLOCKED_IDENTITY_TYPE,
                    link=f"/customers/{event.customer_id}",
                    metadata=metadata,
                    tenant_id=event.tenant_id,
                ) or True,
                f"notification for admin {admin_id}",
            )
            if ok:
                delivered += 1
        logger.info(f"Blocked identity {event.document_number}: notified {delivered}/{len(admin_ids)} admin(s)")
        return delivered

    def _with_retry(self, action, description: str):
        for attempt in range(1, self._max_attempts + 1):
            try:
                return action()
            except SQLAlchemyError as e:
                logger.warning(f"{description} failed (attempt {attempt}/{self._max_attempts}): {e}")
        logger.error(f"{description} gave up after {self._max_attempts} attempt(s)")
        return None
