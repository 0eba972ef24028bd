"""
Database Models - SQLAlchemy.

Tables:
  - customer_documents: uploaded files and their AI scan fields
  - identity_verifications: vendor KYC sessions
  - customers: verification status and block flag
  - blocked_identities: tenant-scoped blocklist (read-only here)
  - app_users: operators (admins receive blocklist notifications)
  - notifications: in-app notifications
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Float, Boolean, DateTime, Text, JSON, Index,
)
from sqlalchemy.orm import DeclarativeBase


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class CustomerDocument(Base):
    """An uploaded customer document and its latest AI scan."""
    __tablename__ = "customer_documents"

    id = Column(String(36), primary_key=True, default=_uuid)
    customer_id = Column(String(36), index=True)
    tenant_id = Column(String(36), index=True)
    document_type = Column(String(50), default="insurance")
    file_name = Column(String(255), default="")
    file_url = Column(Text, default="")
    mime_type = Column(String(100), default="")
    created_at = Column(DateTime, default=datetime.utcnow)

    # AI scan
    ai_scan_status = Column(String(20), default="pending", nullable=False, index=True)
    ai_extracted_data = Column(JSON, nullable=True)
    ai_confidence_score = Column(Float, nullable=True)
    ai_validation_score = Column(Float, nullable=True)
    ai_scan_errors = Column(JSON, default=list)
    scanned_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<CustomerDocument {self.id} [{self.ai_scan_status}]>"


class IdentityVerificationRecord(Base):
    """One vendor verification session."""
    __tablename__ = "identity_verifications"

    id = Column(String(36), primary_key=True, default=_uuid)
    provider = Column(String(30), default="veriff")
    session_id = Column(String(100), nullable=False, index=True)
    customer_id = Column(String(36), nullable=True, index=True)
    tenant_id = Column(String(36), nullable=True, index=True)
    external_user_id = Column(String(255), nullable=True)

    status = Column(String(20), default="pending", nullable=False)
    review_status = Column(String(20), default="pending")
    review_result = Column(String(10), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Document
    document_type = Column(String(50), nullable=True)
    document_number = Column(String(100), nullable=True)
    document_country = Column(String(10), nullable=True)
    document_expiry_date = Column(String(20), nullable=True)

    # Person
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    date_of_birth = Column(String(20), nullable=True)

    # Media
    document_front_url = Column(Text, nullable=True)
    document_back_url = Column(Text, nullable=True)
    face_image_url = Column(Text, nullable=True)
    media_fetched_at = Column(DateTime, nullable=True)

    verification_completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<IdentityVerification {self.session_id} [{self.status}/{self.review_result}]>"


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), index=True)
    name = Column(String(255), default="")
    email = Column(String(255), default="")
    identity_verification_status = Column(String(20), default="pending")
    license_number = Column(String(100), nullable=True)
    is_blocked = Column(Boolean, default=False)
    blocked_at = Column(DateTime, nullable=True)
    blocked_reason = Column(Text, nullable=True)


class BlockedIdentityRecord(Base):
    __tablename__ = "blocked_identities"

    id = Column(String(36), primary_key=True, default=_uuid)
    identity_number = Column(String(100), nullable=False)
    identity_type = Column(String(50), nullable=True)
    reason = Column(Text, default="")
    is_active = Column(Boolean, default=True)
    tenant_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_blocked_identities_lookup", "tenant_id", "identity_number"),
    )


class AppUser(Base):
    __tablename__ = "app_users"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), index=True)
    email = Column(String(255), default="")
    role = Column(String(30), default="staff")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    tenant_id = Column(String(36), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, default="")
    type = Column(String(50), default="info")
    link = Column(String(255), nullable=True)
    metadata_ = Column("metadata", JSON, default=dict)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
