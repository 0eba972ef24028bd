"""Pytest configuration and shared fixtures."""

import json
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from src.api import dependencies
from src.api.main import app
from src.core.interfaces.model_client import IModelClient
from src.core.use_cases.scan_insurance_document import ScanInsuranceDocumentUseCase
from src.core.use_cases.verify_insurance import VerifyInsuranceUseCase
from src.infrastructure.db.database import configure_database, get_db, init_db
from src.infrastructure.db.models import CustomerDocument
from src.infrastructure.db.repository import DocumentRepository
from src.infrastructure.documents.fetcher import DocumentFetcher
from src.infrastructure.documents.pypdf_extractor import PyPDFTextExtractor
from src.infrastructure.llm.insurance_analyzer import LLMInsuranceAnalyzer
from src.infrastructure.rules.insurance_rules import InsuranceScoringEngine
from src.infrastructure.storage.local_storage import LocalStorageService

# Minimal JPEG header; content is never decoded
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


class FakeModelClient(IModelClient):
    """Model client returning queued replies; an exhausted queue behaves like an outage."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []

    @property
    def model_name(self) -> str:
        return "fake-model"

    def complete(self, prompt, system_prompt=None, attachment=None):
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt, "attachment": attachment})
        if not self.replies:
            return None
        return self.replies.pop(0)


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides and lazy singletons are reset between tests."""
    app.dependency_overrides = {}
    dependencies.reset_dependencies()
    yield
    app.dependency_overrides = {}
    dependencies.reset_dependencies()


@pytest.fixture
def database(tmp_path):
    """Fresh SQLite database per test."""
    configure_database(f"sqlite:///{tmp_path / 'test.db'}")
    init_db()
    yield
    configure_database(f"sqlite:///{tmp_path / 'disposed.db'}")


@pytest.fixture
def storage(tmp_path) -> LocalStorageService:
    """Local object store under the test's temp directory."""
    return LocalStorageService(
        root=str(tmp_path / "storage"),
        bucket="customer-documents",
        public_base_url="http://testserver/files",
    )


@pytest.fixture
def fake_model() -> FakeModelClient:
    return FakeModelClient()


@pytest.fixture
def seed_document(database, storage):
    """Factory: store a file and insert its customer_documents row.

    Returns:
        Callable returning the new document id.
    """
    def _seed(
        data: bytes = JPEG_BYTES,
        file_name: str = "insurance_card.jpg",
        mime_type: str = "image/jpeg",
        scan_status: str = "pending",
        customer_id: str = "cust-1",
        tenant_id: str = "tenant-1",
    ) -> str:
        key = f"{customer_id}/{file_name}"
        storage.upload(data, key, content_type=mime_type)
        with get_db() as db:
            row = CustomerDocument(
                customer_id=customer_id,
                tenant_id=tenant_id,
                file_name=file_name,
                file_url=key,
                mime_type=mime_type,
                ai_scan_status=scan_status,
            )
            db.add(row)
            db.flush()
            return row.id

    return _seed


@pytest.fixture
def wired_app(database, storage, fake_model):
    """Route use cases built from real adapters around the fake model."""
    def _loader():
        return DocumentFetcher(storage=storage, text_extractor=PyPDFTextExtractor())

    app.dependency_overrides[dependencies.get_verify_insurance_use_case] = lambda: VerifyInsuranceUseCase(
        analyzer=LLMInsuranceAnalyzer(fake_model),
        loader=_loader(),
        documents=DocumentRepository(),
    )
    app.dependency_overrides[dependencies.get_scan_use_case] = lambda: ScanInsuranceDocumentUseCase(
        analyzer=LLMInsuranceAnalyzer(fake_model),
        loader=_loader(),
        scoring=InsuranceScoringEngine(),
        documents=DocumentRepository(),
    )
    return fake_model


@pytest.fixture
def full_extraction_reply() -> str:
    """Extraction reply for a complete, currently active policy."""
    today = date.today()
    return json.dumps({
        "provider": "Acme Insurance",
        "policyNumber": "ABC123",
        "policyholderName": "Jane Driver",
        "effectiveDate": (today - timedelta(days=30)).isoformat(),
        "expirationDate": (today + timedelta(days=335)).isoformat(),
        "coverageType": "Auto Liability",
        "coverageLimits": {"liability": 100000, "collision": None, "comprehensive": None},
        "isValid": True,
        "isExpired": False,
        "documentType": "insurance_certificate",
        "validationNotes": "All required fields present",
        "needsManualReview": False,
        "reviewReasons": [],
        "suspiciousIndicators": [],
    })
