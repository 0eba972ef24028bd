"""Integration tests for the Veriff webhook and media endpoints."""

import json
from unittest.mock import Mock

import httpx
import pytest

from src.api import dependencies
from src.api.main import app
from src.core.entities.verification import IdentityVerification, MediaSet
from src.core.interfaces.media_fetcher import IMediaFetcher
from src.core.use_cases.fetch_verification_media import FetchVerificationMediaUseCase
from src.core.use_cases.handle_verification_webhook import HandleVerificationWebhookUseCase
from src.infrastructure.db.database import get_db
from src.infrastructure.db.models import AppUser, BlockedIdentityRecord, Customer, Notification
from src.infrastructure.db.repository import CustomerRepository, VerificationRepository
from src.infrastructure.notifications.dispatcher import NotificationDispatcher
from src.infrastructure.veriff.media_client import VeriffMediaClient
from src.infrastructure.veriff.signatures import sign

WEBHOOK_SECRET = "whsec-test"


@pytest.fixture
def media_fetcher() -> Mock:
    fetcher = Mock(spec=IMediaFetcher)
    fetcher.fetch_media.return_value = MediaSet(
        document_front_url="http://testserver/files/customer-documents/veriff/sess-1/document-front.jpg",
        face_image_url="http://testserver/files/customer-documents/veriff/sess-1/face.jpg",
    )
    return fetcher


@pytest.fixture
def veriff_app(database, media_fetcher):
    """Webhook routes over SQLite with a fake media fetcher and a signing secret."""
    app.dependency_overrides[dependencies.get_webhook_use_case] = lambda: HandleVerificationWebhookUseCase(
        VerificationRepository(), CustomerRepository(), media_fetcher,
    )
    app.dependency_overrides[dependencies.get_fetch_media_use_case] = lambda: FetchVerificationMediaUseCase(
        VerificationRepository(), media_fetcher,
    )
    app.dependency_overrides[dependencies.get_webhook_secret] = lambda: WEBHOOK_SECRET
    return media_fetcher


@pytest.fixture
def customer_id(database) -> str:
    """Tenant with one customer, two admins and a staff user.

    Returns:
        str: customer id
    """
    with get_db() as db:
        customer = Customer(tenant_id="tenant-1", name="Jane Driver", email="jane@example.com")
        db.add(customer)
        db.add_all([
            AppUser(id="admin-1", tenant_id="tenant-1", role="admin"),
            AppUser(id="admin-2", tenant_id="tenant-1", role="head_admin"),
            AppUser(id="staff-1", tenant_id="tenant-1", role="staff"),
            AppUser(id="admin-other", tenant_id="tenant-2", role="admin"),
        ])
        db.flush()
        return customer.id


@pytest.fixture
def verification(customer_id) -> IdentityVerification:
    return VerificationRepository().create(IdentityVerification(
        id="", session_id="sess-1", customer_id=customer_id, tenant_id="tenant-1",
    ))


def _decision(code=9001, number="D1234567") -> dict:
    return {
        "status": "success",
        "verification": {
            "id": "sess-1",
            "code": code,
            "status": "approved" if code == 9001 else "declined",
            "document": {"type": "DRIVERS_LICENSE", "number": number, "country": "US", "validUntil": "2030-01-01"},
            "person": {"firstName": "Jane", "lastName": "Driver", "dateOfBirth": "1990-04-05"},
        },
    }


def _post(client, payload, secret=WEBHOOK_SECRET, header="X-HMAC-SIGNATURE"):
    body = json.dumps(payload).encode("utf-8")
    headers = {"Content-Type": "application/json"}
    if secret:
        headers[header] = sign(body, secret)
    return client.post("/api/webhooks/veriff", content=body, headers=headers)


def _customer(customer_id) -> Customer:
    with get_db() as db:
        return db.get(Customer, customer_id)


class TestVeriffWebhook:
    """POST /api/webhooks/veriff"""

    def test_probe(self, test_client):
        response = test_client.get("/api/webhooks/veriff")

        assert response.status_code == 200
        assert response.json()["ok"] is True

    def test_approval_verifies_customer(self, test_client, veriff_app, verification, customer_id):
        """GREEN decision completes the record, stores media and verifies the customer.

        Args:
            test_client: FastAPI test client
            veriff_app: wired routes
            verification: pending record
            customer_id: linked customer
        """
        response = _post(test_client, _decision())

        assert response.status_code == 200
        assert response.json()["ok"] is True
        record = VerificationRepository().get(verification.id)
        assert record.status.value == "completed"
        assert record.review_result.value == "GREEN"
        assert record.document_number == "D1234567"
        assert record.verification_completed_at is not None
        assert record.media.face_image_url.endswith("/veriff/sess-1/face.jpg")
        customer = _customer(customer_id)
        assert customer.identity_verification_status == "verified"
        assert customer.license_number == "D1234567"
        assert not customer.is_blocked

    def test_blocked_identity(self, test_client, veriff_app, verification, customer_id):
        """A blocklisted document rejects and blocks the customer and notifies each admin.

        Args:
            test_client: FastAPI test client
            veriff_app: wired routes
            verification: pending record
            customer_id: linked customer
        """
        with get_db() as db:
            db.add(BlockedIdentityRecord(identity_number="D1234567", reason="Fraudulent rental", tenant_id="tenant-1"))

        response = _post(test_client, _decision(code=9001))

        assert response.status_code == 200
        customer = _customer(customer_id)
        assert customer.identity_verification_status == "rejected"
        assert customer.is_blocked
        assert customer.blocked_reason == "Blocked identity: Fraudulent rental"
        with get_db() as db:
            notifications = db.query(Notification).all()
            assert sorted(n.user_id for n in notifications) == ["admin-1", "admin-2"]
            assert all(n.type == "reminder_critical" for n in notifications)
            assert all(n.link == f"/customers/{customer_id}" for n in notifications)

    def test_block_in_other_tenant_is_ignored(self, test_client, veriff_app, verification, customer_id):
        with get_db() as db:
            db.add(BlockedIdentityRecord(identity_number="D1234567", reason="Elsewhere", tenant_id="tenant-2"))

        _post(test_client, _decision())

        assert _customer(customer_id).identity_verification_status == "verified"
        with get_db() as db:
            assert db.query(Notification).count() == 0

    @pytest.mark.parametrize("listing", [
        {"images": [{"context": "document-front", "url": "http://[::1/v1/media/m-front"}]},
        {"images": {"context": "face"}},
        {"images": ["face"]},
    ])
    def test_broken_media_listing_keeps_decision(
        self, test_client, veriff_app, verification, customer_id, storage, listing,
    ):
        def veriff_api(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=listing)

        media_client = VeriffMediaClient(
            api_key="veriff-key",
            api_secret="veriff-secret",
            storage=storage,
            http_client=httpx.Client(transport=httpx.MockTransport(veriff_api)),
        )
        app.dependency_overrides[dependencies.get_webhook_use_case] = lambda: HandleVerificationWebhookUseCase(
            VerificationRepository(), CustomerRepository(), media_client,
        )

        response = _post(test_client, _decision())

        assert response.status_code == 200
        assert response.json()["ok"] is True
        record = VerificationRepository().get(verification.id)
        assert record.status.value == "completed"
        assert record.review_result.value == "GREEN"
        assert record.media.face_image_url is None
        assert _customer(customer_id).identity_verification_status == "verified"

    def test_notification_failure_still_acknowledged(self, test_client, veriff_app, verification, customer_id):
        with get_db() as db:
            db.add(BlockedIdentityRecord(identity_number="D1234567", reason="Fraudulent rental", tenant_id="tenant-1"))
        dispatcher = Mock(spec=NotificationDispatcher)
        dispatcher.dispatch.side_effect = RuntimeError("notification service down")
        app.dependency_overrides[dependencies.get_notification_dispatcher] = lambda: dispatcher

        response = _post(test_client, _decision())

        assert response.status_code == 200
        assert response.json()["ok"] is True
        dispatcher.dispatch.assert_called_once()
        assert _customer(customer_id).is_blocked

    def test_invalid_signature_changes_nothing(self, test_client, veriff_app, verification, customer_id):
        response = _post(test_client, _decision(), secret="wrong-secret")

        assert response.status_code == 401
        assert response.json() == {"ok": False, "error": "Invalid signature"}
        assert VerificationRepository().get(verification.id).status.value == "pending"
        assert _customer(customer_id).identity_verification_status == "pending"
        veriff_app.fetch_media.assert_not_called()

    def test_missing_signature(self, test_client, veriff_app, verification):
        response = _post(test_client, _decision(), secret=None)

        assert response.status_code == 401

    def test_alternate_signature_header(self, test_client, veriff_app, verification):
        response = _post(test_client, _decision(), header="X-Signature")

        assert response.status_code == 200

    def test_no_secret_configured_skips_check(self, test_client, veriff_app, verification):
        app.dependency_overrides[dependencies.get_webhook_secret] = lambda: ""

        response = _post(test_client, _decision(), secret=None)

        assert response.status_code == 200

    def test_started_event(self, test_client, veriff_app):
        response = _post(test_client, {"id": "sess-9", "action": "started", "code": 7001})

        assert response.status_code == 200
        assert VerificationRepository().find_latest_by_session("sess-9") is None

    def test_submitted_without_record(self, test_client, veriff_app):
        response = _post(test_client, {"id": "sess-9", "action": "submitted", "code": 7002})

        assert response.status_code == 200
        assert response.json()["ok"] is True

    def test_late_submitted_after_decision(self, test_client, veriff_app, verification):
        _post(test_client, _decision())

        response = _post(test_client, {"id": "sess-1", "action": "submitted"})

        assert response.status_code == 200
        assert VerificationRepository().get(verification.id).status.value == "completed"

    def test_decision_without_record_creates_one(self, test_client, veriff_app):
        payload = _decision(code=9102)
        payload["verification"]["id"] = "sess-new"
        payload["vendorData"] = "booking-42"

        response = _post(test_client, payload)

        assert response.status_code == 200
        record = VerificationRepository().find_latest_by_session("sess-new")
        assert record.customer_id is None
        assert record.external_user_id == "booking-42"
        assert record.review_result.value == "RED"
        assert record.rejection_reason == "Verification declined"

    def test_decline_rejects_customer(self, test_client, veriff_app, verification, customer_id):
        _post(test_client, _decision(code=9102))

        assert _customer(customer_id).identity_verification_status == "rejected"
        assert not _customer(customer_id).is_blocked

    def test_decision_without_session_id(self, test_client, veriff_app):
        response = _post(test_client, {"status": "success", "verification": {"code": 9001}})

        assert response.status_code == 400
        assert response.json()["ok"] is False

    def test_empty_body(self, test_client, veriff_app):
        response = test_client.post("/api/webhooks/veriff", content=b"")

        assert response.status_code == 400

    def test_malformed_json(self, test_client, veriff_app):
        body = b"{not json"
        response = test_client.post(
            "/api/webhooks/veriff", content=body, headers={"X-HMAC-SIGNATURE": sign(body, WEBHOOK_SECRET)},
        )

        assert response.status_code == 400


class TestFetchVeriffMedia:
    """POST /api/fetch-veriff-media"""

    def test_fetch_by_session(self, test_client, veriff_app, verification):
        response = test_client.post("/api/fetch-veriff-media", json={"sessionId": "sess-1"})

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["message"] == "Fetched 2 images"
        assert set(body["urls"]) == {"document_front_url", "face_image_url"}
        record = VerificationRepository().get(verification.id)
        assert record.media.document_front_url == body["urls"]["document_front_url"]
        assert record.media_fetched_at is not None

    def test_fetch_by_verification_id(self, test_client, veriff_app, verification):
        response = test_client.post("/api/fetch-veriff-media", json={"verificationId": verification.id})

        assert response.status_code == 200
        veriff_app.fetch_media.assert_called_once_with("sess-1")

    def test_missing_identifier(self, test_client, veriff_app):
        response = test_client.post("/api/fetch-veriff-media", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "verificationId or sessionId required"

    def test_unknown_verification(self, test_client, veriff_app):
        response = test_client.post("/api/fetch-veriff-media", json={"verificationId": "missing"})

        assert response.status_code == 404

    def test_listing_failure(self, test_client, veriff_app, verification):
        veriff_app.fetch_media.return_value = None

        response = test_client.post("/api/fetch-veriff-media", json={"sessionId": "sess-1"})

        assert response.status_code == 400
        assert response.json()["ok"] is False

    def test_credentials_not_configured(self, test_client, database):
        app.dependency_overrides[dependencies.get_fetch_media_use_case] = lambda: FetchVerificationMediaUseCase(
            VerificationRepository(), None,
        )

        response = test_client.post("/api/fetch-veriff-media", json={"sessionId": "sess-1"})

        assert response.status_code == 500
        assert response.json()["error"] == "Veriff API credentials not configured"
