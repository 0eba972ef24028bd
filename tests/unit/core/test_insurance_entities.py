"""Unit tests for extracted insurance data and verification results."""

import pytest

from src.core.entities.insurance import ExtractedInsuranceData
from src.core.entities.verification import MediaSet
from src.core.entities.verification_result import (
    VerificationOutcome,
    VerificationResult,
    outcome_for_recommendation,
)


class TestExtractedInsuranceData:

    def test_field_aliases(self):
        data = ExtractedInsuranceData.from_model_payload({
            "insurer": "Acme Insurance",
            "policy_number": "P-77",
            "namedInsured": "Jane Driver",
            "startDate": "2025-01-01",
            "expiryDate": "2026-01-01",
            "liabilityLimit": "$50,000.00",
            "isDocumentValid": "yes",
        })

        assert data.provider == "Acme Insurance"
        assert data.policy_number == "P-77"
        assert data.policyholder_name == "Jane Driver"
        assert data.effective_date == "2025-01-01"
        assert data.expiration_date == "2026-01-01"
        assert data.coverage_limits.liability == 50000.0
        assert data.is_valid is True

    def test_nested_extracted_data_is_flattened(self):
        data = ExtractedInsuranceData.from_model_payload({
            "needsManualReview": True,
            "extractedData": {"provider": "Acme", "policyNumber": "N/A"},
        })

        assert data.provider == "Acme"
        assert data.policy_number is None
        assert data.needs_manual_review is True

    def test_missing_fields_are_absent_not_errors(self):
        data = ExtractedInsuranceData.from_model_payload({"coverageLimits": "unknown", "reviewReasons": "blurry"})

        assert data.provider is None
        assert not data.coverage_limits.any_present()
        assert data.review_reasons == []
        assert data.needs_manual_review is False

    def test_non_object_payload(self):
        with pytest.raises(TypeError):
            ExtractedInsuranceData.from_model_payload(["not", "an", "object"])

    def test_to_dict_uses_camel_case(self):
        blob = ExtractedInsuranceData(policy_number="ABC123").to_dict()

        assert blob["policyNumber"] == "ABC123"
        assert blob["coverageLimits"] == {"liability": None, "collision": None, "comprehensive": None}
        assert blob["suspiciousIndicators"] == []


class TestVerificationResult:

    @pytest.mark.parametrize("recommendation, expected", [
        ("APPROVE", VerificationOutcome.APPROVED),
        ("reject", VerificationOutcome.REJECTED),
        (" MANUAL_REVIEW ", VerificationOutcome.PENDING_REVIEW),
        ("ESCALATE", VerificationOutcome.PENDING_REVIEW),
        (None, VerificationOutcome.PENDING_REVIEW),
    ])
    def test_recommendation_mapping(self, recommendation, expected):
        assert outcome_for_recommendation(recommendation) == expected

    def test_optional_keys_omitted(self):
        result = VerificationResult(status=VerificationOutcome.APPROVED, confidence=0.9, message="ok")

        body = result.to_dict()

        assert body["status"] == "approved"
        assert body["extractedData"] is None
        assert "rejectionReason" not in body
        assert "suggestion" not in body
        assert not result.needs_manual_review


def test_media_set_drops_missing_urls():
    media = MediaSet(document_front_url="https://cdn/front.jpg")

    assert media.to_dict() == {"document_front_url": "https://cdn/front.jpg"}
    assert not media.is_empty
    assert MediaSet().is_empty
