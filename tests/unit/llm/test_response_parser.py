"""Unit tests for model reply parsing."""

import json

import pytest

from src.core.entities.verification_result import CheckOutcome, VerificationOutcome
from src.infrastructure.llm.response_parser import (
    Heuristic,
    Structured,
    Unparseable,
    classify_by_keywords,
    extract_json_object,
    parse_model_reply,
    to_verification_result,
    unavailable_result,
    verdict_from_payload,
)


@pytest.fixture
def approve_reply() -> str:
    """Verification reply for a valid certificate.

    Returns:
        str: JSON reply wrapped in prose
    """
    payload = {
        "isInsuranceDocument": True,
        "confidence": 0.92,
        "documentType": "Insurance Certificate",
        "extractedData": {
            "policyNumber": "ABC123",
            "insurer": "Acme Insurance",
            "namedInsured": "Jane Driver",
            "effectiveDate": "2025-01-01",
            "expirationDate": "2026-01-01",
            "liabilityLimit": "100000",
            "vehicleInfo": None,
        },
        "validationResults": {"isDocumentValid": True, "isPolicyActive": True, "hasRequiredFields": True},
        "recommendation": "APPROVE",
        "rejectionReason": None,
        "message": "Valid auto insurance certificate",
    }
    return "Here is my analysis:\n" + json.dumps(payload) + "\nLet me know if you need more."


def _parse(raw, file_name="insurance.pdf"):
    return to_verification_result(parse_model_reply(raw, file_name, verdict_from_payload))


class TestExtractJsonObject:

    def test_object_surrounded_by_prose(self):
        assert extract_json_object('Sure! {"a": 1, "b": {"c": 2}} Done.') == {"a": 1, "b": {"c": 2}}

    def test_no_object_raises(self):
        with pytest.raises(ValueError):
            extract_json_object("no braces here")

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError):
            extract_json_object("{not: json}")


class TestKeywordHeuristic:
    """Fallback classification for non-JSON replies."""

    def test_reject_signal_in_text(self):
        guess = classify_by_keywords("this is not an insurance document", "upload.pdf")

        assert guess.status == VerificationOutcome.REJECTED
        assert guess.confidence == 0.7

    def test_non_insurance_filename(self):
        guess = classify_by_keywords("some text", "receipt_march.jpg")

        assert guess.status == VerificationOutcome.REJECTED
        assert "receipt" in guess.matched_signals

    def test_filename_signal_must_start_a_word(self):
        """'cat' must not match inside 'certificate'.

        Args: none
        """
        guess = classify_by_keywords("some text", "certificate.pdf")

        assert guess.status == VerificationOutcome.PENDING_REVIEW
        assert guess.confidence == 0.5

    @pytest.mark.parametrize("file_name, signal", [
        ("receipt2024.png", "receipt"),
        ("selfies-holiday.jpg", "selfie"),
        ("img_photo01.jpeg", "photo"),
        ("screenshots.png", "screenshot"),
    ])
    def test_filename_word_prefix(self, file_name, signal):
        guess = classify_by_keywords("some text", file_name)

        assert guess.status == VerificationOutcome.REJECTED
        assert guess.matched_signals == (signal,)

    def test_approve_signal(self):
        guess = classify_by_keywords("this looks like a valid insurance card", "scan.pdf")

        assert guess.status == VerificationOutcome.APPROVED
        assert guess.confidence == 0.75

    def test_reject_signal_wins_over_approve(self):
        guess = classify_by_keywords("valid insurance layout but invalid dates", "scan.pdf")

        assert guess.status == VerificationOutcome.REJECTED


class TestParseModelReply:

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_reply_is_unparseable(self, raw):
        assert isinstance(parse_model_reply(raw, "a.pdf", verdict_from_payload), Unparseable)

    def test_prose_reply_falls_back_to_heuristic(self):
        result = parse_model_reply("This is a certificate of insurance.", "a.pdf", verdict_from_payload)

        assert isinstance(result, Heuristic)
        assert result.guess.status == VerificationOutcome.APPROVED

    def test_wrong_shape_falls_back_to_heuristic(self):
        result = parse_model_reply('{"validationResults": "yes"}', "a.pdf", verdict_from_payload)

        assert isinstance(result, Heuristic)

    def test_json_reply_is_structured(self, approve_reply):
        result = parse_model_reply(approve_reply, "a.pdf", verdict_from_payload)

        assert isinstance(result, Structured)
        assert result.record.recommendation == "APPROVE"
        assert result.record.extracted.provider == "Acme Insurance"


class TestToVerificationResult:
    """Every parse result maps onto exactly one status."""

    def test_approved_certificate(self, approve_reply):
        """A structured APPROVE reply.

        Args:
            approve_reply: model reply fixture
        """
        result = _parse(approve_reply)

        assert result.status == VerificationOutcome.APPROVED
        assert result.confidence == 0.92
        assert result.extracted_data.policy_number == "ABC123"
        assert result.validation_checks.document_type == CheckOutcome.PASS
        assert result.validation_checks.coverage_adequate == CheckOutcome.PASS
        assert result.rejection_reason is None
        assert result.source == "model"

    def test_insurance_document_without_approve_goes_to_review(self):
        reply = json.dumps({"isInsuranceDocument": True, "confidence": 0.8, "recommendation": "MANUAL_REVIEW"})

        assert _parse(reply).status == VerificationOutcome.PENDING_REVIEW

    def test_unknown_recommendation_goes_to_review(self):
        reply = json.dumps({"isInsuranceDocument": True, "recommendation": "MAYBE"})

        result = _parse(reply)

        assert result.status == VerificationOutcome.PENDING_REVIEW
        assert result.confidence == 0.5

    def test_rejection_carries_reason_and_suggestion(self):
        reply = json.dumps({
            "isInsuranceDocument": False,
            "confidence": 0.95,
            "recommendation": "REJECT",
            "rejectionReason": "This is a restaurant receipt",
        })

        result = _parse(reply)

        assert result.status == VerificationOutcome.REJECTED
        assert result.rejection_reason == "This is a restaurant receipt"
        assert result.suggestion
        assert result.to_dict()["rejectionReason"] == "This is a restaurant receipt"

    def test_heuristic_rejection(self):
        result = _parse("I cannot help, this is a selfie", file_name="selfie.jpg")

        assert result.status == VerificationOutcome.REJECTED
        assert result.source == "heuristic"
        assert result.validation_checks.document_type == CheckOutcome.FAIL

    def test_unavailable_result(self):
        result = unavailable_result()

        assert result.status == VerificationOutcome.PENDING_REVIEW
        assert result.confidence == 0.0
        assert "manual review" in result.message.lower()
        assert "rejectionReason" not in result.to_dict()
        assert _parse(None) == result
