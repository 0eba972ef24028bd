"""Unit tests for LLMInsuranceAnalyzer over a fake model client."""

import json

import pytest

from src.core.entities.document import DocumentContent, InlineAttachment
from src.core.entities.verification_result import VerificationOutcome
from src.core.exceptions import ExtractionParseError, ModelUnavailableError
from src.infrastructure.llm.insurance_analyzer import LLMInsuranceAnalyzer


@pytest.fixture
def image_content() -> DocumentContent:
    return DocumentContent(
        file_name="insurance_card.jpg",
        mime_type="image/jpeg",
        attachment=InlineAttachment(mime_type="image/jpeg", data_base64="/9j/"),
    )


class TestVerify:

    def test_unavailable_model_goes_to_review(self, fake_model, image_content):
        result = LLMInsuranceAnalyzer(fake_model).verify(image_content)

        assert result.status == VerificationOutcome.PENDING_REVIEW
        assert result.confidence == 0.0
        assert result.source == "unavailable"

    def test_attachment_and_system_prompt_are_sent(self, fake_model, image_content):
        fake_model.replies.append(json.dumps({"isInsuranceDocument": True, "recommendation": "APPROVE"}))

        result = LLMInsuranceAnalyzer(fake_model).verify(image_content)

        call = fake_model.calls[0]
        assert call["attachment"] is image_content.attachment
        assert "insurance document verification specialist" in call["system_prompt"]
        assert "insurance_card.jpg" in call["prompt"]
        assert result.status == VerificationOutcome.APPROVED

    def test_verify_budget_applies(self, fake_model):
        content = DocumentContent(file_name="p.pdf", mime_type="application/pdf", text="x" * 50)

        LLMInsuranceAnalyzer(fake_model, verify_char_budget=10).verify(content)

        assert "x" * 10 in fake_model.calls[0]["prompt"]
        assert "x" * 11 not in fake_model.calls[0]["prompt"]


class TestExtract:

    def test_structured_reply(self, fake_model, image_content, full_extraction_reply):
        fake_model.replies.append("```json\n" + full_extraction_reply + "\n```")

        data = LLMInsuranceAnalyzer(fake_model).extract(image_content)

        assert data.policy_number == "ABC123"
        assert data.coverage_limits.liability == 100000.0

    def test_unavailable_model(self, fake_model, image_content):
        with pytest.raises(ModelUnavailableError):
            LLMInsuranceAnalyzer(fake_model).extract(image_content)

    def test_prose_reply_is_a_parse_error(self, fake_model, image_content):
        fake_model.replies.append("This appears to be a valid insurance card.")

        with pytest.raises(ExtractionParseError):
            LLMInsuranceAnalyzer(fake_model).extract(image_content)
