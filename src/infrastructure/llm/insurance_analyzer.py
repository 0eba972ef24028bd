"""
LLM Insurance Analyzer - model-backed verification and extraction.

Builds the prompt for a prepared document, sends it (with the inline
image/PDF when there is one) through the model client, and parses the
reply into typed results.
"""
import logging
import time

from src.core.entities.document import DocumentContent
from src.core.entities.insurance import ExtractedInsuranceData
from src.core.entities.verification_result import VerificationResult
from src.core.exceptions import ExtractionParseError, ModelUnavailableError
from src.core.interfaces.insurance_analyzer import IInsuranceAnalyzer
from src.core.interfaces.model_client import IModelClient
from src.infrastructure.llm.prompts import build_extraction_prompt, build_verification_prompt
from src.infrastructure.llm.response_parser import (
    Structured,
    Unparseable,
    parse_model_reply,
    to_verification_result,
    unavailable_result,
    verdict_from_payload,
)

logger = logging.getLogger(__name__)


class LLMInsuranceAnalyzer(IInsuranceAnalyzer):
    """Insurance document analysis on top of any IModelClient."""

    def __init__(
        self,
        model_client: IModelClient,
        verify_char_budget: int = 4000,
        scan_char_budget: int = 15000,
    ):
        self._model = model_client
        self._verify_char_budget = verify_char_budget
        self._scan_char_budget = scan_char_budget

    def verify(self, content: DocumentContent) -> VerificationResult:
        t0 = time.perf_counter()
        system_prompt, prompt = build_verification_prompt(
            content.file_name,
            content.mime_type,
            content.text,
            char_budget=self._verify_char_budget,
        )

        raw = self._model.complete(prompt, system_prompt=system_prompt, attachment=content.attachment)
        if raw is None:
            logger.warning(f"{content.file_name}: model unavailable, sending to manual review")
            return unavailable_result()

        parsed = parse_model_reply(raw, content.file_name, verdict_from_payload)
        result = to_verification_result(parsed)
        latency = (time.perf_counter() - t0) * 1000
        logger.info(
            f"{content.file_name}: {result.status.value} "
            f"(confidence={result.confidence}, source={result.source}, {latency:.0f} ms)"
        )
        return result

    def extract(self, content: DocumentContent) -> ExtractedInsuranceData:
        system_prompt, prompt = build_extraction_prompt(
            content.file_name,
            content.mime_type,
            content.text,
            char_budget=self._scan_char_budget,
        )

        raw = self._model.complete(prompt, system_prompt=system_prompt, attachment=content.attachment)
        if raw is None:
            raise ModelUnavailableError(f"Model {self._model.model_name} unavailable with every configured credential")

        parsed = parse_model_reply(raw, content.file_name, ExtractedInsuranceData.from_model_payload)
        if isinstance(parsed, Structured):
            return parsed.record
        if isinstance(parsed, Unparseable):
            raise ExtractionParseError(f"Model reply unusable: {parsed.reason}")
        # A heuristic status guess carries no fields to score
        raise ExtractionParseError("Model reply is not a usable JSON object")
