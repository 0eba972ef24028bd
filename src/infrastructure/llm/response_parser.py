"""
Model reply parsing.

Two tiers: extract and map a JSON object, or fall back to a keyword
heuristic over the raw text and filename. Every reply therefore lands in
one of three statuses, even when the model ignores the JSON instruction.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Generic, Optional, TypeVar, Union

from src.core.entities.verification_result import (
    CheckOutcome,
    ModelVerdict,
    ValidationChecks,
    VerificationExtract,
    VerificationOutcome,
    VerificationResult,
    outcome_for_recommendation,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

REJECT_SIGNALS = ("not an insurance", "not a valid", "not valid", "invalid", "unrelated", "reject")
APPROVE_SIGNALS = ("valid insurance", "insurance certificate", "certificate of insurance", "declarations page")
NON_INSURANCE_FILENAME_TOKENS = {"receipt", "photo", "selfie", "screenshot", "cat", "dog", "meme", "test"}

HEURISTIC_REJECT_CONFIDENCE = 0.7
HEURISTIC_APPROVE_CONFIDENCE = 0.75
HEURISTIC_DEFAULT_CONFIDENCE = 0.5
DEFAULT_MODEL_CONFIDENCE = 0.5

UNAVAILABLE_MESSAGE = "Unable to verify document automatically; it has been sent for manual review."
REJECTION_SUGGESTION = "Please upload your insurance certificate, declarations page, or policy document"


# ── Parse result variants ───────────────────────────────────────────

@dataclass(frozen=True)
class StatusGuess:
    status: VerificationOutcome
    confidence: float
    matched_signals: tuple = ()


@dataclass(frozen=True)
class Structured(Generic[T]):
    record: T


@dataclass(frozen=True)
class Heuristic:
    guess: StatusGuess


@dataclass(frozen=True)
class Unparseable:
    reason: str


ParseResult = Union[Structured, Heuristic, Unparseable]


# ── Primary path ────────────────────────────────────────────────────

def extract_json_object(raw: str) -> dict:
    """
    Pull the outermost {...} out of a reply and parse it.

    Raises:
        ValueError: no object found, invalid JSON, or not a JSON object.
    """
    match = _JSON_OBJECT.search(raw or "")
    if not match:
        raise ValueError("No JSON object in model reply")
    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError(f"Expected JSON object, got {type(data).__name__}")
    return data


# ── Fallback path ───────────────────────────────────────────────────

def classify_by_keywords(lowered_text: str, lowered_filename: str) -> StatusGuess:
    """
    Keyword heuristic for replies that are not JSON.

    Reject signals in the text, or a filename word starting with a
    non-insurance token, win. Approve signals only count when no
    reject signal matched.
    """
    text_hits = [s for s in REJECT_SIGNALS if s in lowered_text]
    filename_words = re.findall(r"[a-z]+", lowered_filename)
    name_hits = sorted(
        token for token in NON_INSURANCE_FILENAME_TOKENS
        if any(word.startswith(token) for word in filename_words)
    )

    if text_hits or name_hits:
        return StatusGuess(VerificationOutcome.REJECTED, HEURISTIC_REJECT_CONFIDENCE, tuple(text_hits + name_hits))

    approve_hits = [s for s in APPROVE_SIGNALS if s in lowered_text]
    if approve_hits:
        return StatusGuess(VerificationOutcome.APPROVED, HEURISTIC_APPROVE_CONFIDENCE, tuple(approve_hits))

    return StatusGuess(VerificationOutcome.PENDING_REVIEW, HEURISTIC_DEFAULT_CONFIDENCE)


def parse_model_reply(raw: Optional[str], file_name: str, mapper: Callable[[dict], T]) -> ParseResult:
    """
    Parse a reply into a typed record, falling back to the heuristic.

    Args:
        raw: Model reply text (None when the model was unavailable).
        file_name: Upload filename, used by the heuristic.
        mapper: Turns the JSON object into the caller's record type.
    """
    if raw is None or not raw.strip():
        return Unparseable("empty model reply")

    try:
        payload = extract_json_object(raw)
        return Structured(mapper(payload))
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        logger.warning(f"Model reply is not usable JSON ({e}); falling back to keyword analysis")
        return Heuristic(classify_by_keywords(raw.lower(), (file_name or "").lower()))


# ── Verification verdicts ───────────────────────────────────────────

def verdict_from_payload(payload: dict) -> ModelVerdict:
    """Map the verification prompt's JSON object onto a ModelVerdict."""
    extracted = payload.get("extractedData")
    checks = payload.get("validationResults") or {}
    if not isinstance(checks, dict):
        raise TypeError("validationResults must be an object")

    confidence = payload.get("confidence")
    return ModelVerdict(
        is_insurance_document=payload.get("isInsuranceDocument"),
        confidence=float(confidence) if confidence is not None else None,
        document_type=payload.get("documentType"),
        extracted=_extract_from(extracted) if isinstance(extracted, dict) else None,
        is_document_valid=checks.get("isDocumentValid"),
        is_policy_active=checks.get("isPolicyActive"),
        has_required_fields=checks.get("hasRequiredFields"),
        recommendation=payload.get("recommendation"),
        rejection_reason=payload.get("rejectionReason"),
        message=payload.get("message"),
    )


def _extract_from(data: dict) -> VerificationExtract:
    def value(*keys):
        for key in keys:
            v = data.get(key)
            if v not in (None, "", "null"):
                return str(v)
        return None

    return VerificationExtract(
        provider=value("insurer", "provider"),
        policy_number=value("policyNumber"),
        policyholder_name=value("namedInsured", "policyholderName"),
        start_date=value("effectiveDate", "startDate"),
        end_date=value("expirationDate", "endDate"),
        liability_limit=value("liabilityLimit"),
        vehicle_info=value("vehicleInfo"),
    )


def _tristate(flag) -> CheckOutcome:
    if flag is True:
        return CheckOutcome.PASS
    if flag is False:
        return CheckOutcome.FAIL
    return CheckOutcome.UNKNOWN


def to_verification_result(result: ParseResult) -> VerificationResult:
    """Collapse any parse result onto exactly one of the three statuses."""
    if isinstance(result, Structured):
        verdict: ModelVerdict = result.record
        status = outcome_for_recommendation(verdict.recommendation)
        confidence = verdict.confidence if verdict.confidence else DEFAULT_MODEL_CONFIDENCE
        default_message = {
            VerificationOutcome.APPROVED: "Insurance document verified",
            VerificationOutcome.REJECTED: "This document is not a valid insurance certificate",
            VerificationOutcome.PENDING_REVIEW: "Document requires manual review",
        }[status]
        return VerificationResult(
            status=status,
            confidence=max(0.0, min(1.0, confidence)),
            message=verdict.message or default_message,
            validation_checks=ValidationChecks(
                document_type=CheckOutcome.PASS if verdict.is_insurance_document else CheckOutcome.FAIL,
                policy_active=_tristate(verdict.is_policy_active),
                coverage_adequate=CheckOutcome.PASS if verdict.extracted and verdict.extracted.liability_limit
                else CheckOutcome.UNKNOWN,
                required_fields_present=CheckOutcome.PASS if verdict.has_required_fields else CheckOutcome.FAIL,
            ),
            extracted_data=verdict.extracted,
            rejection_reason=verdict.rejection_reason if status == VerificationOutcome.REJECTED else None,
            suggestion=REJECTION_SUGGESTION if status == VerificationOutcome.REJECTED else None,
            source="model",
        )

    if isinstance(result, Heuristic):
        guess = result.guess
        if guess.status == VerificationOutcome.REJECTED:
            return VerificationResult(
                status=guess.status,
                confidence=guess.confidence,
                message="This document is not a valid insurance certificate",
                validation_checks=ValidationChecks(
                    document_type=CheckOutcome.FAIL,
                    required_fields_present=CheckOutcome.FAIL,
                ),
                rejection_reason="The uploaded document does not appear to be an insurance certificate",
                suggestion=REJECTION_SUGGESTION,
                source="heuristic",
            )
        if guess.status == VerificationOutcome.APPROVED:
            return VerificationResult(
                status=guess.status,
                confidence=guess.confidence,
                message="Insurance document verified",
                validation_checks=ValidationChecks(document_type=CheckOutcome.PASS),
                source="heuristic",
            )
        return VerificationResult(
            status=guess.status,
            confidence=guess.confidence,
            message="Document requires manual review",
            source="heuristic",
        )

    return unavailable_result()


def unavailable_result() -> VerificationResult:
    """Deterministic outcome when the model could not be reached."""
    return VerificationResult(
        status=VerificationOutcome.PENDING_REVIEW,
        confidence=0.0,
        message=UNAVAILABLE_MESSAGE,
        source="unavailable",
    )
