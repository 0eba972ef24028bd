"""
Prompt builders for insurance document analysis.

Both builders are pure: the same filename, MIME type and text always
produce the same prompt.
"""
import re
from typing import Optional, Tuple

VERIFICATION_SYSTEM_PROMPT = """You are an insurance document verification specialist for a vehicle rental company.
You decide whether an uploaded file is a legitimate insurance document.

IMPORTANT: Respond ONLY with a single JSON object, no markdown, no backticks, no extra text."""

EXTRACTION_SYSTEM_PROMPT = """You are an insurance document data extraction expert.
You read insurance certificates, declarations pages and policy documents and extract their fields exactly as printed.

IMPORTANT: Respond ONLY with a single JSON object, no markdown, no backticks, no extra text."""

PLACEHOLDER_PREFIX = "[PDF TEXT UNAVAILABLE"

_INSURANCE_FILENAME = re.compile(
    r"insurance|policy|certificate|coverage|declaration|auto|car|vehicle|liability",
    re.IGNORECASE,
)


def text_placeholder(file_name: str) -> str:
    """Stand-in content for a PDF whose text could not be extracted."""
    return f"{PLACEHOLDER_PREFIX}: {file_name}]"


def is_placeholder(text: Optional[str]) -> bool:
    return bool(text) and text.startswith(PLACEHOLDER_PREFIX)


def _document_section(file_name: str, mime_type: str, text: Optional[str], char_budget: int) -> str:
    parts = [
        "DOCUMENT INFO:",
        f"- Filename: {file_name}",
        f"- File type: {mime_type}",
    ]
    if text and text.strip() and not is_placeholder(text):
        parts.append("")
        parts.append("=== EXTRACTED DOCUMENT TEXT ===")
        parts.append(text[:char_budget])
        parts.append("=== END OF DOCUMENT TEXT ===")
    else:
        parts.append("")
        parts.append("No text could be extracted. Read the attached document visually.")
    return "\n".join(parts)


def build_verification_prompt(
    file_name: str,
    mime_type: str,
    text: Optional[str] = None,
    char_budget: int = 4000,
) -> Tuple[str, str]:
    """
    Build the (system, user) prompt for the approve/reject/review verdict.

    Args:
        file_name: Original upload filename.
        mime_type: Declared MIME type.
        text: Extracted PDF text, if any.
        char_budget: Maximum characters of text to include.
    """
    parts = [
        "Analyze the following document and decide whether it is a legitimate insurance document.",
        "",
        _document_section(file_name, mime_type, text, char_budget),
    ]

    is_image = (mime_type or "").startswith("image/")
    if is_image and _INSURANCE_FILENAME.search(file_name or ""):
        parts.append("")
        parts.append(
            "Note: the filename suggests an insurance document. If the image content cannot be "
            "read reliably, recommend MANUAL_REVIEW rather than REJECT."
        )

    parts.append("""
=== DECISION POLICY ===
- APPROVE if this is a legitimate insurance document (certificate of insurance, declarations page,
  insurance card or policy), EVEN IF IT IS EXPIRED. Report expiry through isPolicyActive instead.
- REJECT only if this is clearly NOT an insurance document (receipt, random photo, ID card, screenshot).
- MANUAL_REVIEW when it is ambiguous or the content cannot be verified.

=== RESPOND WITH THIS JSON OBJECT ONLY ===
{
  "isInsuranceDocument": true or false,
  "confidence": 0.0 to 1.0,
  "documentType": "Insurance Certificate" or "Declarations Page" or "Insurance Card" or "Not Insurance",
  "extractedData": {
    "policyNumber": "value or null",
    "insurer": "company name or null",
    "namedInsured": "name or null",
    "effectiveDate": "YYYY-MM-DD or null",
    "expirationDate": "YYYY-MM-DD or null",
    "liabilityLimit": "value or null",
    "vehicleInfo": "year make model / VIN or null"
  },
  "validationResults": {
    "isDocumentValid": true or false,
    "isPolicyActive": true or false or null,
    "hasRequiredFields": true or false
  },
  "recommendation": "APPROVE" or "REJECT" or "MANUAL_REVIEW",
  "rejectionReason": "reason if rejected, null otherwise",
  "message": "Brief human-readable summary"
}""")
    return VERIFICATION_SYSTEM_PROMPT, "\n".join(parts)


def build_extraction_prompt(
    file_name: str,
    mime_type: str,
    text: Optional[str] = None,
    char_budget: int = 15000,
) -> Tuple[str, str]:
    """Build the (system, user) prompt for full field extraction."""
    parts = [
        "Extract the insurance details from the following document.",
        "",
        _document_section(file_name, mime_type, text, char_budget),
        """
=== RULES ===
- Use null for any field you cannot read with confidence. Never guess.
- Dates must be YYYY-MM-DD.
- Coverage limits are plain numbers without currency symbols.
- Set needsManualReview to true when the document is partially unreadable or ambiguous,
  and list why in reviewReasons.
- List anything that suggests tampering or alteration in suspiciousIndicators.

=== RESPOND WITH THIS JSON OBJECT ONLY ===
{
  "provider": "insurance company or null",
  "policyNumber": "string or null",
  "policyholderName": "string or null",
  "effectiveDate": "YYYY-MM-DD or null",
  "expirationDate": "YYYY-MM-DD or null",
  "coverageType": "string or null",
  "coverageLimits": {
    "liability": number or null,
    "collision": number or null,
    "comprehensive": number or null
  },
  "isValid": true or false,
  "isExpired": true or false,
  "documentType": "insurance_certificate" or "declarations_page" or "insurance_card" or "policy" or "other",
  "validationNotes": "string describing any issues or confirmations",
  "needsManualReview": true or false,
  "reviewReasons": ["string"],
  "suspiciousIndicators": ["string"]
}""",
    ]
    return EXTRACTION_SYSTEM_PROMPT, "\n".join(parts)
