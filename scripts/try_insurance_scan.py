"""Run verification, extraction and scoring on local insurance files against Gemini."""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env"))

from src.config.settings import get_settings
from src.core.exceptions import VerificationPipelineError
from src.infrastructure.documents.fetcher import DocumentFetcher
from src.infrastructure.documents.pypdf_extractor import PyPDFTextExtractor
from src.infrastructure.llm.gemini_client import GeminiModelClient
from src.infrastructure.llm.insurance_analyzer import LLMInsuranceAnalyzer
from src.infrastructure.rules.insurance_rules import InsuranceScoringEngine
from src.infrastructure.storage.local_storage import LocalStorageService

if len(sys.argv) < 2:
    print("usage: python scripts/try_insurance_scan.py <file> [<file> ...]")
    sys.exit(1)

settings = get_settings()
if not settings.model_api_keys:
    print("ERROR: GEMINI_API_KEY not set in .env")
    sys.exit(1)

client = GeminiModelClient(
    api_keys=settings.model_api_keys,
    model_name=settings.gemini_model,
    max_output_tokens=settings.llm_max_output_tokens,
    temperature=settings.llm_temperature,
    models_without_temperature=settings.llm_models_without_temperature,
)
analyzer = LLMInsuranceAnalyzer(client)
engine = InsuranceScoringEngine()
fetcher = DocumentFetcher(
    storage=LocalStorageService(root=settings.storage_local_root, bucket=settings.storage_bucket),
    text_extractor=PyPDFTextExtractor(),
)

print("=" * 70)
print(f"  Insurance Document Scan - {settings.gemini_model}")
print("=" * 70)

for path in sys.argv[1:]:
    file_name = os.path.basename(path)
    print(f"\n{'─'*70}")
    print(f"  {file_name}")
    print(f"{'─'*70}")

    with open(path, "rb") as f:
        content = fetcher.prepare(f.read(), file_name, None, min_text_chars=settings.min_pdf_text_chars)
    print(f"  {content.mime_type} | {content.size_bytes} bytes | pages={content.page_count} | "
          f"text={len(content.text or '')} chars | attached={content.attachment is not None}")

    verdict = analyzer.verify(content)
    print(f"\n  Verification: {verdict.status.value} (confidence {verdict.confidence}, via {verdict.source})")
    print(f"  {verdict.message}")

    try:
        data = analyzer.extract(content)
    except VerificationPipelineError as e:
        print(f"\n  Extraction failed: {e}")
        continue

    assessment = engine.assess(data)
    print(f"\n  Provider: {data.provider} | Policy: {data.policy_number} | Holder: {data.policyholder_name}")
    print(f"  Period: {data.effective_date} → {data.expiration_date}")
    print(f"  Validation={assessment.validation_score} Confidence={assessment.confidence_score} "
          f"Fraud={assessment.fraud.fraud_risk_score}")
    for indicator in assessment.fraud.suspicious_indicators:
        print(f"    ⚠️ {indicator}")
    print(f"  Decision: {assessment.decision.value}"
          f"{' (manual review)' if assessment.requires_manual_review else ''}")

print(f"\n{'='*70}")
