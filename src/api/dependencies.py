"""
Dependency wiring - builds use cases from concrete adapters.

Lazy singletons, created on first request from get_settings(). Routes
receive them through FastAPI Depends so tests can swap any of them via
app.dependency_overrides.
"""

import logging

from src.config.settings import get_settings
from src.core.interfaces.media_fetcher import IMediaFetcher
from src.core.interfaces.model_client import IModelClient
from src.core.interfaces.storage_service import IStorageService
from src.core.use_cases.fetch_verification_media import FetchVerificationMediaUseCase
from src.core.use_cases.handle_verification_webhook import HandleVerificationWebhookUseCase
from src.core.use_cases.scan_insurance_document import ScanInsuranceDocumentUseCase
from src.core.use_cases.verify_insurance import VerifyInsuranceUseCase
from src.infrastructure.db.repository import (
    CustomerRepository,
    DocumentRepository,
    NotificationRepository,
    VerificationRepository,
)
from src.infrastructure.documents.fetcher import DocumentFetcher
from src.infrastructure.documents.pypdf_extractor import PyPDFTextExtractor
from src.infrastructure.llm.gemini_client import GeminiModelClient
from src.infrastructure.llm.insurance_analyzer import LLMInsuranceAnalyzer
from src.infrastructure.notifications.dispatcher import NotificationDispatcher
from src.infrastructure.rules.insurance_rules import InsuranceScoringEngine
from src.infrastructure.storage.local_storage import LocalStorageService
from src.infrastructure.storage.s3_storage import S3StorageService
from src.infrastructure.veriff.media_client import VeriffMediaClient

logger = logging.getLogger(__name__)

# Lazy singletons
_storage = None
_model_client = None
_media_fetcher = None


def reset_dependencies():
    """Forget every singleton (settings changes, tests)."""
    global _storage, _model_client, _media_fetcher
    _storage = None
    _model_client = None
    _media_fetcher = None


def get_storage() -> IStorageService:
    global _storage
    if _storage is None:
        settings = get_settings()
        if settings.storage_backend == "s3":
            _storage = S3StorageService(
                bucket=settings.storage_bucket,
                endpoint_url=settings.s3_endpoint_url or None,
                access_key=settings.s3_access_key or None,
                secret_key=settings.s3_secret_key or None,
                region=settings.s3_region,
            )
        else:
            _storage = LocalStorageService(
                root=settings.storage_local_root,
                bucket=settings.storage_bucket,
                public_base_url=settings.storage_public_base_url,
            )
        logger.info(f"Storage backend: {settings.storage_backend} (bucket {settings.storage_bucket})")
    return _storage


def get_model_client() -> IModelClient | None:
    """Gemini client over every configured key, or None when no key is set."""
    global _model_client
    settings = get_settings()
    if not settings.model_api_keys:
        return None
    if _model_client is None:
        _model_client = GeminiModelClient(
            api_keys=settings.model_api_keys,
            model_name=settings.gemini_model,
            max_output_tokens=settings.llm_max_output_tokens,
            temperature=settings.llm_temperature,
            models_without_temperature=settings.llm_models_without_temperature,
        )
    return _model_client


def get_media_fetcher() -> IMediaFetcher | None:
    """Veriff media client, or None when vendor credentials are missing."""
    global _media_fetcher
    settings = get_settings()
    if not (settings.veriff_api_key and settings.veriff_api_secret):
        return None
    if _media_fetcher is None:
        _media_fetcher = VeriffMediaClient(
            api_key=settings.veriff_api_key,
            api_secret=settings.veriff_api_secret,
            storage=get_storage(),
            base_url=settings.veriff_base_url,
            timeout_seconds=settings.http_timeout_seconds,
        )
    return _media_fetcher


def _document_loader() -> DocumentFetcher:
    return DocumentFetcher(
        storage=get_storage(),
        text_extractor=PyPDFTextExtractor(),
    )


def _analyzer(model_client: IModelClient) -> LLMInsuranceAnalyzer:
    settings = get_settings()
    return LLMInsuranceAnalyzer(
        model_client,
        verify_char_budget=settings.verify_text_char_budget,
        scan_char_budget=settings.scan_text_char_budget,
    )


# ── Use case providers (None = model credentials missing) ──

def get_verify_insurance_use_case() -> VerifyInsuranceUseCase | None:
    model_client = get_model_client()
    if model_client is None:
        return None
    return VerifyInsuranceUseCase(
        analyzer=_analyzer(model_client),
        loader=_document_loader(),
        documents=DocumentRepository(),
        min_pdf_text_chars=get_settings().min_pdf_text_chars,
    )


def get_scan_use_case() -> ScanInsuranceDocumentUseCase | None:
    model_client = get_model_client()
    if model_client is None:
        return None
    return ScanInsuranceDocumentUseCase(
        analyzer=_analyzer(model_client),
        loader=_document_loader(),
        scoring=InsuranceScoringEngine(),
        documents=DocumentRepository(),
        min_pdf_text_chars=get_settings().min_pdf_text_chars,
    )


def get_webhook_use_case() -> HandleVerificationWebhookUseCase:
    return HandleVerificationWebhookUseCase(
        verifications=VerificationRepository(),
        customers=CustomerRepository(),
        media_fetcher=get_media_fetcher(),
    )


def get_fetch_media_use_case() -> FetchVerificationMediaUseCase:
    return FetchVerificationMediaUseCase(
        verifications=VerificationRepository(),
        media_fetcher=get_media_fetcher(),
    )


def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(
        NotificationRepository(),
        max_attempts=get_settings().notification_max_attempts,
    )


def get_webhook_secret() -> str:
    return get_settings().veriff_webhook_secret
