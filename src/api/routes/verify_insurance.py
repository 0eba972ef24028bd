"""
Route: POST /verify-insurance - AI verification of an uploaded insurance document.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from src.api.dependencies import get_verify_insurance_use_case
from src.api.schemas.requests import VerifyInsuranceRequest
from src.api.schemas.responses import VerificationResponse
from src.core.exceptions import DocumentNotFoundError, ScanConflictError
from src.core.use_cases.verify_insurance import VerifyInsuranceUseCase

logger = logging.getLogger(__name__)

router = APIRouter()

PENDING_REVIEW = "pending_review"


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "status": PENDING_REVIEW},
    )


@router.post("/verify-insurance", responses={200: {"model": VerificationResponse}})
async def verify_insurance(
    request: Request,
    use_case: VerifyInsuranceUseCase | None = Depends(get_verify_insurance_use_case),
):
    """
    Verify an uploaded insurance document.

    Body: documentId, fileUrl (storage path or URL), fileName, mimeType.
    Returns status approved / rejected / pending_review with confidence,
    validation checks and the key extracted fields.
    """
    if use_case is None:
        logger.error("No model API key configured (GEMINI_API_KEY / GEMINI_FALLBACK_API_KEY)")
        return _error(500, "API configuration error", "Model API key not configured")

    try:
        body = VerifyInsuranceRequest.model_validate(await request.json())
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Request body must be a JSON object"})

    if not body.document_id or not body.file_url:
        logger.warning("verify-insurance called without documentId/fileUrl")
        return JSONResponse(status_code=400, content={"error": "Missing required fields: documentId and fileUrl"})

    logger.info(f"Verifying document {body.document_id} ({body.file_name}, {body.mime_type})")
    try:
        result = await run_in_threadpool(
            use_case.execute,
            body.document_id,
            body.file_url,
            body.file_name,
            body.mime_type,
        )
    except DocumentNotFoundError as e:
        return _error(404, "Document not found", str(e))
    except ScanConflictError as e:
        return _error(409, "Verification already in progress", str(e))
    except Exception as e:
        logger.exception(f"Verification failed for document {body.document_id}: {e}")
        return _error(500, "Verification failed", "The document has been sent for manual review")

    return JSONResponse(content=result.to_dict())
