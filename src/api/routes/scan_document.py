"""
Route: POST /scan-insurance-document - extraction, scoring and decision.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from src.api.dependencies import get_scan_use_case
from src.api.schemas.requests import ScanInsuranceDocumentRequest
from src.api.schemas.responses import ScanResponse
from src.core.exceptions import DocumentNotFoundError, ScanConflictError, VerificationPipelineError
from src.core.use_cases.scan_insurance_document import ScanInsuranceDocumentUseCase

logger = logging.getLogger(__name__)

router = APIRouter()


def _failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


@router.post("/scan-insurance-document", response_model=ScanResponse)
async def scan_insurance_document(
    request: Request,
    use_case: ScanInsuranceDocumentUseCase | None = Depends(get_scan_use_case),
):
    """
    Scan a stored insurance document.

    Body: documentId, optional fileUrl (defaults to the document's stored path).
    """
    if use_case is None:
        logger.error("No model API key configured (GEMINI_API_KEY / GEMINI_FALLBACK_API_KEY)")
        return _failure(500, "Model API key not configured")

    try:
        body = ScanInsuranceDocumentRequest.model_validate(await request.json())
    except ValueError:
        return _failure(400, "Request body must be a JSON object")
    if not body.document_id:
        return _failure(400, "Missing required field: documentId")

    logger.info(f"Starting AI scan for document {body.document_id}")
    try:
        result = await run_in_threadpool(use_case.execute, body.document_id, body.file_url)
    except DocumentNotFoundError as e:
        return _failure(404, str(e))
    except ScanConflictError as e:
        return _failure(409, str(e))
    except VerificationPipelineError as e:
        return _failure(500, str(e))
    except Exception as e:
        logger.exception(f"AI scan failed for document {body.document_id}: {e}")
        return _failure(500, "AI scanning failed")

    return {"success": True, "data": result.to_dict()}
