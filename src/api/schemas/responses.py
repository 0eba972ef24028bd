"""
Pydantic schemas - Response models for the API.
"""

from pydantic import BaseModel


class ValidationChecksResponse(BaseModel):
    documentType: str
    policyActive: str
    coverageAdequate: str
    requiredFieldsPresent: str


class VerificationExtractResponse(BaseModel):
    provider: str | None = None
    policyNumber: str | None = None
    policyholderName: str | None = None
    startDate: str | None = None
    endDate: str | None = None
    liabilityLimit: str | None = None
    vehicleInfo: str | None = None


class VerificationResponse(BaseModel):
    status: str                        # approved | rejected | pending_review
    confidence: float
    message: str
    validationChecks: ValidationChecksResponse
    extractedData: VerificationExtractResponse | None = None
    rejectionReason: str | None = None
    suggestion: str | None = None


class ScanData(BaseModel):
    extractedData: dict
    validationScore: float
    confidenceScore: float
    verificationDecision: str          # auto_approved | pending_review | auto_rejected
    fraudRiskScore: float
    requiresManualReview: bool


class ScanResponse(BaseModel):
    success: bool
    data: ScanData | None = None
    error: str | None = None


class WebhookResponse(BaseModel):
    ok: bool
    error: str | None = None
    message: str | None = None


class MediaFetchResponse(BaseModel):
    ok: bool
    message: str | None = None
    urls: dict = {}
    error: str | None = None
