"""
Pydantic schemas - Request models for the API.

Required fields are checked by the routes themselves so that a missing
field yields the documented 400 body instead of a validation error.
"""

from pydantic import BaseModel, ConfigDict, Field


class VerifyInsuranceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_id: str | None = Field(None, alias="documentId")
    file_url: str | None = Field(None, alias="fileUrl")
    file_name: str | None = Field(None, alias="fileName")
    mime_type: str | None = Field(None, alias="mimeType")


class ScanInsuranceDocumentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_id: str | None = Field(None, alias="documentId")
    file_url: str | None = Field(None, alias="fileUrl")


class FetchMediaRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    verification_id: str | None = Field(None, alias="verificationId")
    session_id: str | None = Field(None, alias="sessionId")
