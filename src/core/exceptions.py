"""
Domain exceptions for the verification pipeline.
"""


class VerificationPipelineError(Exception):
    """Base exception for pipeline errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class ConfigurationError(VerificationPipelineError):
    """Raised when required credentials or settings are missing."""
    pass


class DocumentNotFoundError(VerificationPipelineError):
    """Raised when a document or verification record does not exist."""
    pass


class InvalidTransitionError(VerificationPipelineError):
    """Raised when a status machine rejects a transition."""
    def __init__(self, current: str, target: str, message: str = None):
        super().__init__(message or f"Invalid status transition: {current} -> {target}")
        self.current = current
        self.target = target


class ScanConflictError(InvalidTransitionError):
    """Raised when a scan is already in flight for the same document."""
    pass


class StorageError(VerificationPipelineError):
    """Raised when the object store cannot read or write a blob."""
    pass


class TextExtractionError(VerificationPipelineError):
    """Raised when PDF text extraction fails."""
    pass


class ModelUnavailableError(VerificationPipelineError):
    """Raised when every model credential failed."""
    pass


class ExtractionParseError(VerificationPipelineError):
    """Raised when the model reply yields no structured record."""
    pass
