# question_validator/core/exceptions.py
from fastapi import Request, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

class ValidatorException(Exception):
    """Base exception for question validation errors"""
    status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

class UnsupportedTypeError(ValidatorException):
    """File extension / MIME type the normalizer cannot handle"""
    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE

    def __init__(self, extension: str, message: Optional[str] = None):
        self.extension = extension
        super().__init__(
            message or f"Unsupported file type: .{extension}. Please upload .docx, .pdf, .txt, or images.",
            details={"extension": extension},
        )

class ExtractionError(ValidatorException):
    """Document text extraction failed"""
    pass

class InputValidationError(ValidatorException):
    """Input rejected before any processing (empty text, oversized upload)"""
    pass

class ModelUnavailableError(ValidatorException):
    """Transport or endpoint failure talking to the model"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

class EmptyResponseError(ValidatorException):
    """Model returned an empty body"""
    pass

class SchemaViolationError(ValidatorException):
    """Model response is not JSON or does not match the declared schema"""
    pass

class BusyError(ValidatorException):
    """Another model-backed operation is already in flight"""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, operation: Optional[str]):
        super().__init__(
            "Another operation is already in progress. Please wait for it to finish.",
            details={"in_flight": operation},
        )

# Exception handlers
async def validator_exception_handler(request: Request, exc: ValidatorException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__}: {exc.message}", extra={"details": exc.details})
    else:
        logger.warning(f"{exc.__class__.__name__}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "type": exc.__class__.__name__,
            "details": exc.details,
        },
    )
