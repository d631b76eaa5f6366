# question_validator/core/dependencies.py
import logging
from typing import Optional

from fastapi import UploadFile

from question_validator.core.config import settings
from question_validator.core.exceptions import InputValidationError
from question_validator.models.inputs import UploadedFile
from question_validator.services.model_client import ModelClient
from question_validator.services.prompt_builder import PromptBuilder
from question_validator.services.validator_controller import ValidatorController
from question_validator.utils.prompt_loader import PromptLoader

logger = logging.getLogger(__name__)

# 전역 컨트롤러 인스턴스 (프로세스 수명 동안 유지)
_controller: Optional[ValidatorController] = None


def build_controller() -> ValidatorController:
    logger.info(f"Building validator controller (prompt version {settings.PROMPT_VERSION})")
    return ValidatorController(
        model_client=ModelClient(),
        prompt_builder=PromptBuilder(PromptLoader(version=settings.PROMPT_VERSION)),
        max_upload_bytes=settings.MAX_UPLOAD_BYTES,
    )


def get_controller() -> ValidatorController:
    """FastAPI dependency returning the process-wide controller."""
    global _controller
    if _controller is None:
        _controller = build_controller()
    return _controller


def reset_controller() -> None:
    global _controller
    _controller = None


async def read_upload(file: UploadFile, max_bytes: Optional[int] = None) -> UploadedFile:
    limit = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
    # Reject before buffering when the multipart parser already knows the size
    if file.size is not None and file.size > limit:
        raise InputValidationError(
            f"File '{file.filename}' is too large ({file.size} bytes, max {limit})",
            details={"filename": file.filename, "size": file.size, "max_bytes": limit},
        )
    data = await file.read()
    return UploadedFile(
        filename=file.filename or "",
        content_type=file.content_type or "",
        data=data,
    )
