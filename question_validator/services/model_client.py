import json
import logging
import time
from typing import Any, Optional

from question_validator.client.bootstrap import build_llm
from question_validator.core.exceptions import (
    EmptyResponseError,
    ModelUnavailableError,
    SchemaViolationError,
    ValidatorException,
)
from question_validator.models.prompt import ModelRequest
from question_validator.utils.tracer import LLM

logger = logging.getLogger(__name__)


class ModelClient:
    """Runs exactly one schema-constrained model call per request.

    Every failure is terminal for the request: nothing is retried or cached.
    """

    def __init__(self, llm: Optional[LLM] = None) -> None:
        self.llm = llm or build_llm()

    async def complete(self, request: ModelRequest) -> Any:
        operation = request.operation.value
        start_time = time.time()
        try:
            response = await self.llm.run_azure_openai(
                messages=request.to_messages(),
                json_schema=request.output_schema.to_json_schema(),
                name=operation,
            )
        except ValidatorException:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Model call for {operation} failed: {exc}")
            raise ModelUnavailableError(
                "Failed to reach the model endpoint. Please try again.",
                details={"operation": operation, "cause": type(exc).__name__},
            ) from exc

        logger.info(f"LLM execution time for {operation}: {time.time() - start_time:.3f} seconds")
        token_usage = response.get("usage") or {}
        if token_usage:
            logger.info(
                f"Token usage for {operation} - Prompt: {token_usage.get('prompt_tokens', 0)}, "
                f"Completion: {token_usage.get('completion_tokens', 0)}, "
                f"Total: {token_usage.get('total_tokens', 0)}"
            )

        content = response.get("content")
        if content is None or (isinstance(content, str) and not content.strip()):
            logger.warning(f"Empty content received from LLM for {operation}")
            raise EmptyResponseError("No response from AI", details={"operation": operation})

        # 구조화된 응답은 보통 문자열 JSON으로 옴
        if isinstance(content, str):
            try:
                content = json.loads(content)
            except json.JSONDecodeError as exc:
                logger.error(f"Failed to parse JSON response for {operation}: {exc}")
                raise SchemaViolationError(
                    "Model response is not valid JSON",
                    details={"operation": operation, "error": str(exc)},
                ) from exc

        return request.output_schema.validate_payload(content)
