import asyncio, json
import logging
from typing import Any, Dict, List, Optional

import openai
from openai import AzureOpenAI

from question_validator.core.config import settings
from question_validator.core.exceptions import ModelUnavailableError
from question_validator.utils.tracer import LLM

logger = logging.getLogger(__name__)


class AzureOpenAILLM(LLM):
    """Minimal chat-completions wrapper with a strict JSON schema response format."""

    def __init__(self, client: Optional[AzureOpenAI] = None, temperature: Optional[float] = None):
        self.client = client or AzureOpenAI(
            api_key=settings.AZURE_OPENAI_API_KEY,
            api_version=settings.AZURE_OPENAI_API_VERSION,
            azure_endpoint=settings.AZURE_OPENAI_ENDPOINT,
            max_retries=0,
        )
        self.deployment = settings.AZURE_OPENAI_DEPLOYMENT
        self.temperature = settings.MODEL_TEMPERATURE if temperature is None else temperature

    def _ensure_strict_json_schema(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        """Copy of ``schema`` with additionalProperties=false on every object node.

        Strict json_schema mode rejects object schemas that leave it unset.
        """
        patched = json.loads(json.dumps(schema))  # deep copy
        pending = [patched]
        while pending:
            node = pending.pop()
            if node.get("type") == "object":
                node.setdefault("additionalProperties", False)
                pending.extend((node.get("properties") or {}).values())
            if isinstance(node.get("items"), dict):
                pending.append(node["items"])
        return patched

    async def run_azure_openai(
        self,
        *,
        messages: List[Dict[str, Any]],
        json_schema: Dict[str, Any],
        trace_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Dict[str, Any]:

        def _invoke_sync() -> Dict[str, Any]:
            strict_schema = self._ensure_strict_json_schema(json_schema)
            strict_schema.pop("title", None)

            resp = self.client.chat.completions.create(
                model=self.deployment,
                messages=messages,
                temperature=self.temperature,
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": json_schema.get("title", name or "QuestionSchema"),
                        "schema": strict_schema,
                        "strict": True,
                    },
                },
            )

            content = resp.choices[0].message.content if resp.choices else None
            return {
                "content": content,
                "usage": {
                    "prompt_tokens": resp.usage.prompt_tokens if resp.usage else 0,
                    "completion_tokens": resp.usage.completion_tokens if resp.usage else 0,
                    "total_tokens": resp.usage.total_tokens if resp.usage else 0,
                },
            }

        try:
            return await asyncio.to_thread(_invoke_sync)
        except openai.OpenAIError as exc:
            logger.error(f"Azure OpenAI call failed ({name or 'unnamed'}): {exc}")
            raise ModelUnavailableError(
                "Failed to reach the model endpoint. Please try again.",
                details={"cause": type(exc).__name__},
            ) from exc
