# question_validator/utils/tracer.py
from typing import Any, Dict, Optional, List, Protocol, runtime_checkable
import logging

from langfuse import Langfuse

from question_validator.core.config import settings

logger = logging.getLogger(__name__)

public_key = settings.LANGFUSE_PUBLIC_KEY
secret_key = settings.LANGFUSE_SECRET_KEY
host = settings.LANGFUSE_HOST

LANGFUSE_AVAILABLE = bool(public_key and secret_key)

lf = None

if LANGFUSE_AVAILABLE:
    try:
        lf = Langfuse(public_key=public_key, secret_key=secret_key, host=host, release="v1.0.0")
        logger.info(f"Langfuse initialized. Host: {host}")
    except Exception as e:
        logger.warning(f"Langfuse initialization failed: {e}. Tracing disabled.")
        LANGFUSE_AVAILABLE = False
else:
    logger.info("Langfuse credentials not set. Tracing disabled.")

@runtime_checkable
class LLM(Protocol):
    deployment: Optional[str]
    async def run_azure_openai(
        self, *, messages: List[Dict[str, Any]],
        json_schema: Dict[str, Any],
        trace_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Dict[str, Any]: ...

class ObservedLLM:
    """Records each call as a Langfuse generation when tracing is configured."""

    def __init__(self, inner: LLM, service: str = "azure-openai"):
        self.inner = inner
        self.service = service

    @property
    def deployment(self) -> Optional[str]:
        return getattr(self.inner, "deployment", None)

    async def run_azure_openai(
        self,
        *,
        messages: List[Dict[str, Any]],
        json_schema: Dict[str, Any],
        trace_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not (LANGFUSE_AVAILABLE and lf):
            return await self.inner.run_azure_openai(
                messages=messages,
                json_schema=json_schema,
                trace_id=trace_id,
                name=name,
            )

        # UI 에서 "Name: llm.analyze" 등으로 필터
        model_name = self.deployment or "azure-openai"
        with lf.start_as_current_generation(name=f"llm.{name or 'generate'}", model=model_name) as gen:
            md = {"service": self.service, "operation": name}
            gen.update(input={"messages": _redact_media(messages), "json_schema": json_schema}, metadata=md)

            try:
                result = await self.inner.run_azure_openai(
                    messages=messages,
                    json_schema=json_schema,
                    trace_id=trace_id,
                    name=name,
                )
                usage_info = result.get("usage", {})
                gen.update(
                    output=result.get("content"),
                    usage_details={
                        "input": usage_info.get("prompt_tokens", 0),
                        "output": usage_info.get("completion_tokens", 0),
                        "total": usage_info.get("total_tokens", 0),
                    },
                )
                return result
            except Exception as e:
                gen.update(level="ERROR", status_message=str(e))
                raise
            finally:
                try:
                    lf.flush()
                except Exception as e:
                    logger.debug(f"Langfuse flush failed: {e}")


def _redact_media(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Replace inline base64 payloads so traces don't carry whole files."""
    redacted: List[Dict[str, Any]] = []
    for message in messages:
        content = message.get("content")
        if isinstance(content, list):
            parts = []
            for part in content:
                if part.get("type") == "image_url":
                    parts.append({"type": "image_url", "image_url": {"url": "<inline image>"}})
                elif part.get("type") == "file":
                    parts.append({"type": "file", "file": {"filename": part["file"].get("filename"), "file_data": "<inline file>"}})
                else:
                    parts.append(part)
            redacted.append({**message, "content": parts})
        else:
            redacted.append(message)
    return redacted
