from typing import Optional

from question_validator.client.azure_openai import AzureOpenAILLM
from question_validator.utils.tracer import LLM, ObservedLLM

_llm: Optional[LLM] = None


def build_llm() -> LLM:
    """Process-wide Azure OpenAI transport, wrapped for Langfuse tracing.

    Built on first use so importing the package never needs credentials.
    """
    global _llm
    if _llm is None:
        _llm = ObservedLLM(AzureOpenAILLM(), service="azure-openai")
    return _llm
