"""
Shared fixtures: a stub LLM in place of Azure OpenAI, prompt/builder/normalizer
instances and a controller factory.
"""
import asyncio
import io
import json
from typing import Any, Dict, List, Optional

import pytest
from docx import Document

from question_validator.models.inputs import UploadedFile
from question_validator.services.file_normalizer import build_normalizer
from question_validator.services.model_client import ModelClient
from question_validator.services.prompt_builder import PromptBuilder
from question_validator.services.validator_controller import ValidatorController
from question_validator.utils.prompt_loader import PromptLoader


class FakeLLM:
    """Stands in for the endpoint: returns queued bodies or raises `error`."""

    deployment = "fake-deployment"

    def __init__(self, responses: Optional[List[Any]] = None, error: Optional[Exception] = None):
        self.responses = list(responses or [])
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[Dict[str, Any]] = []

    async def run_azure_openai(self, *, messages, json_schema, trace_id=None, name=None) -> Dict[str, Any]:
        self.calls.append({"messages": messages, "json_schema": json_schema, "name": name})
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        content = self.responses.pop(0)
        if content is not None and not isinstance(content, str):
            content = json.dumps(content, ensure_ascii=False)
        return {
            "content": content,
            "usage": {"prompt_tokens": 120, "completion_tokens": 80, "total_tokens": 200},
        }


def analysis_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "isHigherOrder": False,
        "bloomLevel": "Remember",
        "score": 2,
        "feedback": "This is a direct recall and single-step calculation question.",
        "improvementSuggestions": [
            "Ask students to compare strong and weak acids at the same concentration.",
            "Require a prediction before calculation and a justification afterwards.",
        ],
        "betterQuestionExample": (
            "Predict and explain how the pH of 0.1 M HCl and 0.1 M CH3COOH differ, "
            "then design a measurement to test your prediction."
        ),
        "analyzedContent": "What is the pH of a 0.1 M HCl solution?",
    }
    payload.update(overrides)
    return payload


def make_docx(paragraphs: List[str], table_rows: Optional[List[List[str]]] = None) -> bytes:
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table_rows:
        table = doc.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for r, row in enumerate(table_rows):
            for c, value in enumerate(row):
                table.cell(r, c).text = value
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def loader() -> PromptLoader:
    return PromptLoader()


@pytest.fixture
def builder(loader) -> PromptBuilder:
    return PromptBuilder(loader)


@pytest.fixture
def normalizer():
    return build_normalizer()


@pytest.fixture
def make_controller(builder, normalizer):
    """Factory: controller wired to a FakeLLM; returns (controller, llm)."""

    def _make(responses=None, error=None, **kwargs):
        llm = FakeLLM(responses=responses, error=error)
        controller = ValidatorController(
            model_client=ModelClient(llm=llm),
            prompt_builder=builder,
            normalizer=normalizer,
            **kwargs,
        )
        return controller, llm

    return _make


@pytest.fixture
def txt_upload() -> UploadedFile:
    return UploadedFile(
        filename="questions.txt",
        content_type="text/plain",
        data="1. Calculate the molar mass of NaCl.\n2. Design an experiment to compare reaction rates.".encode("utf-8"),
    )
