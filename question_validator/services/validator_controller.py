from __future__ import annotations

import itertools
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence, Union

from pydantic import ValidationError

from question_validator.core.exceptions import (
    BusyError,
    InputValidationError,
    SchemaViolationError,
    ValidatorException,
)
from question_validator.models.inputs import NormalizedInput, PlainText, UploadedFile
from question_validator.models.prompt import Operation
from question_validator.models.response import (
    AnalysisResult,
    BatchImportResponse,
    ControllerStatus,
    RubricImportResponse,
)
from question_validator.models.rubric import (
    DEFAULT_EXAMPLES,
    DEFAULT_RUBRIC,
    ClassifiedQuestion,
    Example,
    ExampleDraft,
    ExampleType,
    Rubric,
)
from question_validator.services.file_normalizer import FileNormalizer, build_normalizer, check_upload
from question_validator.services.model_client import ModelClient
from question_validator.services.prompt_builder import PromptBuilder

logger = logging.getLogger(__name__)

QuestionSource = Union[str, UploadedFile]


class ValidatorController:
    """Single owner of rubric, examples and the last analysis.

    Flow per model-backed action:
      check/normalize input → build prompt → one model call → commit state

    All model-backed actions share one Idle/Busy gate; a call made while
    another is in flight is rejected with BusyError, never queued.
    """

    def __init__(
        self,
        model_client: ModelClient,
        prompt_builder: Optional[PromptBuilder] = None,
        normalizer: Optional[FileNormalizer] = None,
        rubric: Optional[Rubric] = None,
        examples: Optional[Sequence[Example]] = None,
        max_upload_bytes: Optional[int] = None,
    ) -> None:
        self.model_client = model_client
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.normalizer = normalizer or build_normalizer()
        self.max_upload_bytes = max_upload_bytes

        self._rubric = (rubric or DEFAULT_RUBRIC).model_copy(deep=True)
        source_examples = DEFAULT_EXAMPLES if examples is None else examples
        self._examples: List[Example] = [ex.model_copy(deep=True) for ex in source_examples]
        self._result: Optional[AnalysisResult] = None
        self._status = ControllerStatus()
        self._message: Optional[str] = None
        self._id_counter = itertools.count(1)

    # ---- read access -------------------------------------------------
    @property
    def rubric(self) -> Rubric:
        return self._rubric.model_copy(deep=True)

    @property
    def examples(self) -> List[Example]:
        return [ex.model_copy(deep=True) for ex in self._examples]

    @property
    def result(self) -> Optional[AnalysisResult]:
        return self._result

    @property
    def status(self) -> ControllerStatus:
        return self._status.model_copy()

    @property
    def busy(self) -> bool:
        return self._status.busy

    # ---- busy gate ---------------------------------------------------
    @contextmanager
    def _busy(self, operation: Operation) -> Iterator[None]:
        # No await between the check and the transition to busy
        if self._status.busy:
            logger.warning(f"Rejected {operation.value}: {self._status.operation} in flight")
            raise BusyError(self._status.operation)

        self._status = ControllerStatus(state="busy", operation=operation.value)
        self._message = None
        logger.info(f"→ {operation.value}")
        try:
            yield
        except ValidatorException as exc:
            logger.error(f"{operation.value} failed: {exc.__class__.__name__}: {exc.message}")
            self._status = ControllerStatus(error=exc.message)
            raise
        except Exception as exc:
            logger.exception(f"{operation.value} failed unexpectedly")
            self._status = ControllerStatus(error=f"Something went wrong during {operation.value}: {exc}")
            raise
        except BaseException:
            # Task cancellation still releases the gate
            logger.warning(f"{operation.value} was cancelled")
            self._status = ControllerStatus(error=f"{operation.value} was cancelled before it finished.")
            raise
        else:
            self._status = ControllerStatus(message=self._message)
            logger.info(f"← {operation.value}: {self._message or 'ok'}")

    def _prepare(self, source: QuestionSource) -> NormalizedInput:
        if isinstance(source, UploadedFile):
            check_upload(source, self.max_upload_bytes)
            return self.normalizer.normalize(source)
        if not source or not source.strip():
            raise InputValidationError("Question text cannot be empty")
        return PlainText(text=source)

    # ---- model-backed operations ------------------------------------
    async def analyze(self, source: QuestionSource) -> AnalysisResult:
        with self._busy(Operation.ANALYZE):
            self._result = None
            normalized = self._prepare(source)
            request = self.prompt_builder.build(
                Operation.ANALYZE, normalized, rubric=self._rubric, examples=self._examples
            )
            payload = await self.model_client.complete(request)
            try:
                result = AnalysisResult.model_validate(payload)
            except ValidationError as exc:
                raise SchemaViolationError(
                    "Analysis result does not match the declared schema",
                    details={"errors": exc.errors(include_url=False, include_context=False)},
                ) from exc

            if isinstance(source, str) and not result.analyzed_content.strip():
                result = result.model_copy(update={"analyzed_content": source})

            self._result = result
            self._message = "Analysis complete."
        return result

    async def extract_question(self, upload: UploadedFile) -> str:
        with self._busy(Operation.EXTRACT_QUESTION):
            normalized = self._prepare(upload)
            request = self.prompt_builder.build(Operation.EXTRACT_QUESTION, normalized)
            text = await self.model_client.complete(request)
            self._message = "Question extracted." if text.strip() else "No question found in the file."
        return text

    async def import_rubric(self, upload: UploadedFile) -> RubricImportResponse:
        with self._busy(Operation.EXTRACT_RUBRIC):
            normalized = self._prepare(upload)
            request = self.prompt_builder.build(Operation.EXTRACT_RUBRIC, normalized)
            criteria = await self.model_client.complete(request)

            if criteria.strip():
                self._rubric = self._rubric.model_copy(update={"criteria": criteria.strip()})
                self._message = "Criteria imported successfully!"
                updated = True
            else:
                self._message = "Could not identify criteria in the file."
                updated = False
        return RubricImportResponse(updated=updated, message=self._message, rubric=self.rubric)

    async def batch_import_examples(self, upload: UploadedFile) -> BatchImportResponse:
        with self._busy(Operation.EXTRACT_AND_CLASSIFY_BATCH):
            normalized = self._prepare(upload)
            request = self.prompt_builder.build(
                Operation.EXTRACT_AND_CLASSIFY_BATCH, normalized, rubric=self._rubric
            )
            items = await self.model_client.complete(request)
            try:
                questions = [ClassifiedQuestion.model_validate(item) for item in items]
            except ValidationError as exc:
                raise SchemaViolationError(
                    "Extracted questions do not match the declared schema",
                    details={"errors": exc.errors(include_url=False, include_context=False)},
                ) from exc

            imported = [Example(id=self._next_id(), **q.model_dump()) for q in questions]
            # Commit all at once; nothing is appended if anything above failed
            self._examples = [*self._examples, *imported]
            if imported:
                self._message = f"Successfully imported {len(imported)} questions!"
            else:
                self._message = "No chemistry questions found to import."
        return BatchImportResponse(
            imported=[ex.model_copy(deep=True) for ex in imported],
            message=self._message,
            total_examples=len(self._examples),
        )

    # ---- local mutations ---------------------------------------------
    def add_example(self, content: str, explanation: str, type: ExampleType = "Higher Order") -> Example:
        try:
            draft = ExampleDraft(content=content, explanation=explanation, type=type)
        except ValidationError as exc:
            raise InputValidationError(
                "Example needs question content and an explanation",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc
        example = Example(id=self._next_id(), **draft.model_dump())
        self._examples = [*self._examples, example]
        return example.model_copy(deep=True)

    def remove_example(self, example_id: str) -> bool:
        remaining = [ex for ex in self._examples if ex.id != example_id]
        removed = len(remaining) != len(self._examples)
        self._examples = remaining
        return removed

    def update_rubric(
        self,
        name: Optional[str] = None,
        description: Optional[str] = None,
        criteria: Optional[str] = None,
    ) -> Rubric:
        changes = {
            key: value
            for key, value in (("name", name), ("description", description), ("criteria", criteria))
            if value is not None
        }
        self._rubric = self._rubric.model_copy(update=changes)
        return self.rubric

    def reset(self) -> None:
        """Clear the last result and error (the "Clear" action)."""
        self._result = None
        if not self._status.busy:
            self._status = ControllerStatus()

    def _next_id(self) -> str:
        taken = {ex.id for ex in self._examples}
        while True:
            candidate = f"ex-{next(self._id_counter)}"
            if candidate not in taken:
                return candidate
