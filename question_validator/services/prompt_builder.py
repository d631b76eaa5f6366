from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from question_validator.models.inputs import InlineBinary, NormalizedInput, PlainText
from question_validator.models.prompt import MediaPart, ModelRequest, Operation, TextPart
from question_validator.models.rubric import EXAMPLE_TYPES, Example, Rubric
from question_validator.models.schema import FieldSpec, OutputSchema
from question_validator.utils.prompt_loader import PromptLoader

EXTRACTED_TEXT_SCHEMA = OutputSchema(
    name="ExtractedText",
    fields={"text": FieldSpec(type="string", description="The extracted text, verbatim")},
    unwrap="text",
)

CLASSIFIED_QUESTIONS_SCHEMA = OutputSchema(
    name="ClassifiedQuestions",
    fields={
        "questions": FieldSpec(
            type="array",
            items=FieldSpec(
                type="object",
                properties={
                    "content": FieldSpec(type="string", description="The text of the question"),
                    "type": FieldSpec(type="string", enum=EXAMPLE_TYPES, description="The classification"),
                    "explanation": FieldSpec(
                        type="string", description="A simplified reasoning for the classification"
                    ),
                },
            ),
        )
    },
    unwrap="questions",
)

ANALYSIS_SCHEMA = OutputSchema(
    name="AnalysisResult",
    fields={
        "isHigherOrder": FieldSpec(
            type="boolean", description="True if the question is Analysis level or above."
        ),
        "bloomLevel": FieldSpec(type="string", description="The Bloom's taxonomy level."),
        "score": FieldSpec(type="integer", minimum=0, maximum=10, description="Score from 0 to 10"),
        "feedback": FieldSpec(
            type="string",
            description="Detailed critique of the question in the same language/script as the question.",
        ),
        "improvementSuggestions": FieldSpec(
            type="array",
            items=FieldSpec(type="string"),
            description="3-4 bullet points on how to improve the question in the same language/script as the question.",
        ),
        "betterQuestionExample": FieldSpec(
            type="string", description="A rewritten version of the question that is significantly better."
        ),
        "analyzedContent": FieldSpec(
            type="string",
            description="The exact text of the question identified and analyzed from the input.",
        ),
    },
)

OUTPUT_SCHEMAS: Dict[Operation, OutputSchema] = {
    Operation.EXTRACT_QUESTION: EXTRACTED_TEXT_SCHEMA,
    Operation.EXTRACT_RUBRIC: EXTRACTED_TEXT_SCHEMA,
    Operation.EXTRACT_AND_CLASSIFY_BATCH: CLASSIFIED_QUESTIONS_SCHEMA,
    Operation.ANALYZE: ANALYSIS_SCHEMA,
}

# Operations whose instructions depend on the active rubric
_NEEDS_RUBRIC = (Operation.EXTRACT_AND_CLASSIFY_BATCH, Operation.ANALYZE)


class PromptBuilder:
    """Assemble the request descriptor for each model operation."""

    def __init__(self, loader: Optional[PromptLoader] = None) -> None:
        self.loader = loader or PromptLoader()

    def build(
        self,
        operation: Operation,
        source: NormalizedInput,
        rubric: Optional[Rubric] = None,
        examples: Sequence[Example] = (),
    ) -> ModelRequest:
        if operation in _NEEDS_RUBRIC and rubric is None:
            raise ValueError(f"Operation '{operation.value}' requires a rubric")

        system = self.loader.render(
            operation.value,
            "system",
            criteria=rubric.criteria.strip() if rubric else "",
            examples=self.format_examples(examples),
        )
        return ModelRequest(
            operation=operation,
            system_instruction=system,
            parts=self._user_parts(operation, source),
            output_schema=OUTPUT_SCHEMAS[operation],
        )

    def format_examples(self, examples: Sequence[Example]) -> str:
        """Few-shot block for the analyze instruction, in collection order."""
        return "\n\n".join(
            self.loader.render(
                Operation.ANALYZE.value,
                "example",
                content=ex.content,
                type=ex.type,
                explanation=ex.explanation,
            )
            for ex in examples
        )

    def _user_parts(self, operation: Operation, source: NormalizedInput) -> List[TextPart | MediaPart]:
        if isinstance(source, PlainText):
            return [TextPart(text=self.loader.render(operation.value, "user_text", content=source.text))]
        if isinstance(source, InlineBinary):
            return [
                MediaPart(data=source.data, mime_type=source.mime_type),
                TextPart(text=self.loader.render(operation.value, "user_file")),
            ]
        raise TypeError(f"Unknown input variant: {type(source).__name__}")
