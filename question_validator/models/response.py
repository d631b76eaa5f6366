from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from question_validator.models.rubric import Example, Rubric


class AnalysisResult(BaseModel):
    # Wire format is camelCase (same keys the model is asked to produce)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_higher_order: bool
    bloom_level: str
    score: int = Field(ge=0, le=10)
    feedback: str
    improvement_suggestions: List[str]
    better_question_example: str
    analyzed_content: str


class ControllerStatus(BaseModel):
    state: Literal["idle", "busy"] = "idle"
    operation: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self.state == "busy"


class RubricImportResponse(BaseModel):
    updated: bool
    message: str
    rubric: Rubric


class BatchImportResponse(BaseModel):
    imported: List[Example]
    message: str
    total_examples: int


class ExtractQuestionResponse(BaseModel):
    text: str


class StateResponse(BaseModel):
    rubric: Rubric
    examples: List[Example]
    status: ControllerStatus
    result: Optional[AnalysisResult] = None


class SamplesResponse(BaseModel):
    lower_order: str
    higher_order: str
