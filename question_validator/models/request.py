from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AnalyzeTextRequest(BaseModel):
    question: str = Field(min_length=1, description="The question text to evaluate")

    @field_validator("question")
    @classmethod
    def validate_question(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Question text cannot be empty")
        return v

    model_config = {
        "json_schema_extra": {
            "example": {"question": "What is the pH of a 0.1 M HCl solution?"}
        }
    }


class RubricUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    criteria: Optional[str] = None
