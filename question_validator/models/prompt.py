# question_validator/models/prompt.py
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import BaseModel, Field

from question_validator.models.schema import OutputSchema


class Operation(str, Enum):
    EXTRACT_QUESTION = "extract_question"
    EXTRACT_RUBRIC = "extract_rubric"
    EXTRACT_AND_CLASSIFY_BATCH = "extract_and_classify_batch"
    ANALYZE = "analyze"


class TextPart(BaseModel):
    kind: Literal["text"] = "text"
    text: str

    def to_message_part(self) -> Dict[str, Any]:
        return {"type": "text", "text": self.text}


class MediaPart(BaseModel):
    kind: Literal["media"] = "media"
    data: str
    mime_type: str

    def to_message_part(self) -> Dict[str, Any]:
        data_uri = f"data:{self.mime_type};base64,{self.data}"
        if self.mime_type.startswith("image/"):
            return {"type": "image_url", "image_url": {"url": data_uri}}
        # PDFs go through the file content part
        extension = self.mime_type.rsplit("/", 1)[-1]
        return {"type": "file", "file": {"filename": f"upload.{extension}", "file_data": data_uri}}


ContentPart = Annotated[Union[TextPart, MediaPart], Field(discriminator="kind")]


class ModelRequest(BaseModel):
    """Everything needed for one schema-constrained model call."""
    operation: Operation
    system_instruction: str
    parts: List[ContentPart]
    output_schema: OutputSchema

    def to_messages(self) -> List[Dict[str, Any]]:
        return [
            {"role": "system", "content": self.system_instruction},
            {"role": "user", "content": [part.to_message_part() for part in self.parts]},
        ]
