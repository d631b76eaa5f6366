# question_validator/models/inputs.py
from pathlib import PurePath
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class UploadedFile(BaseModel):
    """Raw upload as received at the HTTP/CLI boundary."""
    filename: str
    content_type: str = ""
    data: bytes

    @property
    def extension(self) -> str:
        return PurePath(self.filename).suffix.lstrip(".").lower()

    @property
    def size(self) -> int:
        return len(self.data)


class PlainText(BaseModel):
    kind: Literal["text"] = "text"
    text: str


class InlineBinary(BaseModel):
    kind: Literal["binary"] = "binary"
    data: str  # base64, no data-URI prefix
    mime_type: str

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


# 둘 중 정확히 하나만 활성화됨 (kind 로 구분)
NormalizedInput = Annotated[Union[PlainText, InlineBinary], Field(discriminator="kind")]
