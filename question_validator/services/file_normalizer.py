import base64
import io
import logging
from typing import Dict, Optional, Protocol

from docx import Document
from docx.table import Table
from docx.text.paragraph import Paragraph

from question_validator.core.config import settings
from question_validator.core.exceptions import (
    ExtractionError,
    InputValidationError,
    UnsupportedTypeError,
)
from question_validator.models.inputs import InlineBinary, NormalizedInput, PlainText, UploadedFile

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = ("pdf", "doc", "docx", "txt", "jpg", "jpeg", "png", "webp")
TEXT_EXTENSIONS = ("txt",)
DOCUMENT_EXTENSIONS = ("doc", "docx")

# MIME types sent to the model as inline attachments
BINARY_MIME_BY_EXTENSION: Dict[str, str] = {
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}
GENERIC_MIME_TYPES = ("", "application/octet-stream")


class DocumentTextExtractor(Protocol):
    def extract_raw_text(self, data: bytes) -> str: ...


class DocxTextExtractor:
    """Raw text of a Word document, paragraphs and table rows in document order."""

    def extract_raw_text(self, data: bytes) -> str:
        doc = Document(io.BytesIO(data))
        lines = []
        for element in doc.element.body:
            if element.tag.endswith("}p"):
                para = Paragraph(element, doc)
                if para.text.strip():
                    lines.append(para.text)
            elif element.tag.endswith("}tbl"):
                # Rubrics often come as tables
                table = Table(element, doc)
                for row in table.rows:
                    cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                    if cells:
                        lines.append(" | ".join(cells))
        return "\n".join(lines)


def check_upload(upload: UploadedFile, max_bytes: Optional[int] = None) -> None:
    """Caller-side checks run before normalization: allow-list, emptiness, size."""
    ext = upload.extension
    if ext not in ALLOWED_EXTENSIONS:
        raise UnsupportedTypeError(
            ext,
            message=(
                f"Unsupported file type: .{ext}. "
                f"Allowed types: {', '.join(ALLOWED_EXTENSIONS)}."
            ),
        )
    if upload.size == 0:
        raise InputValidationError(
            f"File '{upload.filename}' is empty", details={"filename": upload.filename}
        )
    limit = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
    if upload.size > limit:
        raise InputValidationError(
            f"File '{upload.filename}' is too large ({upload.size} bytes, max {limit})",
            details={"filename": upload.filename, "size": upload.size, "max_bytes": limit},
        )


def strip_data_uri(encoded: str) -> str:
    """Drop a ``data:<mime>;base64,`` prefix if one is present."""
    if encoded.startswith("data:") and "," in encoded:
        return encoded.split(",", 1)[1]
    return encoded


class FileNormalizer:
    """Turn an uploaded file into text or an inline binary payload for the model."""

    def __init__(self, document_extractor: Optional[DocumentTextExtractor] = None) -> None:
        self.document_extractor = document_extractor

    def normalize(self, upload: UploadedFile) -> NormalizedInput:
        ext = upload.extension

        if ext in TEXT_EXTENSIONS:
            return PlainText(text=self._decode_text(upload))

        if ext in DOCUMENT_EXTENSIONS:
            return PlainText(text=self._extract_document(upload))

        if ext not in BINARY_MIME_BY_EXTENSION:
            raise UnsupportedTypeError(ext)

        mime_type = self._binary_mime_type(upload)
        if mime_type is not None:
            encoded = base64.b64encode(upload.data).decode("ascii")
            return InlineBinary(data=strip_data_uri(encoded), mime_type=mime_type)

        raise UnsupportedTypeError(ext)

    def _decode_text(self, upload: UploadedFile) -> str:
        try:
            return upload.data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ExtractionError(
                f"File '{upload.filename}' is not valid UTF-8 text",
                details={"filename": upload.filename},
            ) from exc

    def _extract_document(self, upload: UploadedFile) -> str:
        if self.document_extractor is None:
            raise ExtractionError("Docx parser not loaded.", details={"filename": upload.filename})
        try:
            text = self.document_extractor.extract_raw_text(upload.data)
        except Exception as exc:  # noqa: BLE001
            logger.warning(f"Document extraction failed for {upload.filename}: {exc}")
            raise ExtractionError(
                "Failed to parse DOCX file.",
                details={"filename": upload.filename, "cause": type(exc).__name__},
            ) from exc
        logger.info(f"Extracted {len(text)} characters from {upload.filename}")
        return text

    @staticmethod
    def _binary_mime_type(upload: UploadedFile) -> Optional[str]:
        declared = (upload.content_type or "").split(";", 1)[0].strip().lower()
        if declared in BINARY_MIME_BY_EXTENSION.values():
            return declared
        if declared in GENERIC_MIME_TYPES:
            return BINARY_MIME_BY_EXTENSION.get(upload.extension)
        return None


def build_normalizer() -> FileNormalizer:
    return FileNormalizer(document_extractor=DocxTextExtractor())
