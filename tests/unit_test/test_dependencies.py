"""
Unit tests for core/dependencies.py and client/bootstrap.py
"""
import io
from unittest.mock import MagicMock, patch

import pytest
from fastapi import UploadFile

from question_validator.client import bootstrap
from question_validator.core.dependencies import read_upload
from question_validator.core.exceptions import InputValidationError
from question_validator.utils.tracer import ObservedLLM


def _upload(data: bytes, size=None) -> UploadFile:
    return UploadFile(file=io.BytesIO(data), size=size, filename="scan.pdf")


@pytest.mark.unit
class TestReadUpload:

    @pytest.mark.asyncio
    async def test_reads_body(self):
        upload = await read_upload(_upload(b"%PDF-1.4", size=8), max_bytes=100)
        assert upload.filename == "scan.pdf"
        assert upload.data == b"%PDF-1.4"

    @pytest.mark.asyncio
    async def test_oversized_rejected_before_reading(self):
        file = _upload(b"x" * 20, size=20)

        with pytest.raises(InputValidationError) as exc_info:
            await read_upload(file, max_bytes=10)

        assert exc_info.value.details["max_bytes"] == 10
        assert file.file.tell() == 0

    @pytest.mark.asyncio
    async def test_unknown_size_is_read(self):
        upload = await read_upload(_upload(b"x" * 20), max_bytes=10)
        assert upload.size == 20


@pytest.mark.unit
def test_build_llm_is_cached_and_traced():
    with patch.object(bootstrap, "_llm", None), patch.object(bootstrap, "AzureOpenAILLM", MagicMock()) as llm_cls:
        first = bootstrap.build_llm()
        second = bootstrap.build_llm()

    assert first is second
    assert isinstance(first, ObservedLLM)
    llm_cls.assert_called_once_with()
