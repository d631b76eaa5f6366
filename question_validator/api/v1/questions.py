import logging
import time
from collections.abc import AsyncIterator
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status

from question_validator.core.dependencies import get_controller, read_upload
from question_validator.models.request import AnalyzeTextRequest, RubricUpdateRequest
from question_validator.models.response import (
    AnalysisResult,
    BatchImportResponse,
    ControllerStatus,
    ExtractQuestionResponse,
    RubricImportResponse,
    SamplesResponse,
    StateResponse,
)
from question_validator.models.rubric import Example, ExampleDraft, Rubric, SAMPLE_HOT_QUESTION, SAMPLE_QUESTION
from question_validator.services.validator_controller import ValidatorController

logger = logging.getLogger(__name__)


async def route_timer(request: Request) -> AsyncIterator[None]:
    start = time.perf_counter()
    method = request.method
    path = request.url.path
    logger.info(f"→ {method} {path}")
    try:
        yield
    finally:
        dur_ms = (time.perf_counter() - start) * 1000.0
        logger.info(f"← {method} {path} {dur_ms:.1f}ms")


router = APIRouter(dependencies=[Depends(route_timer)])


@router.get("/state", response_model=StateResponse)
async def get_state(controller: ValidatorController = Depends(get_controller)) -> StateResponse:
    return StateResponse(
        rubric=controller.rubric,
        examples=controller.examples,
        status=controller.status,
        result=controller.result,
    )


@router.post("/analyze", response_model=AnalysisResult)
async def analyze_text(
    req: AnalyzeTextRequest,
    controller: ValidatorController = Depends(get_controller),
) -> AnalysisResult:
    return await controller.analyze(req.question)


@router.post("/analyze/file", response_model=AnalysisResult)
async def analyze_file(
    file: UploadFile = File(...),
    controller: ValidatorController = Depends(get_controller),
) -> AnalysisResult:
    upload = await read_upload(file, controller.max_upload_bytes)
    logger.info(f"Analyzing uploaded file {upload.filename} ({upload.size} bytes)")
    return await controller.analyze(upload)


@router.post("/extract-question", response_model=ExtractQuestionResponse)
async def extract_question(
    file: UploadFile = File(...),
    controller: ValidatorController = Depends(get_controller),
) -> ExtractQuestionResponse:
    upload = await read_upload(file, controller.max_upload_bytes)
    return ExtractQuestionResponse(text=await controller.extract_question(upload))


@router.post("/reset", response_model=ControllerStatus)
async def reset(controller: ValidatorController = Depends(get_controller)) -> ControllerStatus:
    controller.reset()
    return controller.status


@router.get("/rubric", response_model=Rubric)
async def get_rubric(controller: ValidatorController = Depends(get_controller)) -> Rubric:
    return controller.rubric


@router.put("/rubric", response_model=Rubric)
async def update_rubric(
    req: RubricUpdateRequest,
    controller: ValidatorController = Depends(get_controller),
) -> Rubric:
    return controller.update_rubric(name=req.name, description=req.description, criteria=req.criteria)


@router.post("/rubric/import", response_model=RubricImportResponse)
async def import_rubric(
    file: UploadFile = File(...),
    controller: ValidatorController = Depends(get_controller),
) -> RubricImportResponse:
    upload = await read_upload(file, controller.max_upload_bytes)
    return await controller.import_rubric(upload)


@router.get("/examples", response_model=List[Example])
async def list_examples(controller: ValidatorController = Depends(get_controller)) -> List[Example]:
    return controller.examples


@router.post("/examples", response_model=Example, status_code=status.HTTP_201_CREATED)
async def add_example(
    draft: ExampleDraft,
    controller: ValidatorController = Depends(get_controller),
) -> Example:
    return controller.add_example(content=draft.content, explanation=draft.explanation, type=draft.type)


@router.delete("/examples/{example_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_example(
    example_id: str,
    controller: ValidatorController = Depends(get_controller),
) -> None:
    if not controller.remove_example(example_id):
        raise HTTPException(status_code=404, detail={"error": f"Example '{example_id}' not found"})


@router.post("/examples/import", response_model=BatchImportResponse)
async def import_examples(
    file: UploadFile = File(...),
    controller: ValidatorController = Depends(get_controller),
) -> BatchImportResponse:
    upload = await read_upload(file, controller.max_upload_bytes)
    return await controller.batch_import_examples(upload)


@router.get("/samples", response_model=SamplesResponse)
async def samples() -> SamplesResponse:
    return SamplesResponse(lower_order=SAMPLE_QUESTION, higher_order=SAMPLE_HOT_QUESTION)
