import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from question_validator.core.config import settings
from question_validator.core.exceptions import InputValidationError, ValidatorException
from question_validator.models.inputs import UploadedFile
from question_validator.services.model_client import ModelClient
from question_validator.services.prompt_builder import PromptBuilder
from question_validator.services.validator_controller import ValidatorController
from question_validator.utils.prompt_loader import PromptLoader


def _read_upload(path: str) -> UploadedFile:
    file_path = Path(path)
    try:
        data = file_path.read_bytes()
    except OSError as exc:
        raise InputValidationError(f"Failed to read file: {exc}", details={"path": path}) from exc
    return UploadedFile(filename=file_path.name, data=data)


async def _amain(
    controller: ValidatorController,
    text: Optional[str],
    file: Optional[str],
    rubric_file: Optional[str],
    examples_file: Optional[str],
) -> int:
    try:
        if rubric_file:
            imported = await controller.import_rubric(_read_upload(rubric_file))
            print(imported.message, file=sys.stderr)
        if examples_file:
            batch = await controller.batch_import_examples(_read_upload(examples_file))
            print(batch.message, file=sys.stderr)

        source = _read_upload(file) if file else text
        result = await controller.analyze(source)
    except ValidatorException as exc:
        print(json.dumps({"error": exc.message, "type": exc.__class__.__name__, "details": exc.details},
                         ensure_ascii=False), file=sys.stderr)
        return 1

    output = {
        "rubric": controller.rubric.name,
        "result": result.model_dump(by_alias=True),
    }
    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


def main(argv=None, controller: Optional[ValidatorController] = None) -> int:
    parser = argparse.ArgumentParser(description="Check whether a chemistry question promotes higher order thinking")
    group = parser.add_mutually_exclusive_group(required=False)
    group.add_argument("--text", help="Question text to analyze")
    group.add_argument("--file", help="Path to a question file (txt, docx, pdf, jpg, png, webp)")
    parser.add_argument("--rubric-file", help="Import rubric criteria from this file before analyzing")
    parser.add_argument("--examples-file", help="Import classified example questions from this file before analyzing")
    parser.add_argument("--prompt-version", default=settings.PROMPT_VERSION, help="Prompt template version")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    text = args.text
    if args.file:
        if not Path(args.file).is_file():
            print(f"File not found: {args.file}", file=sys.stderr)
            return 2
    elif text is None:
        # Read from stdin
        text = sys.stdin.read()

    if not args.file and not text.strip():
        print("No question provided. Use --text, --file, or pipe input.", file=sys.stderr)
        return 2

    if controller is None:
        controller = ValidatorController(
            model_client=ModelClient(),
            prompt_builder=PromptBuilder(PromptLoader(version=args.prompt_version)),
            max_upload_bytes=settings.MAX_UPLOAD_BYTES,
        )

    return asyncio.run(_amain(controller, text, args.file, args.rubric_file, args.examples_file))


if __name__ == "__main__":
    raise SystemExit(main())
