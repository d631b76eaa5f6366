import time
import logging
from contextlib import asynccontextmanager
from dotenv import load_dotenv
load_dotenv()  # ★ 라우터/모듈 임포트 전에!

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from question_validator.api.v1.questions import router as questions_router
from question_validator.core.config import settings
from question_validator.core.exceptions import ValidatorException, validator_exception_handler
from question_validator.utils.prompt_loader import PromptLoader

# Setup logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI 애플리케이션 수명주기 관리"""
    startup_time = time.time()
    logger.info("Starting Question Validator API...")

    # Fail fast on missing or broken prompt templates
    loader = PromptLoader(version=settings.PROMPT_VERSION)
    logger.info(f"Prompts loaded ({settings.PROMPT_VERSION}): {loader.get_available_operations()}")

    startup_duration = (time.time() - startup_time) * 1000
    logger.info(f"Application startup completed in {startup_duration:.1f}ms")

    yield

    logger.info("Shutting down Question Validator API")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Chemistry Question Validator API",
        version="1.0.0",
        description="Evaluates chemistry questions for Higher Order Thinking against a configurable rubric",
        lifespan=lifespan,
    )

    app.add_exception_handler(ValidatorException, validator_exception_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = f"global_{int(time.time() * 1000)}"
        logger.error(f"[{request_id}] Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "Something went wrong. Please try again.",
                "type": "InternalError",
                "request_id": request_id,
            },
        )

    # CORS (open by default; tighten as needed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(questions_router, prefix="/v1", tags=["questions"])

    @app.get("/health")
    async def health():
        health_status = {
            "status": "healthy",
            "version": "1.0.0",
            "prompt_version": settings.PROMPT_VERSION,
            "timestamp": time.time(),
            "services": {},
        }

        try:
            PromptLoader(version=settings.PROMPT_VERSION)
            health_status["services"]["prompts"] = "operational"
        except Exception as e:
            logger.warning(f"Prompt check failed: {e}")
            health_status["services"]["prompts"] = "unavailable"
            health_status["status"] = "degraded"

        configured = all([
            settings.AZURE_OPENAI_ENDPOINT,
            settings.AZURE_OPENAI_API_KEY,
            settings.AZURE_OPENAI_DEPLOYMENT,
        ])
        health_status["services"]["llm"] = "configured" if configured else "not_configured"
        if not configured:
            health_status["status"] = "degraded"

        status_code = 200 if health_status["status"] == "healthy" else 503
        return JSONResponse(status_code=status_code, content=health_status)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
