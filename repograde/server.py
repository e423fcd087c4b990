import logging
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from repograde.config import Settings, load_settings
from repograde.errors import RepograderError, InternalError
from repograde.pipeline import EvaluationPipeline

logger = logging.getLogger(__name__)

class EvaluateRequest(BaseModel):
    repoUrl: Optional[str] = None

def create_app(settings: Optional[Settings] = None, pipeline: Optional[EvaluationPipeline] = None) -> FastAPI:
    settings = settings or load_settings()
    pipeline = pipeline or EvaluationPipeline.from_settings(settings)

    app = FastAPI(
        title="repograde",
        description="Scores GitHub repositories with a structured LLM review."
    )
    app.state.settings = settings
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RepograderError)
    async def handle_repograder_error(request: Request, exc: RepograderError):
        logger.error(f"Handler Error: {exc.message}" + (f" ({exc.details})" if exc.details else ""))
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Repo URL is required"})

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/evaluate")
    async def evaluate(body: EvaluateRequest):
        try:
            result = await app.state.pipeline.run(body.repoUrl)
        except RepograderError:
            raise
        except Exception as e:
            # Converted here so the response still passes through the CORS layer
            logger.exception("Unhandled error while evaluating repository")
            raise InternalError("Internal Server Error", details=str(e) or None) from e
        return JSONResponse(content=result.model_dump(mode="json"))

    return app
