"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from app.api.routes import ai, auth, dashboard, documents, flashcards, quizzes
from app.config import Settings
from app.context import AppContext
from app.exceptions import StudyAidError
from app.utils.logger import logger
from app.utils.tracer import initialize_tracing, shutdown_tracing


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the application context on startup and release it on shutdown."""
    logger.info("Starting Study Aid backend")
    settings: Settings = app.state.settings
    logger.setLevel(settings.log_level.upper())

    tracer_provider = initialize_tracing(
        service_name="study-aid",
        service_version="1.0.0",
        otlp_endpoint=settings.otlp_endpoint if settings.otlp_endpoint else None,
        tracing_enabled=settings.tracing_enabled,
    )

    context = AppContext.from_settings(settings)
    app.state.context = context
    logger.info("All services initialized successfully")

    yield

    logger.info("Shutting down Study Aid backend")
    await context.close()
    app.state.context = None
    if tracer_provider:
        shutdown_tracing(tracer_provider)


async def study_aid_exception_handler(request: Request, exc: StudyAidError):
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error": exc.error_code},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle validation errors with better error messages.

    Specifically handles JSON decode errors from invalid control characters.
    """
    errors = exc.errors()

    for error in errors:
        if error.get("type") == "json_invalid":
            ctx = error.get("ctx", {})
            if "Invalid control character" in str(ctx.get("error", "")):
                return JSONResponse(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    content={
                        "detail": "Invalid JSON: Control characters detected in request body.",
                        "error": "json_parse_error",
                    },
                )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(errors), "error": "validation_error"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "error": "internal_error"},
    )


async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Study Aid"}


async def prometheus_metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The settings are read once here; the lifespan builds the
    ``AppContext`` from the same instance.
    """
    settings = settings or Settings()

    app = FastAPI(
        title="Study Aid",
        description="PDF study assistant: flashcards, quizzes, summaries and document chat",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_exception_handler(StudyAidError, study_aid_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_api_route("/health", health_check, methods=["GET"])
    app.add_api_route("/metrics", prometheus_metrics, methods=["GET"])

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(documents.router, prefix="/api/documents", tags=["documents"])
    app.include_router(ai.router, prefix="/api/ai", tags=["ai"])
    app.include_router(flashcards.router, prefix="/api/flashcards", tags=["flashcards"])
    app.include_router(quizzes.router, prefix="/api/quizzes", tags=["quizzes"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=app.state.settings.api_host, port=app.state.settings.api_port)
