import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bukialo.api.v1 import api_router
from bukialo.core.automation.delayed_runner import DelayedActionRunner
from bukialo.core.config_file import get_settings
from bukialo.core.db.session import SessionLocal
from bukialo.core.exceptions import APIException
from bukialo.core.logging import configure_logging

settings = get_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the deferred action runner when enabled."""
    runner = None
    if settings.AUTOMATION_DELAYED_RUNNER_ENABLED:
        runner = DelayedActionRunner(SessionLocal, settings=settings)
        await runner.start()
    else:
        logger.info("Deferred action runner disabled, delayed actions stay pending")
    app.state.delayed_runner = runner
    try:
        yield
    finally:
        if runner:
            await runner.stop()


app = FastAPI(
    title="Bukialo CRM Automations API",
    version="0.1.0",
    description="Rule engine that reacts to CRM events with ordered actions",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS configuration
origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle APIException and return the standard error format."""
    # exc.detail already contains {"error": {...}}
    response_content = exc.detail.copy()
    response_content["data"] = None
    return JSONResponse(
        status_code=exc.status_code,
        content=response_content,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render validation errors as {"error": {"code": "VALIDATION_ERROR", ...}}.

    details maps each field name to its messages.
    """
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        # ["body", "actions", 0, "order"] -> "actions.0.order"
        field_path = [str(part) for part in error["loc"][1:]] or [str(error["loc"][0])]
        field_name = ".".join(field_path)
        details.setdefault(field_name, []).append(error["msg"])

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Validation failed",
                "details": details,
            },
            "data": None,
        },
    )


@app.get("/healthz", tags=["system"])
def healthz():
    """Health check endpoint."""
    return {
        "status": "ok",
        "env": settings.ENV,
        "delayed_runner": settings.AUTOMATION_DELAYED_RUNNER_ENABLED,
    }


# Include API routers
app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bukialo.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
