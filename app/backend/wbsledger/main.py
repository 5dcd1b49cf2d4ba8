"""FastAPI application entrypoint."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wbsledger.api.router import api_router
from wbsledger.core.config import get_settings
from wbsledger.core.errors import (
    ConsistencyDriftError,
    ConstraintViolationError,
    DuplicateEntryError,
    LedgerError,
    NotFoundError,
    StoreUnavailableError,
)
from wbsledger.core.logging_config import configure_logging, get_logger

logger = get_logger("api")

ERROR_STATUS_CODES: dict[type[LedgerError], int] = {
    NotFoundError: 404,
    DuplicateEntryError: 409,
    ConstraintViolationError: 422,
    ConsistencyDriftError: 409,
    StoreUnavailableError: 503,
}


def status_code_for(exc: LedgerError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(
            "request_failed",
            extra={"path": request.url.path, "error_code": exc.code, "detail": exc.message},
        )
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""

    settings = get_settings()
    configure_logging(level=settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/", tags=["system"])
    def root() -> dict[str, str]:
        return {"service": settings.app_name, "status": "running"}

    return app


app = create_app()
