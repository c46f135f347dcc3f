"""FastAPI application entry point.

This module creates and configures the FastAPI application instance with:
- Middleware (CORS, RequestID, Timing, ErrorLogging)
- Exception handlers (APIException, HTTPException, RequestValidationError, general)
- API routers (v1)
- Health check endpoints (/health, /ready)
- Startup/shutdown lifecycle management (database)
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from consult_core import __version__
from consult_core.api.v1.router import router as v1_router
from consult_core.config import get_settings
from consult_core.database import check_connection, close_db, init_db
from consult_core.exceptions import APIException, InvalidInputError
from consult_core.middleware import setup_middleware
from consult_core.models.validation import format_validation_errors
from consult_core.utils.logging import get_logger, log_error, setup_logging

# Set up logging first
setup_logging()
logger = get_logger("main")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database pool on startup and close it on shutdown."""
    logger.info("Starting consultation service...")
    try:
        await init_db()
        logger.info("Consultation service started successfully")
        yield
    except Exception as e:
        logger.error(f"Failed to start consultation service: {e}", exc_info=True)
        raise
    finally:
        logger.info("Shutting down consultation service...")
        await close_db()


app = FastAPI(
    title="Consultation Booking API",
    description="Scheduling, booking, lifecycle and video sessions for legal consultations.",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    debug=settings.debug,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "lawyers", "description": "Lawyer availability and bookable slots"},
        {"name": "consultations", "description": "Booking, lifecycle, sessions and messages"},
        {"name": "v1", "description": "API v1 information and metadata"},
    ],
)

setup_middleware(app)
app.include_router(v1_router)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle core exceptions."""
    context = {
        "method": request.method,
        "path": request.url.path,
        "status_code": exc.status_code,
        "code": exc.code,
    }
    if exc.status_code >= 500:
        log_error(exc, context=context)
    else:
        logger.info(f"{exc.code}: {exc.message}", extra={"extra_fields": context})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions (404, 401 from internal auth, etc.)."""
    if exc.status_code == 404:
        logger.warning(f"404 Not Found: {request.method} {request.url.path}")
    else:
        log_error(
            exc,
            context={"method": request.method, "path": request.url.path, "status_code": exc.status_code},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": exc.detail,
                "code": "HTTP_ERROR",
                "status_code": exc.status_code,
                "details": {},
            }
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report request validation failures as INVALID_INPUT."""
    errors = format_validation_errors(exc.errors())
    logger.warning(
        f"Validation error: {request.method} {request.url.path}",
        extra={"extra_fields": {"path": request.url.path, "validation_errors": errors}},
    )
    error = InvalidInputError("Validation failed", errors=errors)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    log_error(exc, context={"method": request.method, "path": request.url.path, "unhandled": True})
    message = "An internal server error occurred" if settings.is_production else str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "message": message,
                "code": "INTERNAL_SERVER_ERROR",
                "status_code": 500,
                "details": {} if settings.is_production else {"exception_type": type(exc).__name__},
            }
        },
    )


@app.get("/health")
async def health_check():
    """Liveness probe."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": __version__,
        "environment": settings.environment.value,
    }


@app.get("/ready")
async def readiness_check():
    """Readiness probe: the database must be reachable."""
    database_ok = await check_connection()
    content = {"status": "ready" if database_ok else "not_ready", "checks": {"database": database_ok}}
    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=content,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "consult_core.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
