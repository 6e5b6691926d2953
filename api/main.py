"""
Event Lead Rewards API - Main Application.

FastAPI application with CORS enabled for the event site.

Every error response has the shape
`{"success": false, "error": <message>, "code": <CODE>}`.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import __version__
from services.errors import ServiceError
from settings import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Event Lead Rewards API",
    description="Lead capture, prize wheel, survey gifts and AI photos for event attendees",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "code": code},
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render service errors with their stable code."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "%s %s -> %s",
        request.method,
        request.url.path,
        exc.code,
        extra={"status_code": exc.status_code, "code": exc.code},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
    return _error(exc.status_code, str(exc.detail), code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are INVALID_INPUT (400)."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(loc) for loc in first.get("loc", ()) if loc != "body")
    message = f"Invalid {field}" if field else "Invalid request body"

    logger.info(
        "Validation error: %s %s",
        request.method,
        request.url.path,
        extra={"validation_errors": [e.get("msg") for e in errors]},
    )
    return _error(400, message, "INVALID_INPUT")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unexpected is logged in full and reported opaquely."""
    logger.exception(
        "Unhandled error: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return _error(500, "Internal server error", "INTERNAL_ERROR")


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "event-lead-rewards-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Event Lead Rewards API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import ai_photo, leads, pesquisa, roleta  # noqa: E402

app.include_router(leads.router, prefix="/api/v1", tags=["Leads"])
app.include_router(roleta.router, prefix="/api/v1", tags=["Prize Wheel"])
app.include_router(pesquisa.router, prefix="/api/v1", tags=["Survey"])
app.include_router(ai_photo.router, prefix="/api/v1", tags=["AI Photo"])
