from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select, literal_column
from sqlalchemy.ext.asyncio import AsyncSession

from fiscalizacion.config import settings
from fiscalizacion.api.v1.router import api_router
from fiscalizacion.database import get_db
from fiscalizacion.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    The legacy schema belongs to the monolith: nothing is created or seeded
    at startup.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    yield
    logger.info("Shutting down...")


# OpenAPI Tags with detailed descriptions
OPENAPI_TAGS = [
    {"name": "Fiscalizacion", "description": "Customs inspection registrations: prepare, apply and delete"},
    {"name": "Health", "description": "Service and database health"},
]

API_DESCRIPTION = """
## Fiscalizacion API

REST access to the customs inspection ("fiscalización") registration
workflows stored in the legacy Oracle tables.

### Error Codes

| Code | Description |
|------|-------------|
| 400 | Bad Request - Validation failed (`detail: [{campo, mensaje}]`) |
| 404 | Not Found - Guide, active action or registration doesn't exist |
| 500 | Internal Server Error |
"""


def _campo(loc) -> str:
    # Drop the "body"/"path" prefix FastAPI adds to error locations
    partes = [str(p) for p in loc]
    if partes and partes[0] in ("body", "path", "query"):
        partes = partes[1:]
    return ".".join(partes)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Answer validation errors with 400 and one {campo, mensaje} item per error."""
    errores = [
        {"campo": _campo(error.get("loc", ())), "mensaje": error.get("msg", "")}
        for error in exc.errors()
    ]
    logger.info(f"Validation failed on {request.method} {request.url.path}: {errores}")
    return JSONResponse(status_code=400, content={"detail": errores})


async def global_exception_handler(request: Request, exc: Exception):
    """Return error information for unhandled exceptions."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "type": type(exc).__name__,
            "path": str(request.url.path),
            "method": request.method,
        }
    )


async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check endpoint with database validation."""
    health_status = {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "database": "unknown"
        }
    }

    # Check database connectivity
    try:
        result = await db.execute(select(literal_column("1")))
        result.scalar()
        health_status["checks"]["database"] = "connected"
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = f"error: {str(e)}"

    # Return 503 if unhealthy
    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)

    return health_status


async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
    }


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=API_DESCRIPTION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=OPENAPI_TAGS,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/", root, methods=["GET"], tags=["Root"])

    return app


app = create_app()
