"""
CareTrack - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import messages_router, notes_router, rarescope_router, tracking_router
from .config import settings
from .core.errors import CareTrackError
from .core.logging_config import setup_logging
from .llm.factory import create_llm_provider
from .middleware import RequestLoggingMiddleware
from .services import InsightGenerator
from .storage.factory import create_document_store

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)

    store = create_document_store(settings)
    llm_provider = create_llm_provider(
        provider=settings.llm_provider,
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        timeout=settings.llm_timeout,
    )
    app.state.store = store
    app.state.insight_generator = InsightGenerator(llm_provider, model=settings.insights_model)

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Storage backend: {settings.storage_type}")
    if llm_provider is None:
        logger.warning("No LLM API key configured, insights will be rule-based only")
    logger.info(f"Log level: {settings.log_level.upper()}")
    logger.info(f"Debug mode: {settings.debug}")
    yield
    # Shutdown
    await store.close()
    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Patient condition tracking: imports, statistics and insights",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware (after CORS)
if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(CareTrackError)
async def caretrack_error_handler(request: Request, exc: CareTrackError):
    """Render domain errors as the standard failure envelope."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message}", exc_info=exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message},
    )


# Include routers
app.include_router(tracking_router)
app.include_router(notes_router)
app.include_router(messages_router)
app.include_router(rarescope_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    store_ok = await request.app.state.store.ping()
    return {
        "status": "healthy" if store_ok else "degraded",
        "storage": settings.storage_type,
        "version": settings.app_version,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "caretrack.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
