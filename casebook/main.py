"""
Casebook - FastAPI Application
Serves markdown-backed case articles publicly and lets an admin manage them.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from casebook.api.middleware import register_middleware
from casebook.api.models import ErrorResponse
from casebook.api.routes import all_routers
from casebook.config import Config, config
from casebook.errors import (
    BackendError,
    CaseStoreError,
    ConflictError,
    FormatError,
    NotFoundError,
    ValidationError,
)
from casebook.services.case_service import CaseDirectory
from casebook.storage import create_backend
from casebook.store import CaseStore, ListErrorPolicy

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

# Domain error -> HTTP status
ERROR_STATUS = {
    ValidationError: 400,
    FormatError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    BackendError: 500,
}


def build_store(settings: Config) -> CaseStore:
    """Build the case store for the configured backend."""
    settings.validate()
    backend = create_backend(**settings.get_backend_config())
    return CaseStore(
        backend,
        list_errors=ListErrorPolicy(settings.LIST_ERROR_POLICY.lower()),
    )


def create_app(store: Optional[CaseStore] = None, settings: Optional[Config] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        store: Case store to serve. Built from ``settings`` at startup when omitted.
        settings: Configuration; defaults to the process-wide ``config``.
    """
    settings = settings or config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.
        Handles startup and shutdown events.
        """
        # Startup
        logger.info("Starting Casebook...")

        try:
            case_store = store or build_store(settings)
        except ValueError as e:
            logger.error(f"Configuration error: {e}")
            raise

        app.state.directory = CaseDirectory(case_store)
        logger.info(f"Storage backend: {case_store.backend.name}")
        if not settings.ADMIN_API_KEY:
            logger.warning("ADMIN_API_KEY is not set; admin routes are disabled")

        yield

        # Shutdown
        logger.info("Shutting down Casebook...")
        await case_store.backend.close()

    app = FastAPI(
        title="Casebook API",
        description="Markdown-backed case articles with an admin backend",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = settings

    register_middleware(app)
    for router in all_routers:
        app.include_router(router)

    # Exception handlers
    @app.exception_handler(CaseStoreError)
    async def case_store_error_handler(request, exc: CaseStoreError):
        status_code = next(
            (code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)),
            500,
        )
        if status_code >= 500:
            logger.error(f"Storage failure on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=exc.detail).model_dump(exclude_none=True),
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request, exc):
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="Invalid request", detail=str(exc)).model_dump(),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        logger.error(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Internal server error", detail=str(exc)).model_dump(),
        )

    return app


app = create_app()


# Entry point for running with uvicorn directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "casebook.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=False,
        log_level=config.LOG_LEVEL.lower()
    )
