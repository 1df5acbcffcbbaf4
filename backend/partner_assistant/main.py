"""Main FastAPI application entry point."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from partner_assistant.config import config
from partner_assistant.models import HealthResponse
from partner_assistant.routes import proxy, report, settings, supervisor
from partner_assistant.routes.responses import error_response
from partner_assistant.services.openarena_client import close_openarena_client

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

# Set specific loggers to appropriate levels
logging.getLogger("partner_assistant").setLevel(logging.INFO)
logging.getLogger("langgraph").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler."""
    # Startup
    agents = config.get_agent_descriptors()
    logger.info("Starting E-Invoicing Partner Assistant...")
    logger.info(f"Inference endpoint: {config.settings.openarena_base_url}")
    for agent in agents:
        logger.info(f"  {agent.key}: {agent.name} -> workflow {agent.workflow_id}")

    yield

    # Shutdown
    logger.info("Shutting down E-Invoicing Partner Assistant...")
    await close_openarena_client()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app_config = config.yaml_config.get("app", {})
    name = app_config.get("name", "E-Invoicing Partner Assistant")
    version = app_config.get("version", "1.0.0")

    app = FastAPI(
        title=name,
        version=version,
        description="Multi-agent chat and onboarding reports for the e-invoicing API",
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed or incomplete request bodies are a 400, not FastAPI's default 422."""
        logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
        return error_response(
            400,
            "Invalid request",
            message="Request body is missing required fields or has invalid values",
            details=[
                {"loc": list(err.get("loc", [])), "msg": err.get("msg", "")}
                for err in exc.errors()
            ],
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Only 400/404/500 are part of the API surface
        if exc.status_code >= 500:
            return error_response(500, "Internal server error", message=str(exc.detail))
        if exc.status_code == 400:
            return error_response(400, str(exc.detail))
        return error_response(404, "Not found", message=f"{request.method} {request.url.path}")

    # Include routers
    app.include_router(proxy.router, prefix="/api")
    app.include_router(supervisor.router, prefix="/api")
    app.include_router(report.router, prefix="/api")
    app.include_router(settings.router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": name,
            "version": version,
            "endpoints": {
                "chat": "POST /api/proxy",
                "supervisor": "POST /api/supervisor",
                "report": "POST /api/generate-report",
            },
            "docs": "/docs",
        }

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Simple health check."""
        return HealthResponse(
            status="healthy",
            version=version,
            timestamp=datetime.now(),
            services={agent.key: agent.workflow_id for agent in config.get_agent_descriptors()},
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "partner_assistant.main:app",
        host=config.settings.host,
        port=config.settings.port,
        reload=config.settings.debug,
    )
