"""SocialScout Core API - Main Application."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from socialscout_core.api.routes import campaigns as campaigns_routes
from socialscout_core.api.routes import contacts as contacts_routes
from socialscout_core.api.routes import export as export_routes
from socialscout_core.api.routes import scraping as scraping_routes
from socialscout_core.api.routes import tags as tags_routes
from socialscout_core.config import get_settings
from socialscout_core.observability import configure_logging
from socialscout_core.providers import build_mock_registry


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    settings = get_settings()
    configure_logging(settings.log_level, json_format=settings.log_json)
    app.state.settings = settings
    yield
    # Shutdown


def create_app() -> FastAPI:
    """Build the API application with the mock candidate sources."""
    settings = get_settings()

    app = FastAPI(
        title="SocialScout Core API",
        description="Social media contact scraping, tagging and export",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One registry per process, shared by all requests
    app.state.candidate_sources = build_mock_registry()

    app.include_router(scraping_routes.router)
    app.include_router(contacts_routes.router)
    app.include_router(tags_routes.router)
    app.include_router(campaigns_routes.router)
    app.include_router(export_routes.router)

    @app.get("/healthz")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"ok": True, "service": "socialscout-core"}

    @app.get("/")
    async def root() -> dict:
        """Root endpoint."""
        return {
            "name": "SocialScout Core API",
            "version": "0.1.0",
            "status": "running",
        }

    return app


app = create_app()
