"""FastAPI application entry point."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, trip
from .config import settings
from .services.routing.backend_client import TripBackendClient
from .services.trip.session import TripSession


def create_app(session: TripSession | None = None) -> FastAPI:
    app = FastAPI(title=settings.app_name, root_path="")
    app.state.trip_session = session or TripSession(client=TripBackendClient())
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "trip": f"{settings.api_prefix}/trip",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(trip.router, prefix=settings.api_prefix)
    return app


app = create_app()
