"""FastAPI application for the instructor travel allowance service."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .api.routes import health, travel
from .config import settings


def _mount_snapshot_files(app: FastAPI) -> None:
    # Only a relative base URL is served from here; absolute URLs point at a CDN
    if not settings.storage_base_url.startswith("/"):
        return
    app.mount(
        settings.storage_base_url.rstrip("/"),
        StaticFiles(directory=settings.data_root / "uploads", check_dir=False),
        name="files",
    )


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name)
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "travel_api": f"{settings.api_prefix}{travel.router.prefix}",
            "health": f"{settings.api_prefix}/health",
            "snapshots": settings.storage_base_url,
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(travel.router, prefix=settings.api_prefix)
    _mount_snapshot_files(app)
    return app


app = create_app()
