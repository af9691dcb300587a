# src/petsocial_moderation/main.py
"""ASGI application for the moderation and audit service."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from petsocial_moderation.api.v1 import audit_router, moderation_router, system_router
from petsocial_moderation.core.settings import settings
from petsocial_moderation.services.maintenance import MaintenanceWorker

SERVICE_DESCRIPTION = "Moderation actions and audit trail for the pet social network"
API_PREFIX = "/api/v1"

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description=SERVICE_DESCRIPTION,
    version=settings.app_version,
)

# Admin dashboard runs on a separate origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Audit log listings can be large
app.add_middleware(GZipMiddleware)

for router in (moderation_router, audit_router, system_router):
    app.include_router(router, prefix=API_PREFIX)


@app.on_event("startup")
async def start_maintenance() -> None:
    app.state.maintenance_worker = None
    if not settings.maintenance_worker_enabled:
        return
    worker = MaintenanceWorker()
    await worker.start()
    app.state.maintenance_worker = worker
    logger.info("Maintenance worker started (interval %.0fs)", worker.interval)


@app.on_event("shutdown")
async def stop_maintenance() -> None:
    worker: MaintenanceWorker | None = getattr(app.state, "maintenance_worker", None)
    if worker is not None:
        await worker.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": SERVICE_DESCRIPTION,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("petsocial_moderation.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
