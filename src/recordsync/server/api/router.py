"""Main API router that includes all sub-routers."""

from __future__ import annotations

from fastapi import APIRouter

from recordsync.server.api import entities, health, migration, records, uploads

router = APIRouter()

# Include all API routers
router.include_router(health.router)
router.include_router(entities.router)
router.include_router(uploads.router)
router.include_router(records.router)
router.include_router(migration.router)
