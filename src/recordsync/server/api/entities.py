"""Entity registry API route."""

from __future__ import annotations

from fastapi import APIRouter

from recordsync.server.schemas import EntityResponse, entity_to_response
from recordsync.sync.entities import iter_entities

router = APIRouter(prefix="/api", tags=["entities"])


@router.get("/entities", response_model=list[EntityResponse])
def list_entities() -> list[EntityResponse]:
    """List registered entities in registry order."""
    return [entity_to_response(spec) for spec in iter_entities()]
