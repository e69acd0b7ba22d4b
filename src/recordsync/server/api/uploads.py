"""Upload queue API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from recordsync.server.api.deps import get_upload_queue
from recordsync.server.schemas import UploadQueueResponse, queue_to_response
from recordsync.sync.upload_queue import UploadQueue

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


@router.get("/status", response_model=UploadQueueResponse)
def upload_status(uploads: UploadQueue = Depends(get_upload_queue)) -> UploadQueueResponse:
    """Get queue depth, in-flight flag and pending tasks."""
    return queue_to_response(uploads.status())
