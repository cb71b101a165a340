"""
Router for stored file retrieval.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..services.job_manager import JobManager, get_job_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/{blob_id}")
async def get_file(
    blob_id: str,
    manager: JobManager = Depends(get_job_manager),
) -> Response:
    """
    Retrieve an uploaded document.

    Args:
        blob_id: ID from the job's file URL.

    Returns:
        Original file content with its content-type.
    """
    stored = await asyncio.to_thread(manager.blob_store.get, blob_id)
    if stored is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"File {blob_id} not found",
        )

    return Response(
        content=stored.content,
        media_type=stored.mime_type,
        headers={
            "Content-Disposition": f'inline; filename="{stored.file_name}"',
        },
    )
