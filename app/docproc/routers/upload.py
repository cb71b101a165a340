"""
Router for document upload.

Handles:
- Document upload (PDF or image) and job creation
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from ..config import Settings, get_settings
from ..models import UploadResponse
from ..services.job_manager import JobManager, get_job_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["upload"])

ALLOWED_MIME_TYPES = {"application/pdf", "image/jpeg", "image/png", "image/jpg"}

INVALID_FILE_TYPE = "Invalid file type. Only PDF and images are allowed."
MISSING_FIELDS = "Missing required fields: firstName, lastName, or dob."


@router.post("/upload", response_model=UploadResponse)
async def upload_document(
    file: Annotated[UploadFile, File(description="PDF or image to process")],
    first_name: Annotated[str | None, Form(alias="firstName")] = None,
    last_name: Annotated[str | None, Form(alias="lastName")] = None,
    dob: Annotated[str | None, Form(description="Date of birth, YYYY-MM-DD")] = None,
    processing_method: Annotated[
        str | None,
        Form(alias="processingMethod", description="standard or ai"),
    ] = None,
    manager: JobManager = Depends(get_job_manager),
    settings: Settings = Depends(get_settings),
) -> UploadResponse:
    """
    Upload a document and start processing it.

    Stores the file, creates a job in the ``processing`` state and returns
    its ID immediately. Poll GET /results/{job_id} for the outcome.
    """
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No filename provided",
        )

    if file.content_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=INVALID_FILE_TYPE,
        )

    if not first_name or not last_name or not dob:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=MISSING_FIELDS,
        )

    try:
        file_bytes = await file.read()
    finally:
        await file.close()

    if not file_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Empty file provided",
        )

    if len(file_bytes) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File too large",
        )

    logger.info(
        "File upload received: %s (%d bytes, method=%s)",
        file.filename,
        len(file_bytes),
        processing_method or "standard",
    )

    # JobValidationError and StorageError are mapped by the app's exception handlers
    job_id = await manager.submit(
        file_bytes,
        mime_type=file.content_type,
        file_name=file.filename,
        subject={"first_name": first_name, "last_name": last_name, "date_of_birth": dob},
        processing_method=processing_method or "standard",
    )

    logger.info("Document processing started: job %s", job_id)
    return UploadResponse(message="Document uploaded successfully", job_id=job_id)
