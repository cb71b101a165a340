"""
Router for job results.

Handles:
- Job listing (newest first)
- Job result retrieval
- Job deletion
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..models import (
    DeleteJobResponse,
    JobListResponse,
    JobResultResponse,
    JobSummaryResponse,
    isoformat,
)
from ..models_db import ProcessingJob
from ..services.job_manager import JobManager, get_job_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/results", tags=["results"])

JOB_NOT_FOUND = "Job not found."


def _full_name(job: ProcessingJob) -> str:
    return job.full_name or f"{job.first_name} {job.last_name}"


def job_to_result(job: ProcessingJob) -> JobResultResponse:
    return JobResultResponse(
        job_id=job.job_id,
        status=job.status.value,
        processing_method=job.processing_method.value,
        file_name=job.file_name,
        file_url=job.file_url,
        mime_type=job.mime_type,
        full_name=_full_name(job),
        age=job.age,
        raw_text=job.raw_text,
        structured_data=job.ai_extracted_data,
        error_message=job.error_message,
        created_at=isoformat(job.created_at),
        completed_at=isoformat(job.completed_at),
    )


@router.get("", response_model=JobListResponse)
async def list_jobs(
    manager: JobManager = Depends(get_job_manager),
) -> JobListResponse:
    """Get all processing jobs, newest first."""
    jobs = await manager.list_jobs()
    return JobListResponse(
        jobs=[
            JobSummaryResponse(
                job_id=job.job_id,
                file_name=job.file_name,
                full_name=_full_name(job),
                status=job.status.value,
                processing_method=job.processing_method.value,
                created_at=isoformat(job.created_at),
            )
            for job in jobs
        ],
        total=len(jobs),
    )


@router.get("/{job_id}", response_model=JobResultResponse)
async def get_result(
    job_id: str,
    manager: JobManager = Depends(get_job_manager),
) -> JobResultResponse:
    """
    Retrieve the state of a processing job.

    Returns:
        Job status; text and structured data once completed.
    """
    job = await manager.get_result(job_id)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=JOB_NOT_FOUND,
        )
    return job_to_result(job)


@router.delete("/{job_id}", response_model=DeleteJobResponse)
async def delete_job(
    job_id: str,
    manager: JobManager = Depends(get_job_manager),
) -> DeleteJobResponse:
    """Delete a job together with its stored file."""
    if not await manager.delete_job(job_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=JOB_NOT_FOUND,
        )
    return DeleteJobResponse(message="Job deleted", job_id=job_id)
