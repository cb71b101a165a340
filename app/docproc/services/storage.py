"""
Persistence for uploaded files and processing jobs.

BlobStore keeps original uploads; JobStore is plain CRUD over job rows
plus the guarded terminal transitions. Both wrap SQLAlchemy errors in
StorageError.
"""

import hashlib
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import SessionLocal
from ..models_db import JobStatus, ProcessingJob, StoredFile
from .exceptions import StorageError

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


class BlobStore:
    """
    Durable storage for original uploads.

    Args:
        session_factory: Creates database sessions.
        url_prefix: Path the files router serves blobs under.
    """

    def __init__(self, session_factory: SessionFactory = SessionLocal, url_prefix: str = "/files"):
        self.session_factory = session_factory
        self.url_prefix = url_prefix.rstrip("/")

    def url_for(self, blob_id: str) -> str:
        return f"{self.url_prefix}/{blob_id}"

    def blob_id_from_url(self, url: str) -> str | None:
        prefix = f"{self.url_prefix}/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):]

    def put(self, data: bytes, name: str, mime_type: str) -> str:
        """
        Store a file.

        Returns:
            URL the file can be retrieved from.

        Raises:
            StorageError: If the write fails.
        """
        blob_id = str(uuid.uuid4())
        try:
            with self.session_factory() as db:
                db.add(
                    StoredFile(
                        id=blob_id,
                        file_name=name,
                        mime_type=mime_type,
                        file_size_bytes=len(data),
                        file_hash=hashlib.sha256(data).hexdigest(),
                        content=data,
                    )
                )
                db.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to store file %s: %s", name, e)
            raise StorageError(f"Failed to store file: {e}") from e

        logger.info("Stored file %s as %s (%d bytes)", name, blob_id, len(data))
        return self.url_for(blob_id)

    def get(self, blob_id: str) -> StoredFile | None:
        try:
            with self.session_factory() as db:
                return db.query(StoredFile).filter(StoredFile.id == blob_id).first()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read file {blob_id}: {e}") from e

    def delete(self, blob_id: str) -> bool:
        try:
            with self.session_factory() as db:
                deleted = db.query(StoredFile).filter(StoredFile.id == blob_id).delete()
                db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete file {blob_id}: {e}") from e
        return deleted > 0

    def delete_by_url(self, url: str) -> bool:
        blob_id = self.blob_id_from_url(url)
        if blob_id is None:
            logger.warning("Not a blob URL of this store: %s", url)
            return False
        return self.delete(blob_id)


class JobStore:
    """
    CRUD persistence of processing jobs.

    Terminal transitions go through complete() and fail(), which only touch
    rows still in the processing state.
    """

    def __init__(self, session_factory: SessionFactory = SessionLocal):
        self.session_factory = session_factory

    def insert(self, job: ProcessingJob) -> str:
        job_id = job.job_id
        try:
            with self.session_factory() as db:
                db.add(job)
                db.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to insert job %s: %s", job_id, e)
            raise StorageError(f"Failed to store job metadata: {e}") from e
        return job_id

    def get(self, job_id: str) -> ProcessingJob | None:
        try:
            with self.session_factory() as db:
                return db.query(ProcessingJob).filter(ProcessingJob.job_id == job_id).first()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to fetch job {job_id}: {e}") from e

    def list(self) -> list[ProcessingJob]:
        """All jobs, newest first."""
        try:
            with self.session_factory() as db:
                return (
                    db.query(ProcessingJob)
                    .order_by(ProcessingJob.created_at.desc(), ProcessingJob.id.desc())
                    .all()
                )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list jobs: {e}") from e

    def update(
        self,
        job_id: str,
        values: dict[str, Any],
        only_status: JobStatus | None = None,
    ) -> bool:
        """
        Update columns of a job.

        Args:
            job_id: Job to update.
            values: Column values to set.
            only_status: If given, update only while the job has this status.

        Returns:
            Whether a row was updated.
        """
        values = {**values, "updated_at": datetime.utcnow()}
        try:
            with self.session_factory() as db:
                query = db.query(ProcessingJob).filter(ProcessingJob.job_id == job_id)
                if only_status is not None:
                    query = query.filter(ProcessingJob.status == only_status)
                updated = query.update(values, synchronize_session=False)
                db.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to update job %s: %s", job_id, e)
            raise StorageError(f"Failed to update job {job_id}: {e}") from e
        return updated > 0

    def complete(self, job_id: str, values: dict[str, Any]) -> bool:
        return self.update(
            job_id,
            {**values, "status": JobStatus.COMPLETED, "completed_at": datetime.utcnow()},
            only_status=JobStatus.PROCESSING,
        )

    def fail(self, job_id: str, error_message: str) -> bool:
        return self.update(
            job_id,
            {
                "status": JobStatus.FAILED,
                "error_message": error_message,
                "completed_at": datetime.utcnow(),
            },
            only_status=JobStatus.PROCESSING,
        )

    def delete(self, job_id: str) -> bool:
        try:
            with self.session_factory() as db:
                deleted = (
                    db.query(ProcessingJob)
                    .filter(ProcessingJob.job_id == job_id)
                    .delete()
                )
                db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete job {job_id}: {e}") from e
        return deleted > 0
