"""
Job lifecycle management.

submit() stores the upload and a ``processing`` job record, queues the work
and returns the job ID. A fixed pool of asyncio workers drains the queue:
extract text, optionally structure it with AI, and write the terminal
state. Callers observe progress only through the job store.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from ..models import Subject
from ..models_db import ProcessingJob, ProcessingMethod
from .ai import StructuringService, build_local_record
from .exceptions import JobValidationError, StorageError, UnsupportedMediaTypeError
from .extraction import PLACEHOLDER_TEXT, ExtractionChain
from .storage import BlobStore, JobStore
from .utils import calculate_age

logger = logging.getLogger(__name__)


@dataclass
class JobWorkItem:
    """Everything a worker needs to process one job."""

    job_id: str
    data: bytes
    mime_type: str
    subject: Subject
    processing_method: ProcessingMethod


class JobManager:
    """
    Creates jobs and runs them on a bounded worker pool.

    Args:
        blob_store: Storage for original uploads.
        job_store: Storage for job records.
        extraction_chain: Text extraction.
        structuring_service: AI structuring for ``ai`` jobs.
        max_workers: Number of jobs processed concurrently.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        job_store: JobStore,
        extraction_chain: ExtractionChain,
        structuring_service: StructuringService,
        max_workers: int = 4,
    ):
        self.blob_store = blob_store
        self.job_store = job_store
        self.extraction_chain = extraction_chain
        self.structuring_service = structuring_service
        self.max_workers = max(1, max_workers)
        self._queue: asyncio.Queue[JobWorkItem] | None = None
        self._workers: list[asyncio.Task] = []

    # =========================================================================
    # Worker Pool
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return bool(self._workers)

    async def start(self) -> None:
        """Start the worker pool. Safe to call more than once."""
        if self.is_running:
            return
        self._queue = asyncio.Queue()
        self._workers = [
            asyncio.create_task(self._worker(index), name=f"job-worker-{index}")
            for index in range(self.max_workers)
        ]
        logger.info("Started %d job worker(s)", self.max_workers)

    async def stop(self) -> None:
        """Cancel the workers. Jobs still queued stay in the processing state."""
        if not self.is_running:
            return
        pending = self._queue.qsize() if self._queue else 0
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self._queue = None
        if pending:
            logger.warning("Stopped job workers with %d job(s) still queued", pending)
        else:
            logger.info("Stopped job workers")

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        if self._queue is not None:
            await self._queue.join()

    async def _worker(self, index: int) -> None:
        while True:
            item = await self._queue.get()
            try:
                logger.info("Worker %d picked up job %s", index, item.job_id)
                await self.process_job(item)
            finally:
                self._queue.task_done()

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit(
        self,
        file_bytes: bytes,
        mime_type: str,
        file_name: str,
        subject: Subject | dict[str, Any],
        processing_method: ProcessingMethod | str = ProcessingMethod.STANDARD,
    ) -> str:
        """
        Create a job and queue it for processing.

        Only the upload and the initial job record are written before
        returning; extraction happens on the worker pool.

        Returns:
            The new job ID.

        Raises:
            JobValidationError: If the submission is malformed.
            StorageError: If the file or job record cannot be stored.
        """
        subject = self._validate_subject(subject)
        method = self._validate_method(processing_method)
        if not file_bytes:
            raise JobValidationError("Empty file provided")
        if not file_name:
            raise JobValidationError("No filename provided")

        job_id = str(uuid.uuid4())
        logger.info("Starting document processing job %s (%s)", job_id, method.value)

        file_url = await asyncio.to_thread(self.blob_store.put, file_bytes, file_name, mime_type)
        try:
            await asyncio.to_thread(
                self.job_store.insert,
                ProcessingJob(
                    job_id=job_id,
                    file_url=file_url,
                    file_name=file_name,
                    mime_type=mime_type,
                    first_name=subject.first_name,
                    last_name=subject.last_name,
                    date_of_birth=subject.date_of_birth,
                    processing_method=method,
                ),
            )
        except StorageError as e:
            logger.error("Failed to create job %s: %s", job_id, e)
            await self._discard_upload(file_url)
            raise

        if not self.is_running:
            await self.start()
        self._queue.put_nowait(
            JobWorkItem(
                job_id=job_id,
                data=file_bytes,
                mime_type=mime_type,
                subject=subject,
                processing_method=method,
            )
        )
        return job_id

    async def _discard_upload(self, file_url: str) -> None:
        """Remove an upload whose job record was never written."""
        try:
            await asyncio.to_thread(self.blob_store.delete_by_url, file_url)
        except StorageError as e:
            logger.error("Failed to remove orphaned upload %s: %s", file_url, e)

    @staticmethod
    def _validate_subject(subject: Subject | dict[str, Any]) -> Subject:
        if isinstance(subject, Subject):
            return subject
        try:
            return Subject.model_validate(subject)
        except ValidationError as e:
            raise JobValidationError(f"Invalid subject: {e}") from e

    @staticmethod
    def _validate_method(method: ProcessingMethod | str) -> ProcessingMethod:
        if isinstance(method, ProcessingMethod):
            return method
        try:
            return ProcessingMethod((method or ProcessingMethod.STANDARD.value).lower())
        except ValueError as e:
            raise JobValidationError(
                f"Invalid processing method: {method!r} (expected 'standard' or 'ai')"
            ) from e

    # =========================================================================
    # Processing
    # =========================================================================

    async def process_job(self, item: JobWorkItem) -> None:
        """
        Run one job to a terminal state.

        Extraction and AI problems degrade the content and still complete
        the job. Unsupported file types, storage failures and anything else
        unexpected fail it.
        """
        job_id = item.job_id
        try:
            raw_text = await self._extract(item)

            structured_data = None
            if item.processing_method is ProcessingMethod.AI:
                structured_data = await self._structure(item, raw_text)

            written = await asyncio.to_thread(
                self.job_store.complete,
                job_id,
                {
                    "raw_text": raw_text,
                    "ai_extracted_data": structured_data,
                    "full_name": item.subject.full_name,
                    "age": calculate_age(item.subject.date_of_birth),
                },
            )
            if written:
                logger.info("Document processing completed for job %s", job_id)
            else:
                logger.warning("Job %s is no longer processing; result discarded", job_id)

        except Exception as e:
            logger.exception("Error processing document for job %s", job_id)
            await self._mark_failed(job_id, e)

    async def _extract(self, item: JobWorkItem) -> str:
        try:
            outcome = await self.extraction_chain.run(item.data, item.mime_type)
        except UnsupportedMediaTypeError:
            raise
        except Exception:
            logger.exception("Text extraction crashed for job %s; using placeholder", item.job_id)
            return PLACEHOLDER_TEXT

        logger.info(
            "Text extraction completed for job %s: %d chars via %s%s",
            item.job_id,
            len(outcome.text),
            outcome.strategy,
            " (degraded)" if outcome.degraded else "",
        )
        return outcome.text

    async def _structure(self, item: JobWorkItem, raw_text: str) -> dict[str, Any]:
        logger.info("Starting AI processing for job %s", item.job_id)
        try:
            return await self.structuring_service.structure(
                raw_text, item.subject.date_of_birth
            )
        except Exception as e:
            logger.exception("AI structuring crashed for job %s; using local extractor", item.job_id)
            return build_local_record(
                raw_text,
                item.subject.date_of_birth,
                error=f"AI structuring failed: {e}",
            )

    async def _mark_failed(self, job_id: str, error: Exception) -> None:
        try:
            await asyncio.to_thread(self.job_store.fail, job_id, str(error))
        except Exception:
            # Nothing else can record the failure; the job stays "processing"
            logger.exception("Failed to update error status for job %s", job_id)

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_result(self, job_id: str) -> ProcessingJob | None:
        return await asyncio.to_thread(self.job_store.get, job_id)

    async def list_jobs(self) -> list[ProcessingJob]:
        return await asyncio.to_thread(self.job_store.list)

    async def delete_job(self, job_id: str) -> bool:
        """
        Delete a job and its stored upload.

        Returns:
            False if the job does not exist.
        """
        job = await asyncio.to_thread(self.job_store.get, job_id)
        if job is None:
            return False

        deleted = await asyncio.to_thread(self.job_store.delete, job_id)
        if not deleted:
            return False

        if not await asyncio.to_thread(self.blob_store.delete_by_url, job.file_url):
            logger.warning("Stored file for job %s was already gone", job_id)
        logger.info("Deleted job %s", job_id)
        return True


# =============================================================================
# Singleton Factory
# =============================================================================

_job_manager: JobManager | None = None


def get_job_manager() -> JobManager:
    """Get or create the job manager singleton."""
    global _job_manager
    if _job_manager is None:
        from ..config import get_settings
        from .ai import get_structuring_service
        from .extraction import build_extraction_chain

        _job_manager = JobManager(
            blob_store=BlobStore(),
            job_store=JobStore(),
            extraction_chain=build_extraction_chain(),
            structuring_service=get_structuring_service(),
            max_workers=get_settings().max_concurrent_jobs,
        )
    return _job_manager


def set_job_manager(manager: JobManager | None) -> None:
    """Replace the job manager singleton (used by tests)."""
    global _job_manager
    _job_manager = manager
