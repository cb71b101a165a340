"""
SQLAlchemy database models for the document processing service.

This module defines the ORM models for persisting processing jobs and
the uploaded files they were created from.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, Enum, Integer, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class JobStatus(enum.Enum):
    """Status of a job in the processing pipeline."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ProcessingMethod(enum.Enum):
    """How extracted text is post-processed."""

    STANDARD = "standard"
    AI = "ai"


class StoredFile(Base):
    """
    An uploaded original document.

    Holds the raw file content so the upload stays retrievable after
    processing has finished.
    """

    __tablename__ = "stored_files"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    file_name: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )
    mime_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    file_size_bytes: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    file_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="SHA-256 hash of the content",
    )
    content: Mapped[bytes] = mapped_column(
        LargeBinary,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StoredFile(id={self.id}, file_name='{self.file_name}')>"


class ProcessingJob(Base):
    """
    A single document processing job.

    Created in the ``processing`` state at submission and written exactly
    once more when the background work reaches a terminal state.
    """

    __tablename__ = "document_processing_jobs"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    job_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        unique=True,
        index=True,
    )
    file_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    file_name: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )
    mime_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    first_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    last_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    date_of_birth: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    processing_method: Mapped[ProcessingMethod] = mapped_column(
        Enum(ProcessingMethod),
        nullable=False,
    )
    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus),
        default=JobStatus.PROCESSING,
        nullable=False,
        index=True,
    )
    raw_text: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    ai_extracted_data: Mapped[dict | None] = mapped_column(
        JSON,
        nullable=True,
        comment="Structured record for AI jobs",
    )
    full_name: Mapped[str | None] = mapped_column(
        String(512),
        nullable=True,
    )
    age: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )
    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime,
        nullable=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ProcessingJob(job_id={self.job_id}, status={self.status.value})>"
