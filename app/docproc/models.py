"""
Pydantic models for the document processing service.

Defines the submission subject, the structured record produced by AI
structuring, and the API response payloads.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .services.utils import parse_iso_date


class Subject(BaseModel):
    """
    The person a submitted document is about.

    Attributes:
        first_name: Given name, required.
        last_name: Family name, required.
        date_of_birth: Date of birth, supplied as YYYY-MM-DD.
    """

    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    date_of_birth: date

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def validate_date_format(cls, v: Any) -> date:
        """Only YYYY-MM-DD strings (or dates) are accepted."""
        if isinstance(v, date):
            return v
        if not isinstance(v, str):
            raise ValueError("Date of birth must be a YYYY-MM-DD string")
        return parse_iso_date(v)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# =============================================================================
# Structured Record Models
# =============================================================================


class _CamelModel(BaseModel):
    """Serialized with camelCase keys, the shape the AI service is asked for."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PersonalInfo(_CamelModel):
    full_name: str | None = None
    date_of_birth: str
    age: int


class ContactInfo(_CamelModel):
    emails: list[str] = Field(default_factory=list)
    phone_numbers: list[str] = Field(default_factory=list)


class StructuredRecord(_CamelModel):
    """
    Structured data extracted from a document.

    ``note`` marks records built without AI; ``error`` names the failure
    that forced the fallback.
    """

    personal_info: PersonalInfo
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    addresses: list[str] = Field(default_factory=list)
    identification_numbers: list[str] = Field(default_factory=list)
    key_dates: list[str] = Field(default_factory=list)
    summary: str = ""
    note: str | None = None
    error: str | None = None


# =============================================================================
# API Models
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(default="1.0.0")
    message: str | None = Field(default=None)
    database: str | None = Field(default=None, description="Database connectivity")


class UploadResponse(BaseModel):
    """Response model for the upload endpoint."""

    message: str = Field(..., description="Status message")
    job_id: str = Field(..., description="Job ID (UUID)")


class JobResultResponse(BaseModel):
    """Full state of a processing job."""

    job_id: str = Field(..., description="Job ID (UUID)")
    status: str = Field(..., description="processing, completed or failed")
    processing_method: str = Field(..., description="standard or ai")
    file_name: str = Field(..., description="Original filename")
    file_url: str = Field(..., description="Where the original upload can be fetched")
    mime_type: str = Field(..., description="MIME type of the upload")
    full_name: str = Field(..., description="Subject's full name")
    age: int | None = Field(default=None, description="Subject's age at completion")
    raw_text: str | None = Field(default=None, description="Extracted text")
    structured_data: dict[str, Any] | None = Field(
        default=None,
        description="Structured record (AI jobs only)",
    )
    error_message: str | None = Field(default=None, description="Error message (if failed)")
    created_at: str = Field(..., description="Creation timestamp (ISO format)")
    completed_at: str | None = Field(default=None, description="Completion timestamp")


class JobSummaryResponse(BaseModel):
    """Summary of a job for listings."""

    job_id: str = Field(..., description="Job ID (UUID)")
    file_name: str = Field(..., description="Original filename")
    full_name: str = Field(..., description="Subject's full name")
    status: str = Field(..., description="Processing status")
    processing_method: str = Field(..., description="standard or ai")
    created_at: str = Field(..., description="Creation timestamp (ISO format)")


class JobListResponse(BaseModel):
    """Response model for listing jobs."""

    jobs: list[JobSummaryResponse] = Field(
        default_factory=list,
        description="Jobs, newest first",
    )
    total: int = Field(..., ge=0, description="Total number of jobs")


class DeleteJobResponse(BaseModel):
    """Response model for job deletion."""

    message: str = Field(..., description="Status message")
    job_id: str = Field(..., description="Deleted job ID")


def isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
