"""
Exceptions raised by the document processing pipeline.
"""


class DocumentProcessingError(Exception):
    """Base class for pipeline errors."""

    pass


class JobValidationError(DocumentProcessingError):
    """Raised when a submission is malformed (missing fields, bad dates)."""

    pass


class StorageError(DocumentProcessingError):
    """Raised when the blob store or job store cannot be read or written."""

    pass


class UnsupportedMediaTypeError(DocumentProcessingError):
    """Raised when a document's MIME type has no extraction path."""

    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"Unsupported file type: {mime_type}")


class ExtractionDegraded(DocumentProcessingError):
    """No extraction strategy produced usable text."""

    pass


class StructuringDegraded(DocumentProcessingError):
    """The AI service failed or answered with something unusable."""

    pass
