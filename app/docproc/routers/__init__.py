"""
Routers package for FastAPI endpoints.

Organized by domain:
- upload: Document upload and job creation
- results: Job polling, listing and deletion
- files: Stored upload retrieval
"""

from . import files, results, upload

__all__ = ["files", "results", "upload"]
