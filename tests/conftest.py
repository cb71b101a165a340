"""Pytest configuration and fixtures."""

import os
import tempfile
from typing import Generator

# Point the service at a throwaway database before the app is imported
_TEST_DIR = tempfile.mkdtemp(prefix="docproc-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR}/test.db"
os.environ["AI_MOCK_MODE"] = "true"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.docproc.database import init_db  # noqa: E402
from app.docproc.main import app  # noqa: E402
from app.docproc.services.job_manager import set_job_manager  # noqa: E402

from .fakes import GOOD_TEXT, FakeOCREngine, build_pdf, make_manager  # noqa: E402

init_db()

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def text_pdf_bytes() -> bytes:
    """A PDF with a readable text layer."""
    return build_pdf(
        [
            "Hello World. This document belongs to John Smith of Springfield.",
            "Contact john.smith@example.com for further information about it.",
        ]
    )


@pytest.fixture
def scanned_pdf_bytes() -> bytes:
    """A PDF without any text layer."""
    return build_pdf()


@pytest.fixture
def ocr_engine() -> FakeOCREngine:
    return FakeOCREngine(default=GOOD_TEXT)


@pytest_asyncio.fixture
async def manager(ocr_engine: FakeOCREngine):
    """Job manager on the test database with fake extraction backends."""
    job_manager = make_manager(ocr_engine=ocr_engine)
    yield job_manager
    await job_manager.stop()


@pytest.fixture
def client(ocr_engine: FakeOCREngine) -> Generator[TestClient, None, None]:
    """Create a test client whose job manager uses fake extraction backends."""
    set_job_manager(make_manager(ocr_engine=ocr_engine))
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
        set_job_manager(None)


@pytest.fixture
def subject() -> dict:
    return {"first_name": "John", "last_name": "Smith", "date_of_birth": "1990-05-15"}
