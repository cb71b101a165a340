"""Tests for FastAPI endpoints."""

import time

from fastapi.testclient import TestClient

from app.docproc.config import Settings, get_settings
from app.docproc.main import app

from .fakes import GOOD_TEXT

FORM = {"firstName": "John", "lastName": "Smith", "dob": "1990-05-15"}
PNG_BYTES = b"\x89PNG\r\n\x1a\n fake image content"


def upload(client: TestClient, data=None, content=PNG_BYTES, content_type="image/png"):
    return client.post(
        "/upload",
        files={"file": ("scan.png", content, content_type)},
        data=FORM if data is None else data,
    )


def wait_for_job(client: TestClient, job_id: str, timeout: float = 5.0) -> dict:
    """Poll the result endpoint until the job leaves the processing state."""
    deadline = time.monotonic() + timeout
    while True:
        response = client.get(f"/results/{job_id}")
        assert response.status_code == 200
        result = response.json()
        if result["status"] != "processing" or time.monotonic() > deadline:
            return result
        time.sleep(0.05)


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, client: TestClient):
        """Test root endpoint returns health status."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    def test_health_endpoint(self, client: TestClient):
        """Test /health endpoint checks the database."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"


class TestUploadEndpoint:
    """Tests for POST /upload endpoint."""

    def test_upload_rejects_unsupported_type(self, client: TestClient):
        """Test that files other than PDFs and images are rejected."""
        response = upload(client, content=b"hello", content_type="text/plain")
        assert response.status_code == 400
        assert "Invalid file type" in response.json()["detail"]

    def test_upload_requires_subject_fields(self, client: TestClient):
        response = upload(client, data={"firstName": "John", "dob": "1990-05-15"})
        assert response.status_code == 400
        assert "Missing required fields" in response.json()["detail"]

    def test_upload_rejects_bad_date(self, client: TestClient):
        response = upload(client, data={**FORM, "dob": "15/05/1990"})
        assert response.status_code == 400
        assert "date" in response.json()["detail"].lower()

    def test_upload_rejects_unknown_method(self, client: TestClient):
        response = upload(client, data={**FORM, "processingMethod": "magic"})
        assert response.status_code == 400

    def test_upload_rejects_empty_file(self, client: TestClient):
        response = upload(client, content=b"")
        assert response.status_code == 400
        assert "Empty" in response.json()["detail"]

    def test_upload_rejects_large_file(self, client: TestClient):
        """Test that uploads over the size limit get 413."""
        app.dependency_overrides[get_settings] = lambda: Settings(max_upload_bytes=16)
        response = upload(client, content=b"x" * 17)
        assert response.status_code == 413

    def test_upload_returns_job_id(self, client: TestClient):
        response = upload(client)
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Document uploaded successfully"
        assert data["job_id"]


class TestResultsEndpoints:
    """Tests for the /results endpoints."""

    def test_standard_job_end_to_end(self, client: TestClient):
        """Test upload, polling to completion and retrieval of the stored file."""
        job_id = upload(client).json()["job_id"]

        result = wait_for_job(client, job_id)

        assert result["status"] == "completed"
        assert result["processing_method"] == "standard"
        assert result["raw_text"] == GOOD_TEXT
        assert result["full_name"] == "John Smith"
        assert result["age"] >= 34
        assert result["structured_data"] is None
        assert result["completed_at"] is not None

        stored = client.get(result["file_url"])
        assert stored.status_code == 200
        assert stored.content == PNG_BYTES
        assert stored.headers["content-type"] == "image/png"

    def test_ai_job_end_to_end(self, client: TestClient):
        job_id = upload(client, data={**FORM, "processingMethod": "ai"}).json()["job_id"]

        result = wait_for_job(client, job_id)

        assert result["status"] == "completed"
        assert result["processing_method"] == "ai"
        personal_info = result["structured_data"]["personalInfo"]
        assert personal_info["dateOfBirth"] == "1990-05-15"

    def test_pdf_upload_is_accepted(self, client: TestClient, text_pdf_bytes: bytes):
        response = client.post(
            "/upload",
            files={"file": ("letter.pdf", text_pdf_bytes, "application/pdf")},
            data=FORM,
        )
        assert response.status_code == 200

    def test_list_results(self, client: TestClient):
        job_id = upload(client).json()["job_id"]
        wait_for_job(client, job_id)

        response = client.get("/results")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == len(data["jobs"])
        summary = next(job for job in data["jobs"] if job["job_id"] == job_id)
        assert summary["full_name"] == "John Smith"
        assert summary["file_name"] == "scan.png"

    def test_unknown_job_returns_404(self, client: TestClient):
        response = client.get("/results/does-not-exist")
        assert response.status_code == 404
        assert response.json()["detail"] == "Job not found."

    def test_delete_job(self, client: TestClient):
        job_id = upload(client).json()["job_id"]
        result = wait_for_job(client, job_id)

        response = client.delete(f"/results/{job_id}")
        assert response.status_code == 200
        assert response.json()["job_id"] == job_id

        assert client.get(f"/results/{job_id}").status_code == 404
        assert client.get(result["file_url"]).status_code == 404
        assert client.delete(f"/results/{job_id}").status_code == 404

    def test_unknown_file_returns_404(self, client: TestClient):
        assert client.get("/files/does-not-exist").status_code == 404
