"""Tests for FastAPI endpoints."""

import pytest
from fastapi.testclient import TestClient

MIB = 1024 * 1024
PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


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
        """Test /health endpoint returns health status."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestOcrEndpoint:
    """Tests for POST /ocr."""

    def test_success_returns_fields(
        self, client: TestClient, use_pipeline, make_pipeline, fake_adapter, sample_pdf_bytes
    ):
        use_pipeline(make_pipeline(fake_adapter))
        response = client.post(
            "/ocr",
            files={"file": ("application.pdf", sample_pdf_bytes, PDF)},
        )
        assert response.status_code == 200
        assert response.json() == {"legal_business_name": "Acme Corp"}
        assert fake_adapter.attached[0].original_name == "application.pdf"
        assert fake_adapter.attached[0].media_type == PDF

    def test_word_document_accepted(
        self, client: TestClient, use_pipeline, make_pipeline, fake_adapter
    ):
        use_pipeline(make_pipeline(fake_adapter))
        response = client.post(
            "/ocr",
            files={"file": ("application.docx", b"PK\x03\x04 docx", DOCX)},
        )
        assert response.status_code == 200
        assert fake_adapter.call_count == 1

    def test_missing_file(self, client: TestClient, use_pipeline, make_pipeline, fake_adapter):
        use_pipeline(make_pipeline(fake_adapter))
        response = client.post("/ocr")
        assert response.status_code == 400
        assert response.json()["error"] == "No file uploaded"
        assert fake_adapter.call_count == 0

    def test_text_field_instead_of_file(
        self, client: TestClient, use_pipeline, make_pipeline, fake_adapter
    ):
        use_pipeline(make_pipeline(fake_adapter))
        response = client.post(
            "/ocr", data={"file": "not-a-file"}, headers={"X-Request-ID": "req-7"}
        )
        assert response.status_code == 400
        data = response.json()
        assert data["kind"] == "missing_file"
        assert data["error"] == "No file uploaded"
        assert data["request_id"] == "req-7"
        assert "detail" not in data
        assert response.headers["x-request-id"] == "req-7"
        assert fake_adapter.call_count == 0

    def test_empty_file(self, client: TestClient, use_pipeline, make_pipeline, fake_adapter):
        use_pipeline(make_pipeline(fake_adapter))
        response = client.post("/ocr", files={"file": ("empty.pdf", b"", PDF)})
        assert response.status_code == 400
        assert response.json()["kind"] == "missing_file"

    def test_rejects_non_document(
        self, client: TestClient, use_pipeline, make_pipeline, fake_adapter
    ):
        use_pipeline(make_pipeline(fake_adapter))
        response = client.post(
            "/ocr",
            files={"file": ("test.txt", b"not a pdf", "text/plain")},
        )
        assert response.status_code == 415
        assert "PDF" in response.json()["error"]
        assert fake_adapter.call_count == 0

    def test_rejects_oversize(self, client: TestClient, use_pipeline, make_pipeline, fake_adapter):
        use_pipeline(make_pipeline(fake_adapter, max_size_bytes=3 * MIB))
        response = client.post(
            "/ocr",
            files={"file": ("big.pdf", b"%PDF" + b"0" * (4 * MIB), PDF)},
        )
        assert response.status_code == 413
        assert response.json()["kind"] == "payload_too_large"
        assert fake_adapter.call_count == 0

    def test_non_json_output(
        self, client: TestClient, use_pipeline, make_pipeline, make_adapter, sample_pdf_bytes
    ):
        use_pipeline(make_pipeline(make_adapter(response="I could not read this file.")))
        response = client.post("/ocr", files={"file": ("a.pdf", sample_pdf_bytes, PDF)})
        assert response.status_code == 200
        data = response.json()
        assert data["error"] == "OCR returned non-JSON output"
        assert data["raw"] == "I could not read this file."

    def test_upstream_timeout(
        self, client: TestClient, use_pipeline, make_pipeline, make_adapter, sample_pdf_bytes
    ):
        use_pipeline(make_pipeline(make_adapter(delay=5), timeout_seconds=0.05))
        response = client.post("/ocr", files={"file": ("a.pdf", sample_pdf_bytes, PDF)})
        assert response.status_code == 503
        assert response.json()["kind"] == "upstream_unavailable"

    def test_request_id_echoed(
        self, client: TestClient, use_pipeline, make_pipeline, make_adapter, sample_pdf_bytes
    ):
        use_pipeline(make_pipeline(make_adapter(response="nope")))
        response = client.post(
            "/ocr",
            files={"file": ("a.pdf", sample_pdf_bytes, PDF)},
            headers={"X-Request-ID": "req-42"},
        )
        assert response.headers["x-request-id"] == "req-42"
        assert response.json()["request_id"] == "req-42"

    def test_request_id_generated(
        self, client: TestClient, use_pipeline, make_pipeline, fake_adapter, sample_pdf_bytes
    ):
        use_pipeline(make_pipeline(fake_adapter))
        response = client.post("/ocr", files={"file": ("a.pdf", sample_pdf_bytes, PDF)})
        assert len(response.headers["x-request-id"]) == 32


class TestCORS:
    """Tests for CORS configuration."""

    def test_cors_allows_any_origin_by_default(self, client: TestClient):
        response = client.get("/health", headers={"Origin": "https://example.netsuite.com"})
        assert response.status_code == 200
        assert response.headers.get("access-control-allow-origin") == "*"

    @pytest.mark.parametrize("path", ["/ocr", "/health"])
    def test_preflight(self, client: TestClient, path: str):
        response = client.options(
            path,
            headers={
                "Origin": "https://example.netsuite.com",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.status_code == 200
