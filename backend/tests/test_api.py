"""Tests for API endpoints."""
import os
from unittest.mock import patch

from fastapi.testclient import TestClient

from app.config import Settings
from app.exceptions import ExtractionError
from app.main import create_app
from app.models.orm import Document, DocumentStatus

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<\n/Type /Catalog\n>>\nendobj\nxref\n0 1\ntrailer\n<<\n/Root 1 0 R\n>>\n%%EOF"


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"

    def test_cors_origins_come_from_app_settings(self):
        app = create_app(Settings(cors_origins=["https://study.example.com"]))
        client = TestClient(app)

        allowed = client.get("/health", headers={"Origin": "https://study.example.com"})
        assert allowed.headers["access-control-allow-origin"] == "https://study.example.com"
        other = client.get("/health", headers={"Origin": "https://elsewhere.example.com"})
        assert "access-control-allow-origin" not in other.headers


class TestMetricsEndpoint:
    """Tests for metrics endpoint."""

    def test_metrics_endpoint(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "study_aid_quiz_submissions_total" in response.text


class TestAuthEndpoints:
    """Tests for registration, login and profile."""

    def test_register(self, client):
        response = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": "secret123"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "alice@example.com"
        assert "password_hash" not in data["user"]
        assert data["token"]

    def test_register_duplicate_email(self, client, make_user):
        make_user()
        response = client.post(
            "/api/auth/register",
            json={"username": "alice2", "email": "alice@example.com", "password": "secret123"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "duplicate_user"

    def test_register_short_password(self, client):
        response = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": "123"},
        )
        assert response.status_code == 422

    def test_login(self, client, make_user):
        make_user()
        response = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "secret123"}
        )
        assert response.status_code == 200
        assert response.json()["user"]["username"] == "alice"

    def test_login_wrong_password(self, client, make_user):
        make_user()
        response = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "wrong-password"}
        )
        assert response.status_code == 401

    def test_profile_requires_token(self, client):
        response = client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authorized, no token"

    def test_profile_rejects_invalid_token(self, client):
        response = client.get("/api/auth/profile", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_get_and_update_profile(self, client, auth_headers):
        assert client.get("/api/auth/profile", headers=auth_headers).json()["username"] == "alice"

        response = client.put(
            "/api/auth/profile",
            json={"username": "alice_b", "profile_image": "https://example.com/a.png"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["username"] == "alice_b"
        assert response.json()["profile_image"] == "https://example.com/a.png"

    def test_change_password(self, client, auth_headers):
        response = client.put(
            "/api/auth/change-password",
            json={"current_password": "wrong", "new_password": "newsecret"},
            headers=auth_headers,
        )
        assert response.status_code == 401

        response = client.put(
            "/api/auth/change-password",
            json={"current_password": "secret123", "new_password": "newsecret"},
            headers=auth_headers,
        )
        assert response.status_code == 200

        response = client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "newsecret"}
        )
        assert response.status_code == 200


class TestDocumentEndpoints:
    """Tests for document upload and management."""

    def test_upload_invalid_file_type(self, client, auth_headers):
        files = {"file": ("test.txt", b"test content", "text/plain")}
        response = client.post(
            "/api/documents/upload", files=files, data={"title": "Notes"}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "file_type_not_supported"

    def test_upload_without_file(self, client, auth_headers):
        response = client.post("/api/documents/upload", data={"title": "Notes"}, headers=auth_headers)
        assert response.status_code == 400

    def test_upload_without_title(self, client, auth_headers):
        files = {"file": ("notes.pdf", PDF_BYTES, "application/pdf")}
        response = client.post("/api/documents/upload", files=files, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Please provide a document title"

    def test_upload_bad_header(self, client, auth_headers):
        files = {"file": ("notes.pdf", b"not a pdf", "application/pdf")}
        response = client.post(
            "/api/documents/upload", files=files, data={"title": "Notes"}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "document_corrupted"

    def test_upload_too_large(self, client, auth_headers):
        files = {"file": ("notes.pdf", b"%PDF-" + b"0" * (2 * 1024 * 1024), "application/pdf")}
        response = client.post(
            "/api/documents/upload", files=files, data={"title": "Notes"}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "file_size_exceeded"

    def test_upload_requires_auth(self, client):
        files = {"file": ("notes.pdf", PDF_BYTES, "application/pdf")}
        response = client.post("/api/documents/upload", files=files, data={"title": "Notes"})
        assert response.status_code == 401

    def test_upload_success(self, client, auth_headers, ready_document):
        assert ready_document["status"] == "processing"
        assert ready_document["file_name"] == "notes.pdf"

        response = client.get(f"/api/documents/{ready_document['id']}", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["title"] == "Biology Notes"
        assert data["last_accessed"] is not None
        assert "Mitochondria" in data["extracted_text"]
        assert [c["chunk_index"] for c in data["chunks"]] == [0, 1, 2]
        assert [c["page_number"] for c in data["chunks"]] == [1, 1, 2]

    def test_upload_extraction_failure(self, client, auth_headers):
        with patch(
            "app.services.document_processor.extract_text_from_pdf",
            side_effect=ExtractionError("unreadable"),
        ):
            response = client.post(
                "/api/documents/upload",
                files={"file": ("notes.pdf", PDF_BYTES, "application/pdf")},
                data={"title": "Broken"},
                headers=auth_headers,
            )
        assert response.status_code == 201

        document = client.get(f"/api/documents/{response.json()['id']}", headers=auth_headers).json()
        assert document["status"] == "failed"

    def test_list_documents(self, client, auth_headers, ready_document):
        response = client.get("/api/documents", headers=auth_headers)
        assert response.status_code == 200
        documents = response.json()
        assert len(documents) == 1
        assert documents[0]["id"] == ready_document["id"]
        assert documents[0]["flashcard_count"] == 0
        assert documents[0]["quiz_count"] == 0
        assert "chunks" not in documents[0]

    def test_documents_are_private(self, client, make_user, ready_document):
        other = make_user(username="mallory", email="mallory@example.com")
        assert client.get("/api/documents", headers=other).json() == []
        response = client.get(f"/api/documents/{ready_document['id']}", headers=other)
        assert response.status_code == 404

    def test_get_missing_document(self, client, auth_headers):
        response = client.get("/api/documents/does-not-exist", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "document_not_found"

    def test_reprocess_document(self, client, auth_headers, ready_document):
        pages = [(1, "Completely new content after reprocessing.")]
        with patch("app.services.document_processor.extract_text_from_pdf", return_value=pages):
            response = client.post(
                f"/api/documents/{ready_document['id']}/reprocess", headers=auth_headers
            )
        assert response.status_code == 200

        data = client.get(f"/api/documents/{ready_document['id']}", headers=auth_headers).json()
        assert data["status"] == "ready"
        assert len(data["chunks"]) == 1
        assert data["chunks"][0]["content"] == "Completely new content after reprocessing."

    def test_reprocess_rejected_while_processing(self, client, auth_headers, ready_document):
        url = f"/api/documents/{ready_document['id']}"
        chunks_before = client.get(url, headers=auth_headers).json()["chunks"]
        db = client.app.state.context.database.session_factory()
        try:
            db.get(Document, ready_document["id"]).status = DocumentStatus.PROCESSING
            db.commit()
        finally:
            db.close()

        with patch("app.services.document_processor.extract_text_from_pdf") as extract:
            response = client.post(f"{url}/reprocess", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "document_processing_in_progress"
        extract.assert_not_called()

        data = client.get(url, headers=auth_headers).json()
        assert data["status"] == "processing"
        assert data["chunks"] == chunks_before

    def test_delete_document(self, client, auth_headers, ready_document, temp_dir):
        upload_dir = os.path.join(temp_dir, "uploads")
        assert len(os.listdir(upload_dir)) == 1

        response = client.delete(f"/api/documents/{ready_document['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert os.listdir(upload_dir) == []

        response = client.get(f"/api/documents/{ready_document['id']}", headers=auth_headers)
        assert response.status_code == 404
