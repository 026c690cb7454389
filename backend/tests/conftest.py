"""Pytest configuration and fixtures."""
import os
import shutil
import tempfile
from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi.testclient import TestClient

from app.database import Database
from app.main import create_app
from app.models.document import Chunk, QuizQuestion
from app.services.auth_service import AuthService
from app.services.llm_service import LLMService

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<\n/Type /Catalog\n>>\nendobj\nxref\n0 1\ntrailer\n<<\n/Root 1 0 R\n>>\n%%EOF"

SAMPLE_PAGES = [
    (1, "Photosynthesis converts light energy into chemical energy in plants."),
    (2, "Mitochondria are the powerhouse of the cell and produce ATP."),
]

GENERATED_QUIZ = [
    {
        "question": "What is the capital of France?",
        "options": ["Berlin", "Paris", "Rome", "Madrid"],
        "correct_answer": "Paris",
        "explanation": "Paris is the capital of France.",
        "difficulty": "easy",
    },
    {
        "question": "What is 2 + 2?",
        "options": ["3", "4", "5", "6"],
        "correct_answer": "O2",
        "explanation": "Basic arithmetic.",
        "difficulty": "easy",
    },
    {
        "question": "Which is the largest planet?",
        "options": ["Mars", "Venus", "Jupiter"],
        "correct_answer": 3,
        "explanation": "Jupiter is the largest planet.",
        "difficulty": "medium",
    },
    {
        "question": "What is the chemical formula of water?",
        "options": ["H2O", "CO2", "O2", "NaCl"],
        "correct_answer": "h2o",
        "explanation": "Two hydrogen atoms and one oxygen atom.",
        "difficulty": "hard",
    },
]

GENERATED_FLASHCARDS = [
    {"question": "What do mitochondria produce?", "answer": "ATP", "difficulty": "easy"},
    {"question": "What does photosynthesis convert?", "answer": "Light into chemical energy", "difficulty": "medium"},
]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def database(temp_dir):
    """SQLite database with all tables created."""
    db = Database(f"sqlite:///{os.path.join(temp_dir, 'unit.db')}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session_factory()
    yield session
    session.close()


@pytest.fixture
def auth_service():
    return AuthService(secret="test-secret-key-for-signing-tokens-0123", expire_minutes=60)


@pytest.fixture
def mock_llm_service():
    """Mock LLM service."""
    service = Mock(spec=LLMService)
    service.generate_flashcards = AsyncMock(return_value=[dict(c) for c in GENERATED_FLASHCARDS])
    service.generate_quiz = AsyncMock(return_value=[dict(q) for q in GENERATED_QUIZ])
    service.generate_summary = AsyncMock(return_value="A short summary of the document.")
    service.chat_with_context = AsyncMock(return_value="Mitochondria are the powerhouse of the cell.")
    service.explain_concept = AsyncMock(return_value="Photosynthesis turns light into sugar.")
    service.close = AsyncMock()
    return service


@pytest.fixture
def client(monkeypatch, temp_dir, mock_llm_service):
    """Test client with an isolated database, upload directory and mocked LLM."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{os.path.join(temp_dir, 'api.db')}")
    monkeypatch.setenv("UPLOAD_DIR", os.path.join(temp_dir, "uploads"))
    monkeypatch.setenv("TRACING_ENABLED", "false")
    monkeypatch.setenv("LLM_API_KEY", "test-key")
    monkeypatch.setenv("JWT_SECRET", "test-secret-key-for-signing-tokens-0123")
    monkeypatch.setenv("CHUNK_SIZE", "10")
    monkeypatch.setenv("CHUNK_OVERLAP", "2")
    monkeypatch.setenv("MAX_FILE_SIZE_MB", "1")

    with TestClient(create_app()) as test_client:
        context = test_client.app.state.context
        real_llm_service = context.llm_service
        context.llm_service = mock_llm_service
        yield test_client
        context.llm_service = real_llm_service


@pytest.fixture
def make_user(client):
    """Register a user and return its Authorization header."""

    def _make(username="alice", email="alice@example.com", password="secret123"):
        response = client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _make


@pytest.fixture
def auth_headers(make_user):
    """Authorization header for a freshly registered user."""
    return make_user()


@pytest.fixture
def make_document(client):
    """Upload a PDF with mocked extraction; processing runs before the call returns."""

    def _make(headers, pages=SAMPLE_PAGES, title="Biology Notes"):
        with patch("app.services.document_processor.extract_text_from_pdf", return_value=pages):
            response = client.post(
                "/api/documents/upload",
                files={"file": ("notes.pdf", PDF_BYTES, "application/pdf")},
                data={"title": title},
                headers=headers,
            )
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def ready_document(auth_headers, make_document):
    """An uploaded document whose background processing has completed."""
    return make_document(auth_headers)


@pytest.fixture
def sample_chunks():
    """Sample document chunks for testing."""
    return [
        Chunk(content="Photosynthesis happens in the chloroplast of plant cells.", chunk_index=0, page_number=1),
        Chunk(content="The mitochondria is the powerhouse of the cell.", chunk_index=1, page_number=1),
        Chunk(content="Cell membranes control what enters the cell.", chunk_index=2, page_number=2),
    ]


@pytest.fixture
def sample_questions():
    """Four questions storing only their textual correct answer."""
    return [
        QuizQuestion(question="Capital of France?", options=["Berlin", "Paris", "Rome"], correct_answer="Paris"),
        QuizQuestion(question="2 + 2?", options=["3", "4", "5"], correct_answer="4"),
        QuizQuestion(question="Largest planet?", options=["Mars", "Jupiter"], correct_answer="Jupiter"),
        QuizQuestion(question="Water?", options=["H2O", "CO2"], correct_answer="H2O"),
    ]
