"""Tests for AI feature, flashcard, quiz and dashboard endpoints."""
import pytest
from unittest.mock import AsyncMock, patch

from app.exceptions import ExtractionError, LLMError

PDF_BYTES = b"%PDF-1.4\n%%EOF"

QUIZ_ANSWERS = [
    {"question_index": 0, "selected_answer": "Paris"},
    {"question_index": 1, "selected_answer": "O2"},
    {"question_index": 2, "selected_answer": "Mars"},
    {"question_index": 3, "selected_answer": 0},
    {"question_index": 0, "selected_answer": "Berlin"},
    {"question_index": 9, "selected_answer": "x"},
]


@pytest.fixture
def failed_document(client, auth_headers):
    with patch(
        "app.services.document_processor.extract_text_from_pdf",
        side_effect=ExtractionError("unreadable"),
    ):
        response = client.post(
            "/api/documents/upload",
            files={"file": ("broken.pdf", PDF_BYTES, "application/pdf")},
            data={"title": "Broken"},
            headers=auth_headers,
        )
    return response.json()


@pytest.fixture
def quiz(client, auth_headers, ready_document):
    response = client.post(
        "/api/ai/generate-quiz",
        json={"document_id": ready_document["id"], "num_questions": 4},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def flashcard_set(client, auth_headers, ready_document):
    response = client.post(
        "/api/ai/generate-flashcards",
        json={"document_id": ready_document["id"], "count": 5},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestAIEndpoints:
    """Tests for summary, chat and concept explanation."""

    def test_generate_summary(self, client, auth_headers, ready_document, mock_llm_service):
        response = client.post(
            "/api/ai/generate-summary",
            json={"document_id": ready_document["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["summary"] == "A short summary of the document."
        assert data["title"] == "Biology Notes"
        text = mock_llm_service.generate_summary.call_args.args[0]
        assert "Photosynthesis" in text

    def test_document_must_be_ready(self, client, auth_headers, failed_document):
        response = client.post(
            "/api/ai/generate-summary",
            json={"document_id": failed_document["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Document not found or not ready"

    def test_chat_uses_most_relevant_chunks(self, client, auth_headers, ready_document, mock_llm_service):
        response = client.post(
            "/api/ai/chat",
            json={"document_id": ready_document["id"], "question": "What is the powerhouse of the cell?"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["answer"] == "Mitochondria are the powerhouse of the cell."
        assert data["relevant_chunks"] == [1, 0, 2]

        question, chunks = mock_llm_service.chat_with_context.call_args.args
        assert question == "What is the powerhouse of the cell?"
        assert chunks[0].chunk_index == 1
        assert chunks[0].score == 2

    def test_chat_history(self, client, auth_headers, ready_document):
        response = client.get(f"/api/ai/chat-history/{ready_document['id']}", headers=auth_headers)
        assert response.status_code == 404

        client.post(
            "/api/ai/chat",
            json={"document_id": ready_document["id"], "question": "What is the powerhouse of the cell?"},
            headers=auth_headers,
        )
        response = client.get(f"/api/ai/chat-history/{ready_document['id']}", headers=auth_headers)
        assert response.status_code == 200
        messages = response.json()
        assert [m["role"] for m in messages] == ["user", "assistant"]
        assert messages[0]["content"] == "What is the powerhouse of the cell?"
        assert messages[1]["relevant_chunks"] == [1, 0, 2]

    def test_chat_rejects_blank_question(self, client, auth_headers, ready_document):
        response = client.post(
            "/api/ai/chat",
            json={"document_id": ready_document["id"], "question": "\x01\x02  "},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_explain_concept(self, client, auth_headers, ready_document):
        response = client.post(
            "/api/ai/explain-concept",
            json={"document_id": ready_document["id"], "concept": "photosynthesis"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["concept"] == "photosynthesis"
        assert data["explanation"] == "Photosynthesis turns light into sugar."
        assert data["relevant_chunks"][0] == 0

    def test_llm_failure_returns_bad_gateway(self, client, auth_headers, ready_document, mock_llm_service):
        mock_llm_service.generate_summary = AsyncMock(side_effect=LLMError("provider down"))
        response = client.post(
            "/api/ai/generate-summary",
            json={"document_id": ready_document["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 502
        assert response.json()["error"] == "llm_error"

    def test_llm_not_configured(self, client, auth_headers, ready_document):
        client.app.state.context.llm_service = None
        response = client.post(
            "/api/ai/generate-summary",
            json={"document_id": ready_document["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 503


class TestFlashcardEndpoints:
    """Tests for flashcard generation and review."""

    def test_generate_flashcards(self, client, auth_headers, ready_document, flashcard_set, mock_llm_service):
        assert flashcard_set["document_id"] == ready_document["id"]
        assert [c["answer"] for c in flashcard_set["cards"]] == ["ATP", "Light into chemical energy"]
        assert all(c["review_count"] == 0 and not c["is_starred"] for c in flashcard_set["cards"])
        assert mock_llm_service.generate_flashcards.call_args.args[1] == 5

        documents = client.get("/api/documents", headers=auth_headers).json()
        assert documents[0]["flashcard_count"] == 1

    def test_list_sets(self, client, auth_headers, ready_document, flashcard_set):
        all_sets = client.get("/api/flashcards", headers=auth_headers).json()
        assert [s["id"] for s in all_sets] == [flashcard_set["id"]]

        by_document = client.get(
            f"/api/flashcards/document/{ready_document['id']}", headers=auth_headers
        ).json()
        assert [s["id"] for s in by_document] == [flashcard_set["id"]]

        assert client.get("/api/flashcards/document/other", headers=auth_headers).json() == []

    def test_review_and_star(self, client, auth_headers, flashcard_set):
        card_id = flashcard_set["cards"][0]["id"]

        response = client.post(f"/api/flashcards/cards/{card_id}/review", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["review_count"] == 1
        assert response.json()["last_reviewed"] is not None

        assert client.put(f"/api/flashcards/cards/{card_id}/star", headers=auth_headers).json()["is_starred"]
        assert not client.put(f"/api/flashcards/cards/{card_id}/star", headers=auth_headers).json()["is_starred"]

    def test_cards_are_private(self, client, make_user, flashcard_set):
        other = make_user(username="mallory", email="mallory@example.com")
        card_id = flashcard_set["cards"][0]["id"]
        response = client.post(f"/api/flashcards/cards/{card_id}/review", headers=other)
        assert response.status_code == 404
        assert response.json()["error"] == "flashcard_not_found"

    def test_delete_set(self, client, auth_headers, flashcard_set):
        response = client.delete(f"/api/flashcards/{flashcard_set['id']}", headers=auth_headers)
        assert response.status_code == 200
        response = client.get(f"/api/flashcards/{flashcard_set['id']}", headers=auth_headers)
        assert response.status_code == 404


class TestQuizEndpoints:
    """Tests for quiz generation, submission and results."""

    def test_generate_quiz(self, quiz):
        assert quiz["title"] == "Biology Notes - Quiz"
        assert quiz["total_questions"] == 4
        assert quiz["completed_at"] is None
        assert all("correct_answer" not in q for q in quiz["questions"])

    def test_generate_quiz_with_title(self, client, auth_headers, ready_document):
        response = client.post(
            "/api/ai/generate-quiz",
            json={"document_id": ready_document["id"], "title": "Cell Biology"},
            headers=auth_headers,
        )
        assert response.json()["title"] == "Cell Biology"

    def test_generate_quiz_drops_unmatched_answers(self, client, auth_headers, ready_document, mock_llm_service):
        mock_llm_service.generate_quiz = AsyncMock(
            return_value=[
                {
                    "question": "Q1",
                    "options": ["a", "b"],
                    "correct_answer": "b",
                    "explanation": "",
                    "difficulty": "easy",
                },
                {
                    "question": "Q2",
                    "options": ["a", "b"],
                    "correct_answer": "z",
                    "explanation": "",
                    "difficulty": "easy",
                },
            ]
        )
        response = client.post(
            "/api/ai/generate-quiz",
            json={"document_id": ready_document["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert [q["question"] for q in response.json()["questions"]] == ["Q1"]

    def test_generate_quiz_without_valid_questions(self, client, auth_headers, ready_document, mock_llm_service):
        mock_llm_service.generate_quiz = AsyncMock(
            return_value=[
                {
                    "question": "Q",
                    "options": ["a", "b"],
                    "correct_answer": "nothing",
                    "explanation": "",
                    "difficulty": "easy",
                }
            ]
        )
        response = client.post(
            "/api/ai/generate-quiz",
            json={"document_id": ready_document["id"]},
            headers=auth_headers,
        )
        assert response.status_code == 502
        assert response.json()["error"] == "llm_response_invalid"

    def test_submit_quiz(self, client, auth_headers, quiz):
        response = client.post(
            f"/api/quizzes/{quiz['id']}/submit", json={"answers": QUIZ_ANSWERS}, headers=auth_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 75
        assert data["percentage"] == 75
        assert data["correct_count"] == 3
        assert data["total_questions"] == 4
        assert [a["question_index"] for a in data["user_answers"]] == [0, 1, 2, 3]
        assert [a["is_correct"] for a in data["user_answers"]] == [True, True, False, True]

        stored = client.get(f"/api/quizzes/quiz/{quiz['id']}", headers=auth_headers).json()
        assert stored["score"] == 75
        assert stored["completed_at"] is not None
        assert len(stored["user_answers"]) == 4

    def test_quiz_accepts_one_submission(self, client, auth_headers, quiz):
        client.post(f"/api/quizzes/{quiz['id']}/submit", json={"answers": QUIZ_ANSWERS}, headers=auth_headers)

        all_correct = [
            {"question_index": 0, "selected_answer": "Paris"},
            {"question_index": 1, "selected_answer": "4"},
            {"question_index": 2, "selected_answer": "Jupiter"},
            {"question_index": 3, "selected_answer": "H2O"},
        ]
        response = client.post(
            f"/api/quizzes/{quiz['id']}/submit", json={"answers": all_correct}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "quiz_already_completed"

        results = client.get(f"/api/quizzes/{quiz['id']}/results", headers=auth_headers).json()
        assert results["quiz"]["score"] == 75

    def test_results_require_completion(self, client, auth_headers, quiz):
        response = client.get(f"/api/quizzes/{quiz['id']}/results", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "quiz_not_completed"

    def test_results(self, client, auth_headers, quiz):
        client.post(f"/api/quizzes/{quiz['id']}/submit", json={"answers": QUIZ_ANSWERS}, headers=auth_headers)

        response = client.get(f"/api/quizzes/{quiz['id']}/results", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["quiz"]["title"] == "Biology Notes - Quiz"

        results = data["results"]
        assert [r["correct_answer"] for r in results] == ["Paris", "4", "Jupiter", "H2O"]
        assert [r["correct_index"] for r in results] == [1, 1, 2, 0]
        assert [r["selected_index"] for r in results] == [1, 1, 0, 0]
        assert results[2]["is_correct"] is False
        assert results[2]["explanation"] == "Jupiter is the largest planet."

    def test_unanswered_questions_in_results(self, client, auth_headers, quiz):
        client.post(
            f"/api/quizzes/{quiz['id']}/submit",
            json={"answers": [{"question_index": 0, "selected_answer": "Paris"}]},
            headers=auth_headers,
        )
        results = client.get(f"/api/quizzes/{quiz['id']}/results", headers=auth_headers).json()
        assert results["quiz"]["score"] == 25
        assert results["results"][1]["selected_answer"] is None
        assert results["results"][1]["is_correct"] is False

    def test_submit_unknown_quiz(self, client, auth_headers):
        response = client.post(
            "/api/quizzes/missing/submit", json={"answers": QUIZ_ANSWERS}, headers=auth_headers
        )
        assert response.status_code == 404
        assert response.json()["error"] == "quiz_not_found"

    def test_list_and_delete(self, client, auth_headers, ready_document, quiz):
        quizzes = client.get(f"/api/quizzes/{ready_document['id']}", headers=auth_headers).json()
        assert [q["id"] for q in quizzes] == [quiz["id"]]

        response = client.delete(f"/api/quizzes/{quiz['id']}", headers=auth_headers)
        assert response.status_code == 200
        response = client.get(f"/api/quizzes/quiz/{quiz['id']}", headers=auth_headers)
        assert response.status_code == 404


class TestDashboardEndpoint:
    """Tests for the dashboard overview."""

    def test_empty_dashboard(self, client, auth_headers):
        response = client.get("/api/dashboard", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total_documents"] == 0
        assert data["average_score"] == 0.0
        assert data["recent_documents"] == []

    def test_dashboard_totals(self, client, auth_headers, ready_document, flashcard_set, quiz):
        card_id = flashcard_set["cards"][0]["id"]
        client.post(f"/api/flashcards/cards/{card_id}/review", headers=auth_headers)
        client.put(f"/api/flashcards/cards/{card_id}/star", headers=auth_headers)
        client.post(f"/api/quizzes/{quiz['id']}/submit", json={"answers": QUIZ_ANSWERS}, headers=auth_headers)

        data = client.get("/api/dashboard", headers=auth_headers).json()
        assert data["total_documents"] == 1
        assert data["total_flashcard_sets"] == 1
        assert data["total_flashcards"] == 2
        assert data["reviewed_flashcards"] == 1
        assert data["starred_flashcards"] == 1
        assert data["total_quizzes"] == 1
        assert data["completed_quizzes"] == 1
        assert data["average_score"] == 75.0
        assert [d["id"] for d in data["recent_documents"]] == [ready_document["id"]]
        assert [q["id"] for q in data["recent_quizzes"]] == [quiz["id"]]
