"""Pydantic schemas for API requests and responses."""
import re
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]')


def _clean_text(v: str) -> str:
    """Remove control characters (keeping newline, tab and carriage return) and trim."""
    cleaned = _CONTROL_CHARS.sub('', str(v)).strip()
    if not cleaned:
        raise ValueError("Value cannot be empty after cleaning")
    return cleaned


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- Auth -----------------------------------------------------------------

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=64)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UpdateProfileRequest(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=64)
    email: Optional[str] = Field(None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    profile_image: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class UserResponse(ORMModel):
    id: str
    username: str
    email: str
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    user: UserResponse
    token: str = Field(..., description="Bearer token for the Authorization header")


class MessageResponse(BaseModel):
    message: str


# --- Documents ------------------------------------------------------------

class ChunkResponse(ORMModel):
    content: str
    page_number: int
    chunk_index: int


class DocumentSummary(ORMModel):
    id: str
    title: str
    file_name: str
    file_size: int
    status: str
    upload_date: datetime
    last_accessed: Optional[datetime] = None
    flashcard_count: int = 0
    quiz_count: int = 0


class DocumentDetail(DocumentSummary):
    extracted_text: str = ""
    chunks: List[ChunkResponse] = Field(default_factory=list)


class UploadResponse(ORMModel):
    """Response schema for document upload."""

    id: str = Field(..., description="Unique identifier for the uploaded document")
    title: str
    file_name: str = Field(..., description="Original filename")
    file_size: int
    status: str
    message: str = Field(default="Document uploaded successfully. Processing is in progress...")


# --- AI features ----------------------------------------------------------

class GenerateFlashcardsRequest(BaseModel):
    document_id: str
    count: int = Field(default=10, ge=1, le=50)


class GenerateQuizRequest(BaseModel):
    document_id: str
    num_questions: int = Field(default=10, ge=1, le=50)
    title: Optional[str] = None


class SummaryRequest(BaseModel):
    document_id: str


class SummaryResponse(BaseModel):
    document_id: str
    title: str
    summary: str


class ChatRequest(BaseModel):
    """Request schema for asking questions."""

    document_id: str
    question: str = Field(..., min_length=1, description="User's question")

    @field_validator("question")
    @classmethod
    def clean_question(cls, v: str) -> str:
        return _clean_text(v)


class ChatResponse(BaseModel):
    document_id: str
    question: str
    answer: str
    relevant_chunks: List[int] = Field(..., description="Indexes of the chunks used as context")


class ExplainConceptRequest(BaseModel):
    document_id: str
    concept: str = Field(..., min_length=1)

    @field_validator("concept")
    @classmethod
    def clean_concept(cls, v: str) -> str:
        return _clean_text(v)


class ExplainConceptResponse(BaseModel):
    concept: str
    explanation: str
    relevant_chunks: List[int]


class ChatMessageResponse(ORMModel):
    role: str
    content: str
    timestamp: datetime
    relevant_chunks: List[int] = Field(default_factory=list)


# --- Flashcards -----------------------------------------------------------

class FlashcardResponse(ORMModel):
    id: str
    question: str
    answer: str
    difficulty: str
    review_count: int
    last_reviewed: Optional[datetime] = None
    is_starred: bool


class FlashcardSetResponse(ORMModel):
    id: str
    document_id: str
    created_at: datetime
    cards: List[FlashcardResponse]


# --- Quizzes --------------------------------------------------------------

class QuizQuestionResponse(BaseModel):
    question: str
    options: List[str]
    difficulty: str = "medium"


class UserAnswerResponse(BaseModel):
    question_index: int
    selected_answer: Any = None
    is_correct: bool
    answered_at: datetime


class QuizResponse(ORMModel):
    """Quiz as shown while taking it; correct answers are not included."""

    id: str
    document_id: str
    title: str
    questions: List[QuizQuestionResponse]
    total_questions: int
    score: int
    user_answers: List[UserAnswerResponse] = Field(default_factory=list)
    completed_at: Optional[datetime] = None
    created_at: datetime


class SubmittedAnswer(BaseModel):
    # Malformed indexes are skipped during grading instead of rejecting the batch
    question_index: Any = None
    selected_answer: Any = None


class SubmitQuizRequest(BaseModel):
    answers: List[SubmittedAnswer]


class SubmitQuizResponse(BaseModel):
    quiz_id: str
    score: int
    correct_count: int
    total_questions: int
    percentage: int
    user_answers: List[UserAnswerResponse]


class QuestionResult(BaseModel):
    question_index: int
    question: str
    options: List[str]
    correct_answer: Any = None
    correct_index: Optional[int] = None
    selected_answer: Any = None
    selected_index: Optional[int] = None
    is_correct: bool
    explanation: str = ""


class QuizResultSummary(BaseModel):
    id: str
    title: str
    document_id: str
    score: int
    total_questions: int
    completed_at: datetime


class QuizResultsResponse(BaseModel):
    quiz: QuizResultSummary
    results: List[QuestionResult]


# --- Dashboard ------------------------------------------------------------

class RecentDocument(ORMModel):
    id: str
    title: str
    status: str
    upload_date: datetime
    last_accessed: Optional[datetime] = None


class RecentQuiz(ORMModel):
    id: str
    document_id: str
    title: str
    score: int
    total_questions: int
    completed_at: Optional[datetime] = None
    created_at: datetime


class DashboardResponse(ORMModel):
    total_documents: int
    total_flashcard_sets: int
    total_flashcards: int
    reviewed_flashcards: int
    starred_flashcards: int
    total_quizzes: int
    completed_quizzes: int
    average_score: float
    recent_documents: List[RecentDocument]
    recent_quizzes: List[RecentQuiz]
