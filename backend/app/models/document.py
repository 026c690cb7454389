"""Document and quiz data models used by the chunking, retrieval and grading code."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional


@dataclass(frozen=True)
class Chunk:
    """Represents a text chunk with metadata."""

    content: str
    chunk_index: int
    page_number: int = 0


@dataclass(frozen=True)
class ScoredChunk:
    """A chunk paired with its keyword relevance score for a single query."""

    chunk: Chunk
    score: int

    @property
    def content(self) -> str:
        return self.chunk.content

    @property
    def chunk_index(self) -> int:
        return self.chunk.chunk_index

    @property
    def page_number(self) -> int:
        return self.chunk.page_number


@dataclass(frozen=True)
class QuizQuestion:
    """A generated multiple-choice question.

    ``correct_index`` is the canonical zero-based option index. Questions
    stored before it existed only carry ``correct_answer``.
    """

    question: str
    options: List[str]
    correct_answer: Any = None
    explanation: str = ""
    difficulty: str = "medium"
    correct_index: Optional[int] = None


@dataclass
class ResolvedAnswer:
    """A graded answer to one quiz question."""

    question_index: int
    selected_answer: Any
    is_correct: bool
    answered_at: datetime


@dataclass
class GradingResult:
    """Outcome of grading a whole quiz submission."""

    correct_count: int
    total_questions: int
    score: int
    user_answers: List[ResolvedAnswer] = field(default_factory=list)
