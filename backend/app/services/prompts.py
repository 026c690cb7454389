"""Centralized prompt templates for study material generation."""
from typing import Sequence

from app.models.document import ScoredChunk

STUDY_SYSTEM_MESSAGE = (
    "You are a study assistant. You create learning material ONLY from the provided "
    "document text. You MUST NOT invent facts that are not supported by the document."
)


class FlashcardPrompt:
    """Prompt template for generating flashcards."""

    SYSTEM_MESSAGE = STUDY_SYSTEM_MESSAGE

    @staticmethod
    def build(text: str, count: int) -> str:
        return f"""Generate exactly {count} educational flashcards from the document text below.

Return ONLY a JSON array, with no commentary, where every element has this shape:
{{"question": "...", "answer": "...", "difficulty": "easy" | "medium" | "hard"}}

Rules:
1. Questions must be answerable from the document text alone
2. Answers must be short (one or two sentences)
3. Mix difficulties

Document text:
{text}"""


class QuizPrompt:
    """Prompt template for generating multiple-choice quizzes."""

    SYSTEM_MESSAGE = STUDY_SYSTEM_MESSAGE

    @staticmethod
    def build(text: str, num_questions: int) -> str:
        """
        Build quiz generation prompt.

        Args:
            text: Document text (already truncated to the context limit)
            num_questions: Number of questions to request

        Returns:
            Formatted prompt string
        """
        return f"""Generate exactly {num_questions} multiple-choice questions from the document text below.

Return ONLY a JSON array, with no commentary, where every element has this shape:
{{"question": "...", "options": ["...", "...", "...", "..."], "correct_answer": "...", "explanation": "...", "difficulty": "easy" | "medium" | "hard"}}

Rules:
1. Every question has exactly 4 options
2. "correct_answer" MUST be the full text of one of the options, copied exactly
3. "explanation" says briefly why the correct answer is right
4. Questions must be answerable from the document text alone

Document text:
{text}"""


class SummaryPrompt:
    """Prompt template for document summaries."""

    SYSTEM_MESSAGE = STUDY_SYSTEM_MESSAGE

    @staticmethod
    def build(text: str) -> str:
        return f"""Write a concise summary of the document text below.
Highlight the main concepts, key ideas and important points in clear, well-organized paragraphs.

Document text:
{text}"""


def format_context(chunks: Sequence[ScoredChunk]) -> str:
    """Render retrieved chunks as numbered context blocks."""
    parts = []
    for i, chunk in enumerate(chunks, 1):
        parts.append(f"[Chunk {i}, Page {chunk.page_number}]:\n{chunk.content}\n")
    return "\n".join(parts)


class ChatPrompt:
    """Prompt template for answering a question from retrieved chunks."""

    SYSTEM_MESSAGE = (
        "You are a document Q&A assistant. You answer questions ONLY using information "
        "from the provided document context. If the answer cannot be found in the "
        "document, say so clearly."
    )

    @staticmethod
    def build(question: str, chunks: Sequence[ScoredChunk]) -> str:
        return f"""Answer the question using ONLY the context from the document.

RULES:
1. Do not use knowledge outside of the provided context
2. If the answer is not in the context, reply: "I cannot find the answer to this question in the document."
3. Be clear and concise

Context from document:
{format_context(chunks)}

Question: {question}

Answer:"""


class ExplainConceptPrompt:
    """Prompt template for explaining a concept from retrieved chunks."""

    SYSTEM_MESSAGE = STUDY_SYSTEM_MESSAGE

    @staticmethod
    def build(concept: str, chunks: Sequence[ScoredChunk]) -> str:
        return f"""Explain the concept "{concept}" to a student, based on the context from the document.

Give a clear definition, explain how it works, and include an example when the context allows.
Use simple language.

Context from document:
{format_context(chunks)}

Explanation:"""
