"""LLM-backed study features: flashcards, quizzes, summaries, chat and concept explanations."""
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.exceptions import ChatHistoryNotFoundError, LLMResponseError
from app.models.orm import ChatMessage, Document, Flashcard, FlashcardSet, Quiz, User
from app.services.answer_resolver import UNRESOLVED, resolve_index
from app.services.document_service import DocumentService
from app.services.llm_service import LLMService
from app.services.retriever import find_relevant_chunks
from app.utils.logger import logger


class StudyService:
    """Generates study material for ready documents."""

    def __init__(
        self,
        db: Session,
        documents: DocumentService,
        llm_service: LLMService,
        max_context_chars: int = 15000,
        context_chunks: int = 3,
    ):
        """
        Initialize study service.

        Args:
            db: Database session
            documents: Document lookup service
            llm_service: LLM provider client
            max_context_chars: Limit on document text sent for whole-document generation
            context_chunks: Number of retrieved chunks used for chat and explanations
        """
        self.db = db
        self.documents = documents
        self.llm_service = llm_service
        self.max_context_chars = max_context_chars
        self.context_chunks = context_chunks

    def _document_text(self, document: Document) -> str:
        return (document.extracted_text or "")[: self.max_context_chars]

    async def generate_flashcards(self, user: User, document_id: str, count: int = 10) -> FlashcardSet:
        """Generate a flashcard set for a document and store it."""
        document = self.documents.get_ready_document(user, document_id)
        cards = await self.llm_service.generate_flashcards(self._document_text(document), count)

        flashcard_set = FlashcardSet(
            user_id=user.id,
            document_id=document.id,
            cards=[
                Flashcard(
                    position=position,
                    question=card["question"],
                    answer=card["answer"],
                    difficulty=card["difficulty"],
                )
                for position, card in enumerate(cards)
            ],
        )
        self.db.add(flashcard_set)
        self.db.commit()
        self.db.refresh(flashcard_set)

        logger.info(
            f"Generated {len(cards)} flashcards",
            extra={"document_id": document.id, "user_id": user.id},
        )
        return flashcard_set

    async def generate_quiz(
        self,
        user: User,
        document_id: str,
        num_questions: int = 10,
        title: Optional[str] = None,
    ) -> Quiz:
        """
        Generate a quiz for a document and store it.

        Each question is stored with its canonical ``correct_index``; the
        model's ``correct_answer`` is normalized once here.
        """
        document = self.documents.get_ready_document(user, document_id)
        generated = await self.llm_service.generate_quiz(self._document_text(document), num_questions)

        questions = []
        for item in generated:
            correct_index = resolve_index(item["correct_answer"], item["options"])
            if correct_index == UNRESOLVED:
                logger.warning(
                    f"Dropping generated question with unmatched answer: {item['question'][:100]}",
                    extra={"document_id": document.id},
                )
                continue
            questions.append(
                {
                    "question": item["question"],
                    "options": item["options"],
                    "correct_answer": item["options"][correct_index],
                    "correct_index": correct_index,
                    "explanation": item["explanation"],
                    "difficulty": item["difficulty"],
                }
            )

        if not questions:
            raise LLMResponseError("LLM returned no questions with a matching correct answer")

        quiz = Quiz(
            user_id=user.id,
            document_id=document.id,
            title=(title or "").strip() or f"{document.title} - Quiz",
            questions=questions,
            total_questions=len(questions),
            user_answers=[],
            score=0,
        )
        self.db.add(quiz)
        self.db.commit()
        self.db.refresh(quiz)

        logger.info(
            f"Generated quiz with {len(questions)} questions",
            extra={"document_id": document.id, "quiz_id": quiz.id, "total_questions": len(questions)},
        )
        return quiz

    async def generate_summary(self, user: User, document_id: str) -> Dict[str, Any]:
        document = self.documents.get_ready_document(user, document_id)
        summary = await self.llm_service.generate_summary(self._document_text(document))
        return {"document_id": document.id, "title": document.title, "summary": summary}

    async def chat(self, user: User, document_id: str, question: str) -> Dict[str, Any]:
        """
        Answer a question from the most relevant chunks and record the exchange.

        Returns:
            Dictionary with question, answer and the indexes of the chunks used
        """
        document = self.documents.get_ready_document(user, document_id)
        relevant = find_relevant_chunks(document.to_chunks(), question, self.context_chunks)
        chunk_indices = [chunk.chunk_index for chunk in relevant]

        answer = await self.llm_service.chat_with_context(question, relevant)

        self.db.add_all(
            [
                ChatMessage(
                    user_id=user.id,
                    document_id=document.id,
                    role="user",
                    content=question,
                    relevant_chunks=[],
                ),
                ChatMessage(
                    user_id=user.id,
                    document_id=document.id,
                    role="assistant",
                    content=answer,
                    relevant_chunks=chunk_indices,
                ),
            ]
        )
        self.db.commit()

        logger.info(
            "Chat answer generated",
            extra={"document_id": document.id, "relevant_chunks": chunk_indices},
        )
        return {
            "document_id": document.id,
            "question": question,
            "answer": answer,
            "relevant_chunks": chunk_indices,
        }

    async def explain_concept(self, user: User, document_id: str, concept: str) -> Dict[str, Any]:
        document = self.documents.get_ready_document(user, document_id)
        relevant = find_relevant_chunks(document.to_chunks(), concept, self.context_chunks)
        explanation = await self.llm_service.explain_concept(concept, relevant)
        return {
            "concept": concept,
            "explanation": explanation,
            "relevant_chunks": [chunk.chunk_index for chunk in relevant],
        }

    def chat_history(self, user: User, document_id: str) -> List[ChatMessage]:
        """
        Return the stored conversation for a document.

        Raises:
            ChatHistoryNotFoundError: If there are no messages yet
        """
        messages = self.db.scalars(
            select(ChatMessage)
            .where(ChatMessage.user_id == user.id, ChatMessage.document_id == document_id)
            .order_by(ChatMessage.id)
        ).all()
        if not messages:
            raise ChatHistoryNotFoundError("Chat history not found for this document")
        return list(messages)
