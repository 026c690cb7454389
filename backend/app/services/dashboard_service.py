"""Per-user study progress overview."""
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.orm import Document, Flashcard, FlashcardSet, Quiz, User


class DashboardService:
    """Aggregates counts and recent activity for one user."""

    def __init__(self, db: Session, recent_limit: int = 5):
        self.db = db
        self.recent_limit = recent_limit

    def _count(self, query) -> int:
        return self.db.scalar(query) or 0

    def overview(self, user: User) -> Dict[str, Any]:
        cards = (
            select(func.count(Flashcard.id))
            .join(FlashcardSet)
            .where(FlashcardSet.user_id == user.id)
        )
        average_score = self.db.scalar(
            select(func.avg(Quiz.score)).where(
                Quiz.user_id == user.id, Quiz.completed_at.is_not(None)
            )
        )

        recent_documents = self.db.scalars(
            select(Document)
            .where(Document.user_id == user.id)
            .order_by(
                Document.last_accessed.is_(None),
                Document.last_accessed.desc(),
                Document.upload_date.desc(),
            )
            .limit(self.recent_limit)
        ).all()
        recent_quizzes = self.db.scalars(
            select(Quiz)
            .where(Quiz.user_id == user.id)
            .order_by(Quiz.created_at.desc())
            .limit(self.recent_limit)
        ).all()

        return {
            "total_documents": self._count(
                select(func.count(Document.id)).where(Document.user_id == user.id)
            ),
            "total_flashcard_sets": self._count(
                select(func.count(FlashcardSet.id)).where(FlashcardSet.user_id == user.id)
            ),
            "total_flashcards": self._count(cards),
            "reviewed_flashcards": self._count(cards.where(Flashcard.review_count > 0)),
            "starred_flashcards": self._count(cards.where(Flashcard.is_starred.is_(True))),
            "total_quizzes": self._count(
                select(func.count(Quiz.id)).where(Quiz.user_id == user.id)
            ),
            "completed_quizzes": self._count(
                select(func.count(Quiz.id)).where(
                    Quiz.user_id == user.id, Quiz.completed_at.is_not(None)
                )
            ),
            "average_score": round(float(average_score), 1) if average_score is not None else 0.0,
            "recent_documents": list(recent_documents),
            "recent_quizzes": list(recent_quizzes),
        }
