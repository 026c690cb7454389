"""Flashcard set queries and card review tracking."""
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.exceptions import FlashcardNotFoundError
from app.models.orm import Flashcard, FlashcardSet, User


class FlashcardService:
    """Reads and updates the user's flashcard sets."""

    def __init__(self, db: Session):
        self.db = db

    def list_sets(self, user: User, document_id: Optional[str] = None) -> List[FlashcardSet]:
        query = select(FlashcardSet).where(FlashcardSet.user_id == user.id)
        if document_id:
            query = query.where(FlashcardSet.document_id == document_id)
        return list(self.db.scalars(query.order_by(FlashcardSet.created_at.desc())).all())

    def get_set(self, user: User, set_id: str) -> FlashcardSet:
        flashcard_set = self.db.scalars(
            select(FlashcardSet).where(FlashcardSet.id == set_id, FlashcardSet.user_id == user.id)
        ).first()
        if not flashcard_set:
            raise FlashcardNotFoundError("Flashcard set not found")
        return flashcard_set

    def _get_card(self, user: User, card_id: str) -> Flashcard:
        card = self.db.scalars(
            select(Flashcard)
            .join(FlashcardSet)
            .where(Flashcard.id == card_id, FlashcardSet.user_id == user.id)
        ).first()
        if not card:
            raise FlashcardNotFoundError("Flashcard not found")
        return card

    def review_card(self, user: User, card_id: str) -> Flashcard:
        """Record one review of a card."""
        card = self._get_card(user, card_id)
        card.review_count += 1
        card.last_reviewed = datetime.now(timezone.utc)
        self.db.commit()
        return card

    def toggle_star(self, user: User, card_id: str) -> Flashcard:
        card = self._get_card(user, card_id)
        card.is_starred = not card.is_starred
        self.db.commit()
        return card

    def delete_set(self, user: User, set_id: str) -> None:
        flashcard_set = self.get_set(user, set_id)
        self.db.delete(flashcard_set)
        self.db.commit()
