"""Flashcard set endpoints."""
from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user, get_flashcard_service
from app.api.schemas import FlashcardResponse, FlashcardSetResponse, MessageResponse
from app.models.orm import User
from app.services.flashcard_service import FlashcardService

router = APIRouter()


@router.get("", response_model=List[FlashcardSetResponse])
def list_flashcard_sets(
    user: User = Depends(get_current_user),
    flashcards: FlashcardService = Depends(get_flashcard_service),
):
    return [FlashcardSetResponse.model_validate(s) for s in flashcards.list_sets(user)]


@router.get("/document/{document_id}", response_model=List[FlashcardSetResponse])
def list_document_flashcard_sets(
    document_id: str,
    user: User = Depends(get_current_user),
    flashcards: FlashcardService = Depends(get_flashcard_service),
):
    return [
        FlashcardSetResponse.model_validate(s)
        for s in flashcards.list_sets(user, document_id=document_id)
    ]


@router.get("/{set_id}", response_model=FlashcardSetResponse)
def get_flashcard_set(
    set_id: str,
    user: User = Depends(get_current_user),
    flashcards: FlashcardService = Depends(get_flashcard_service),
):
    return FlashcardSetResponse.model_validate(flashcards.get_set(user, set_id))


@router.post("/cards/{card_id}/review", response_model=FlashcardResponse)
def review_flashcard(
    card_id: str,
    user: User = Depends(get_current_user),
    flashcards: FlashcardService = Depends(get_flashcard_service),
):
    return FlashcardResponse.model_validate(flashcards.review_card(user, card_id))


@router.put("/cards/{card_id}/star", response_model=FlashcardResponse)
def toggle_star(
    card_id: str,
    user: User = Depends(get_current_user),
    flashcards: FlashcardService = Depends(get_flashcard_service),
):
    return FlashcardResponse.model_validate(flashcards.toggle_star(user, card_id))


@router.delete("/{set_id}", response_model=MessageResponse)
def delete_flashcard_set(
    set_id: str,
    user: User = Depends(get_current_user),
    flashcards: FlashcardService = Depends(get_flashcard_service),
):
    flashcards.delete_set(user, set_id)
    return MessageResponse(message="Flashcard set deleted successfully")
