"""AI study feature endpoints backed by the LLM service."""
from typing import List

from fastapi import APIRouter, Depends, status

from app.api.deps import get_current_user, get_study_service
from app.api.schemas import (
    ChatMessageResponse,
    ChatRequest,
    ChatResponse,
    ExplainConceptRequest,
    ExplainConceptResponse,
    FlashcardSetResponse,
    GenerateFlashcardsRequest,
    GenerateQuizRequest,
    QuizResponse,
    SummaryRequest,
    SummaryResponse,
)
from app.models.orm import User
from app.services.study_service import StudyService

router = APIRouter()


@router.post(
    "/generate-flashcards",
    response_model=FlashcardSetResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_flashcards(
    request: GenerateFlashcardsRequest,
    user: User = Depends(get_current_user),
    study: StudyService = Depends(get_study_service),
):
    flashcard_set = await study.generate_flashcards(user, request.document_id, request.count)
    return FlashcardSetResponse.model_validate(flashcard_set)


@router.post("/generate-quiz", response_model=QuizResponse, status_code=status.HTTP_201_CREATED)
async def generate_quiz(
    request: GenerateQuizRequest,
    user: User = Depends(get_current_user),
    study: StudyService = Depends(get_study_service),
):
    quiz = await study.generate_quiz(user, request.document_id, request.num_questions, request.title)
    return QuizResponse.model_validate(quiz)


@router.post("/generate-summary", response_model=SummaryResponse)
async def generate_summary(
    request: SummaryRequest,
    user: User = Depends(get_current_user),
    study: StudyService = Depends(get_study_service),
):
    return SummaryResponse(**await study.generate_summary(user, request.document_id))


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    user: User = Depends(get_current_user),
    study: StudyService = Depends(get_study_service),
):
    """
    Answer a question about a document.

    The most relevant chunks are retrieved by keyword overlap and sent to the
    LLM as context; the exchange is appended to the document's chat history.
    """
    return ChatResponse(**await study.chat(user, request.document_id, request.question))


@router.post("/explain-concept", response_model=ExplainConceptResponse)
async def explain_concept(
    request: ExplainConceptRequest,
    user: User = Depends(get_current_user),
    study: StudyService = Depends(get_study_service),
):
    return ExplainConceptResponse(
        **await study.explain_concept(user, request.document_id, request.concept)
    )


@router.get("/chat-history/{document_id}", response_model=List[ChatMessageResponse])
def chat_history(
    document_id: str,
    user: User = Depends(get_current_user),
    study: StudyService = Depends(get_study_service),
):
    return [ChatMessageResponse.model_validate(m) for m in study.chat_history(user, document_id)]
