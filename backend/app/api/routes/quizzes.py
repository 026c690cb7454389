"""Quiz endpoints: taking, submitting and reviewing quizzes."""
from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user, get_quiz_service
from app.api.schemas import (
    MessageResponse,
    QuestionResult,
    QuizResponse,
    QuizResultSummary,
    QuizResultsResponse,
    SubmitQuizRequest,
    SubmitQuizResponse,
    UserAnswerResponse,
)
from app.models.orm import User
from app.services.quiz_service import QuizService
from app.utils.logger import logger

router = APIRouter()


@router.get("/quiz/{quiz_id}", response_model=QuizResponse)
def get_quiz(
    quiz_id: str,
    user: User = Depends(get_current_user),
    quizzes: QuizService = Depends(get_quiz_service),
):
    return QuizResponse.model_validate(quizzes.get_quiz(user, quiz_id))


@router.get("/{document_id}", response_model=List[QuizResponse])
def list_quizzes(
    document_id: str,
    user: User = Depends(get_current_user),
    quizzes: QuizService = Depends(get_quiz_service),
):
    return [QuizResponse.model_validate(q) for q in quizzes.list_quizzes(user, document_id)]


@router.post("/{quiz_id}/submit", response_model=SubmitQuizResponse)
def submit_quiz(
    quiz_id: str,
    request: SubmitQuizRequest,
    user: User = Depends(get_current_user),
    quizzes: QuizService = Depends(get_quiz_service),
):
    """
    Submit answers for a quiz.

    A quiz accepts exactly one submission; later submissions are rejected
    and the stored results stay as they were.
    """
    logger.info(f"Quiz submission with {len(request.answers)} answers", extra={"quiz_id": quiz_id})
    result = quizzes.submit(user, quiz_id, [answer.model_dump() for answer in request.answers])

    return SubmitQuizResponse(
        quiz_id=quiz_id,
        score=result.score,
        correct_count=result.correct_count,
        total_questions=result.total_questions,
        percentage=result.score,
        user_answers=[
            UserAnswerResponse(
                question_index=a.question_index,
                selected_answer=a.selected_answer,
                is_correct=a.is_correct,
                answered_at=a.answered_at,
            )
            for a in result.user_answers
        ],
    )


@router.get("/{quiz_id}/results", response_model=QuizResultsResponse)
def quiz_results(
    quiz_id: str,
    user: User = Depends(get_current_user),
    quizzes: QuizService = Depends(get_quiz_service),
):
    outcome = quizzes.results(user, quiz_id)
    quiz = outcome["quiz"]
    return QuizResultsResponse(
        quiz=QuizResultSummary(
            id=quiz.id,
            title=quiz.title,
            document_id=quiz.document_id,
            score=quiz.score,
            total_questions=quiz.total_questions,
            completed_at=quiz.completed_at,
        ),
        results=[QuestionResult(**detail) for detail in outcome["results"]],
    )


@router.delete("/{quiz_id}", response_model=MessageResponse)
def delete_quiz(
    quiz_id: str,
    user: User = Depends(get_current_user),
    quizzes: QuizService = Depends(get_quiz_service),
):
    quizzes.delete_quiz(user, quiz_id)
    return MessageResponse(message="Quiz deleted successfully")
