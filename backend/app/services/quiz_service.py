"""Quiz retrieval, submission and results."""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.exceptions import QuizAlreadyCompletedError, QuizNotCompletedError, QuizNotFoundError
from app.models.document import GradingResult
from app.models.orm import Quiz, User
from app.services.answer_resolver import UNRESOLVED, resolve_index
from app.services.grading import grade_answers
from app.utils.logger import logger
from app.utils.metrics import QUIZ_SUBMISSIONS
from app.utils.tracer import span


class QuizService:
    """Reads, grades and deletes the user's quizzes."""

    def __init__(self, db: Session):
        self.db = db

    def list_quizzes(self, user: User, document_id: str) -> List[Quiz]:
        return list(
            self.db.scalars(
                select(Quiz)
                .where(Quiz.user_id == user.id, Quiz.document_id == document_id)
                .order_by(Quiz.created_at.desc())
            ).all()
        )

    def get_quiz(self, user: User, quiz_id: str) -> Quiz:
        quiz = self.db.scalars(
            select(Quiz).where(Quiz.id == quiz_id, Quiz.user_id == user.id)
        ).first()
        if not quiz:
            raise QuizNotFoundError("Quiz not found")
        return quiz

    def submit(self, user: User, quiz_id: str, answers: Iterable[Dict[str, Any]]) -> GradingResult:
        """
        Grade a submission once and persist the results.

        The results are written with a conditional update on
        ``completed_at IS NULL``; a submission that loses a race with another
        one is rejected and leaves the stored results untouched.

        Raises:
            QuizNotFoundError: If the quiz does not exist
            QuizAlreadyCompletedError: If the quiz was already submitted
        """
        quiz = self.get_quiz(user, quiz_id)
        if quiz.completed_at is not None:
            raise QuizAlreadyCompletedError("Quiz already completed")

        now = datetime.now(timezone.utc)
        with span("quiz.grade", quiz_id=quiz.id):
            result = grade_answers(quiz.quiz_questions(), answers, now=now)

        user_answers = [
            {
                "question_index": answer.question_index,
                "selected_answer": answer.selected_answer,
                "is_correct": answer.is_correct,
                "answered_at": answer.answered_at.isoformat(),
            }
            for answer in result.user_answers
        ]
        stored = self.db.execute(
            update(Quiz)
            .where(Quiz.id == quiz.id, Quiz.user_id == user.id, Quiz.completed_at.is_(None))
            .values(user_answers=user_answers, score=result.score, completed_at=now)
            .execution_options(synchronize_session=False)
        )
        if stored.rowcount == 0:
            self.db.rollback()
            raise QuizAlreadyCompletedError("Quiz already completed")

        self.db.commit()
        self.db.refresh(quiz)
        QUIZ_SUBMISSIONS.inc()

        logger.info(
            "Quiz submitted",
            extra={
                "quiz_id": quiz.id,
                "score": result.score,
                "correct_count": result.correct_count,
                "total_questions": result.total_questions,
            },
        )
        return result

    def results(self, user: User, quiz_id: str) -> Dict[str, Any]:
        """
        Build per-question results for a completed quiz.

        Raises:
            QuizNotCompletedError: If the quiz has not been submitted yet
        """
        quiz = self.get_quiz(user, quiz_id)
        if quiz.completed_at is None:
            raise QuizNotCompletedError("Quiz not completed")

        details = []
        for index, question in enumerate(quiz.quiz_questions()):
            answer = quiz.answer_for(index) or {}
            correct_index = question.correct_index
            if correct_index is None:
                correct_index = resolve_index(question.correct_answer, question.options)
            selected_index = resolve_index(answer.get("selected_answer"), question.options)
            details.append(
                {
                    "question_index": index,
                    "question": question.question,
                    "options": question.options,
                    "correct_answer": question.correct_answer,
                    "correct_index": None if correct_index == UNRESOLVED else correct_index,
                    "selected_answer": answer.get("selected_answer"),
                    "selected_index": None if selected_index == UNRESOLVED else selected_index,
                    "is_correct": bool(answer.get("is_correct", False)),
                    "explanation": question.explanation,
                }
            )

        return {"quiz": quiz, "results": details}

    def delete_quiz(self, user: User, quiz_id: str) -> None:
        quiz = self.get_quiz(user, quiz_id)
        self.db.delete(quiz)
        self.db.commit()
        logger.info("Quiz deleted", extra={"quiz_id": quiz_id})
