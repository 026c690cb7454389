"""Quiz grading."""
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from app.models.document import GradingResult, QuizQuestion, ResolvedAnswer
from app.services.answer_resolver import is_answer_correct


def percentage(correct_count: int, total_questions: int) -> int:
    """Integer percentage rounded half up; zero when there are no questions."""
    if total_questions <= 0:
        return 0
    return int(math.floor(correct_count / total_questions * 100 + 0.5))


def _question_index(raw: Any, total_questions: int) -> Optional[int]:
    if isinstance(raw, bool) or not isinstance(raw, int):
        return None
    if 0 <= raw < total_questions:
        return raw
    return None


def grade_answers(
    questions: Sequence[QuizQuestion],
    answers: Iterable[Dict[str, Any]],
    now: Optional[datetime] = None,
) -> GradingResult:
    """
    Grade a quiz submission in a single pass.

    Answers whose ``question_index`` is missing, not an integer or out of
    range are skipped, as are repeated answers to an already graded question.

    Args:
        questions: Questions of the quiz in order
        answers: Submitted answers with ``question_index`` and ``selected_answer``
        now: Timestamp recorded on every graded answer (defaults to current UTC time)

    Returns:
        GradingResult with the graded answers and integer percentage score
    """
    answered_at = now or datetime.now(timezone.utc)
    total_questions = len(questions)
    graded: List[ResolvedAnswer] = []
    seen = set()
    correct_count = 0

    for answer in answers:
        index = _question_index(answer.get("question_index"), total_questions)
        if index is None or index in seen:
            continue
        seen.add(index)

        question = questions[index]
        selected = answer.get("selected_answer")
        is_correct = is_answer_correct(
            selected,
            question.correct_answer,
            question.options,
            correct_index=question.correct_index,
        )
        if is_correct:
            correct_count += 1

        graded.append(
            ResolvedAnswer(
                question_index=index,
                selected_answer=selected,
                is_correct=is_correct,
                answered_at=answered_at,
            )
        )

    return GradingResult(
        correct_count=correct_count,
        total_questions=total_questions,
        score=percentage(correct_count, total_questions),
        user_answers=graded,
    )
