"""Normalization of quiz answers into option indexes.

Quizzes store the canonical zero-based ``correct_index`` when they are
generated. Everything in this module is the compatibility layer for values
that do not arrive in that form: answers submitted by clients as indexes,
option codes or free text, and older quizzes whose correct answer was only
stored as text. Both grading and result display go through
:func:`resolve_index`.
"""
import re
from numbers import Number
from typing import Any, Optional, Sequence

UNRESOLVED = -1

_OPTION_CODE = re.compile(r"^O(\d+)$", re.IGNORECASE)
_EMBEDDED_NUMBER = re.compile(r"\d+")


def _in_range(index: int, options: Sequence[Any]) -> bool:
    return 0 <= index < len(options)


def _resolve_number(value: Number, options: Sequence[Any]) -> int:
    if value != int(value):
        return UNRESOLVED
    index = int(value)
    if _in_range(index, options):
        return index
    if _in_range(index - 1, options):
        return index - 1
    return UNRESOLVED


def _resolve_text(value: str, options: Sequence[Any]) -> int:
    trimmed = value.strip()

    code = _OPTION_CODE.match(trimmed)
    if code:
        index = int(code.group(1)) - 1
        if _in_range(index, options):
            return index

    for index, option in enumerate(options):
        if option == trimmed:
            return index

    lowered = trimmed.lower()
    for index, option in enumerate(options):
        if str(option if option is not None else "").strip().lower() == lowered:
            return index

    number = _EMBEDDED_NUMBER.search(trimmed)
    if number:
        index = int(number.group(0)) - 1
        if _in_range(index, options):
            return index

    return UNRESOLVED


def resolve_index(value: Any, options: Sequence[Any]) -> int:
    """
    Resolve a raw answer value to a zero-based option index.

    Precedence: numeric index (zero-based, then one-based), ``O<n>`` option
    code, exact option text, case-insensitive option text, first integer in
    the text (one-based).

    Args:
        value: Submitted or stored answer
        options: Ordered option texts of the question

    Returns:
        Option index, or ``UNRESOLVED`` when nothing matches
    """
    opts = list(options) if isinstance(options, (list, tuple)) else []

    # bool is a Number subclass but never a valid answer
    if isinstance(value, bool):
        return UNRESOLVED
    if isinstance(value, Number):
        try:
            return _resolve_number(value, opts)
        except (TypeError, ValueError, OverflowError):
            return UNRESOLVED
    if isinstance(value, str):
        return _resolve_text(value, opts)
    return UNRESOLVED


def is_answer_correct(
    selected: Any,
    correct: Any,
    options: Sequence[Any],
    correct_index: Optional[int] = None,
) -> bool:
    """
    Compare a submitted answer with the correct one.

    ``correct_index`` is used as-is when the question stores it; otherwise
    the raw ``correct`` value is resolved. When either side cannot be
    resolved to an option index the raw values are compared instead.
    """
    selected_index = resolve_index(selected, options)
    if correct_index is None or not _in_range(correct_index, options):
        correct_index = resolve_index(correct, options)
    if selected_index != UNRESOLVED and correct_index != UNRESOLVED:
        return selected_index == correct_index
    return selected == correct
