"""Text cleaning and normalization utilities."""
import re


def clean_text(text: str) -> str:
    """
    Clean and normalize extracted page text.

    Args:
        text: Raw text to clean

    Returns:
        Cleaned text with normalized whitespace
    """
    # Remove special control characters
    text = re.sub(r"[\x00-\x08\x0b-\x0c\x0e-\x1f\x7f]", "", text)

    # Rejoin words hyphenated across line breaks
    text = re.sub(r"(\w)-\n(\w)", r"\1\2", text)

    # Collapse whitespace runs
    text = re.sub(r"\s+", " ", text)

    return text.strip()
