"""Keyword-overlap retrieval of document chunks for LLM context."""
import re
from typing import List, Sequence

from app.models.document import Chunk, ScoredChunk

STOP_WORDS = frozenset(
    {
        "a", "about", "after", "all", "also", "an", "and", "any", "are", "as", "at",
        "be", "been", "but", "by", "can", "could", "did", "do", "does", "for", "from",
        "had", "has", "have", "how", "into", "its", "not", "of", "on", "or", "our",
        "should", "than", "that", "the", "their", "them", "then", "there", "these",
        "they", "this", "those", "was", "were", "what", "when", "where", "which",
        "while", "who", "whom", "why", "will", "with", "would", "you", "your",
    }
)

MIN_KEYWORD_LENGTH = 3

_PUNCTUATION = re.compile(r"[^\w\s]")


def extract_keywords(query: str) -> List[str]:
    """
    Tokenize a query into distinct lowercase keywords.

    Punctuation, stop-words and tokens shorter than three characters are
    dropped. Order of first occurrence is preserved.
    """
    if not query:
        return []

    tokens = _PUNCTUATION.sub(" ", query.lower()).split()
    keywords = []
    for token in tokens:
        if len(token) < MIN_KEYWORD_LENGTH or token in STOP_WORDS:
            continue
        if token not in keywords:
            keywords.append(token)
    return keywords


def score_chunk(chunk: Chunk, keywords: Sequence[str]) -> int:
    """Count the keywords contained in the chunk content (case-insensitive)."""
    content = chunk.content.lower()
    return sum(1 for keyword in keywords if keyword in content)


def find_relevant_chunks(chunks: Sequence[Chunk], query: str, k: int = 3) -> List[ScoredChunk]:
    """
    Select the top-``k`` chunks for a query by keyword overlap.

    Args:
        chunks: Chunks of one document
        query: Free-text question or concept name
        k: Maximum number of chunks to return

    Returns:
        ScoredChunk list ordered by descending score, ties by ascending chunk index
    """
    if k <= 0 or not chunks:
        return []

    keywords = extract_keywords(query)
    scored = [ScoredChunk(chunk=chunk, score=score_chunk(chunk, keywords)) for chunk in chunks]
    scored.sort(key=lambda item: (-item.score, item.chunk_index))
    return scored[:k]
