"""Word-window chunking of extracted document text."""
from typing import Iterable, List, Tuple

from app.models.document import Chunk


def _validate_window(chunk_size: int, overlap: int) -> None:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError(
            f"overlap must be in [0, chunk_size), got overlap={overlap} chunk_size={chunk_size}"
        )


def window_bounds(word_count: int, chunk_size: int, overlap: int) -> List[Tuple[int, int]]:
    """
    Compute ``(start, end)`` word offsets for every chunk window.

    Each window after the first starts ``overlap`` words before the end of
    the previous one. The last window always ends at ``word_count``.

    Args:
        word_count: Total number of words in the text
        chunk_size: Maximum number of words per chunk
        overlap: Number of words shared by adjacent chunks

    Returns:
        List of half-open ``(start, end)`` offsets, empty when there are no words
    """
    _validate_window(chunk_size, overlap)

    bounds = []
    start = 0
    step = chunk_size - overlap
    while start < word_count:
        end = min(start + chunk_size, word_count)
        bounds.append((start, end))
        if end >= word_count:
            break
        start += step
    return bounds


def chunk_text(text: str, chunk_size: int = 500, overlap: int = 50) -> List[Chunk]:
    """
    Split text into overlapping word-count-bounded chunks.

    Args:
        text: Full extracted document text
        chunk_size: Target chunk size in words
        overlap: Words repeated at the start of each following chunk

    Returns:
        List of Chunk objects with sequential ``chunk_index`` and page 0
    """
    words = text.split() if text else []
    return [
        Chunk(content=" ".join(words[start:end]), chunk_index=index, page_number=0)
        for index, (start, end) in enumerate(window_bounds(len(words), chunk_size, overlap))
    ]


def chunk_pages(
    pages: Iterable[Tuple[int, str]], chunk_size: int = 500, overlap: int = 50
) -> List[Chunk]:
    """
    Chunk a document given page by page.

    Words of all pages form a single stream, so chunks may span page
    boundaries. Each chunk is tagged with the page its first word came from.

    Args:
        pages: Sequence of ``(page_number, page_text)`` tuples
        chunk_size: Target chunk size in words
        overlap: Words repeated at the start of each following chunk

    Returns:
        List of Chunk objects
    """
    words: List[str] = []
    word_pages: List[int] = []
    for page_number, page_text in pages:
        page_words = (page_text or "").split()
        words.extend(page_words)
        word_pages.extend([page_number] * len(page_words))

    return [
        Chunk(
            content=" ".join(words[start:end]),
            chunk_index=index,
            page_number=word_pages[start],
        )
        for index, (start, end) in enumerate(window_bounds(len(words), chunk_size, overlap))
    ]
