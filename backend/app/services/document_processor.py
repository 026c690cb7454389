"""Document processing service for PDF extraction and chunking."""
from pathlib import Path
from typing import List, Tuple

import pdfplumber

from app.exceptions import ExtractionError
from app.models.document import Chunk
from app.services.chunker import chunk_pages
from app.utils.logger import logger
from app.utils.text_cleaner import clean_text


def extract_text_from_pdf(file_path: str) -> List[Tuple[int, str]]:
    """
    Extract text from PDF using pdfplumber.

    Args:
        file_path: Path to PDF file

    Returns:
        List of (page_number, page_text) tuples

    Raises:
        ExtractionError: If PDF processing fails
    """
    pages_data = []

    try:
        with pdfplumber.open(file_path) as pdf:
            for page_num, page in enumerate(pdf.pages, 1):
                try:
                    text = page.extract_text() or ""
                except Exception as e:
                    logger.warning(f"Error extracting text from PDF page {page_num}: {str(e)}")
                    text = ""
                pages_data.append((page_num, clean_text(text)))
    except Exception as e:
        logger.error(f"Error opening PDF file {file_path}: {str(e)}")
        raise ExtractionError(f"Failed to extract text from PDF: {str(e)}")

    return pages_data


class DocumentProcessor:
    """Handles PDF text extraction and chunking."""

    def __init__(self, chunk_size: int = 500, chunk_overlap: int = 50):
        """
        Initialize document processor.

        Args:
            chunk_size: Target size for text chunks (in words)
            chunk_overlap: Overlap between chunks (in words)
        """
        if chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def process_document(self, file_path: str) -> Tuple[str, List[Chunk]]:
        """
        Extract and chunk a document.

        Args:
            file_path: Path to the document file

        Returns:
            Tuple of (full extracted text, chunks)

        Raises:
            ExtractionError: If the PDF cannot be read
        """
        pages_data = extract_text_from_pdf(file_path)
        full_text = "\n\n".join(text for _, text in pages_data if text)
        if not full_text.strip():
            logger.warning(f"No extractable text found in {Path(file_path).name}")

        chunks = chunk_pages(pages_data, self.chunk_size, self.chunk_overlap)

        logger.info(
            f"Extracted text from {Path(file_path).name}: {len(pages_data)} pages, "
            f"{len(full_text):,} characters, {len(chunks)} chunks",
            extra={"chunk_count": len(chunks)},
        )
        return full_text, chunks
