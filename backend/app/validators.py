"""Upload validation utilities."""
from pathlib import Path

from app.exceptions import (
    DocumentCorruptedError,
    DocumentEmptyError,
    FileSizeExceededError,
    FileTypeNotSupportedError,
    ValidationError,
)


class PDFValidator:
    """Validator for uploaded PDF files."""

    SUPPORTED_EXTENSIONS = ['.pdf']
    PDF_HEADER = b'%PDF-'

    @classmethod
    def validate_file_type(cls, filename: str) -> str:
        """Validate file type and return clean extension."""
        if not filename:
            raise FileTypeNotSupportedError("Please upload a PDF file")

        extension = Path(filename).suffix.lower()
        if extension not in cls.SUPPORTED_EXTENSIONS:
            raise FileTypeNotSupportedError(
                f"Unsupported file type. Supported formats: {', '.join(cls.SUPPORTED_EXTENSIONS)}"
            )
        return extension

    @classmethod
    def validate_file_size(cls, file_size_bytes: int, max_size_mb: float) -> None:
        """Validate file size."""
        if file_size_bytes == 0:
            raise DocumentEmptyError("Uploaded file is empty.")

        file_size_mb = file_size_bytes / (1024 * 1024)
        if file_size_mb > max_size_mb:
            raise FileSizeExceededError(
                f"File size ({file_size_mb:.2f} MB) exceeds maximum allowed size ({max_size_mb} MB)."
            )

    @classmethod
    def validate_header(cls, content: bytes) -> None:
        """Check the PDF magic bytes."""
        if not content.startswith(cls.PDF_HEADER):
            raise DocumentCorruptedError(
                "File is not a valid PDF. PDF files must start with '%PDF-' header."
            )


def validate_upload(filename: str, content: bytes, title: str, max_file_size_mb: float) -> str:
    """
    Validate an uploaded document before it is stored.

    Args:
        filename: Original filename
        content: Raw file content
        title: User supplied document title
        max_file_size_mb: Maximum accepted size in MB

    Returns:
        The cleaned title

    Raises:
        ValidationError: If any check fails
    """
    PDFValidator.validate_file_type(filename)
    PDFValidator.validate_file_size(len(content), max_file_size_mb)
    PDFValidator.validate_header(content)

    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Please provide a document title")
    return cleaned
