"""Custom exception classes for the study aid service."""


class StudyAidError(Exception):
    """Base exception for study aid errors."""

    status_code = 500
    error_code = "internal_error"


class ValidationError(StudyAidError):
    """Raised when user input or an uploaded document fails validation."""

    status_code = 400
    error_code = "validation_error"


class FileTypeNotSupportedError(ValidationError):
    """Raised when an unsupported file type is encountered."""

    error_code = "file_type_not_supported"


class FileSizeExceededError(ValidationError):
    """Raised when file size exceeds the maximum allowed."""

    error_code = "file_size_exceeded"


class DocumentCorruptedError(ValidationError):
    """Raised when a document file appears to be corrupted."""

    error_code = "document_corrupted"


class DocumentEmptyError(ValidationError):
    """Raised when a document has no extractable content."""

    error_code = "document_empty"


class AuthenticationError(StudyAidError):
    """Raised when credentials or tokens are missing or invalid."""

    status_code = 401
    error_code = "authentication_failed"


class NotFoundError(StudyAidError):
    """Raised when a requested resource does not exist for the current user."""

    status_code = 404
    error_code = "not_found"


class DocumentNotFoundError(NotFoundError):
    error_code = "document_not_found"


class QuizNotFoundError(NotFoundError):
    error_code = "quiz_not_found"


class FlashcardNotFoundError(NotFoundError):
    error_code = "flashcard_not_found"


class ChatHistoryNotFoundError(NotFoundError):
    error_code = "chat_history_not_found"


class ConflictError(StudyAidError):
    """Raised when a request conflicts with the current state of a resource."""

    status_code = 400
    error_code = "conflict"


class QuizAlreadyCompletedError(ConflictError):
    """Raised when answers are submitted to a quiz that was already graded."""

    error_code = "quiz_already_completed"


class QuizNotCompletedError(ConflictError):
    """Raised when results are requested for a quiz that was never submitted."""

    error_code = "quiz_not_completed"


class DocumentBusyError(ConflictError):
    """Raised when reprocessing is requested while a processing pass is running."""

    error_code = "document_processing_in_progress"


class DuplicateUserError(ConflictError):
    """Raised when registering with an email or username already in use."""

    error_code = "duplicate_user"


class ProcessingError(StudyAidError):
    """Raised when document processing fails."""

    error_code = "processing_error"


class ExtractionError(ProcessingError):
    """Raised when text extraction from document fails."""

    error_code = "extraction_error"


class LLMError(StudyAidError):
    """Raised when the language model call fails."""

    status_code = 502
    error_code = "llm_error"


class LLMResponseError(LLMError):
    """Raised when the language model returns output that cannot be parsed."""

    error_code = "llm_response_invalid"


class ServiceUnavailableError(StudyAidError):
    """Raised when required services are not available."""

    status_code = 503
    error_code = "service_unavailable"
