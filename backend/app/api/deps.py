"""Request dependencies resolving services from the application context."""
from typing import Iterator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.config import Settings
from app.context import AppContext
from app.exceptions import AuthenticationError, NotFoundError, ServiceUnavailableError
from app.models.orm import User
from app.services.auth_service import AuthService
from app.services.dashboard_service import DashboardService
from app.services.document_service import DocumentService
from app.services.flashcard_service import FlashcardService
from app.services.llm_service import LLMService
from app.services.quiz_service import QuizService
from app.services.study_service import StudyService

bearer_scheme = HTTPBearer(auto_error=False)


def get_context(request: Request) -> AppContext:
    """Get the application context built at startup."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise ServiceUnavailableError("Application context not initialized")
    return context


def get_settings(context: AppContext = Depends(get_context)) -> Settings:
    return context.settings


def get_db(context: AppContext = Depends(get_context)) -> Iterator[Session]:
    yield from context.database.session()


def get_auth_service(context: AppContext = Depends(get_context)) -> AuthService:
    return context.auth_service


def get_llm_service(context: AppContext = Depends(get_context)) -> LLMService:
    if context.llm_service is None:
        raise ServiceUnavailableError("LLM service not configured")
    return context.llm_service


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve the user from the bearer token."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authorized, no token")

    user_id = auth_service.decode_token(credentials.credentials)
    try:
        return auth_service.get_user(db, user_id)
    except NotFoundError:
        raise AuthenticationError("Not authorized, user not found")


def get_document_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> DocumentService:
    return DocumentService(
        db=db,
        upload_dir=settings.upload_dir,
        max_file_size_mb=settings.max_file_size_mb,
    )


def get_study_service(
    db: Session = Depends(get_db),
    documents: DocumentService = Depends(get_document_service),
    llm_service: LLMService = Depends(get_llm_service),
    settings: Settings = Depends(get_settings),
) -> StudyService:
    return StudyService(
        db=db,
        documents=documents,
        llm_service=llm_service,
        max_context_chars=settings.max_context_chars,
        context_chunks=settings.chat_context_chunks,
    )


def get_quiz_service(db: Session = Depends(get_db)) -> QuizService:
    return QuizService(db)


def get_flashcard_service(db: Session = Depends(get_db)) -> FlashcardService:
    return FlashcardService(db)


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    return DashboardService(db)
