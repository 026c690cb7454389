"""Explicitly constructed application context shared by request handlers."""
from dataclasses import dataclass
from typing import Optional

from app.config import Settings
from app.database import Database
from app.services.auth_service import AuthService
from app.services.document_processor import DocumentProcessor
from app.services.llm_service import LLMService
from app.utils.logger import logger


@dataclass
class AppContext:
    """Long-lived services built once at startup and stored on ``app.state``."""

    settings: Settings
    database: Database
    auth_service: AuthService
    document_processor: DocumentProcessor
    llm_service: Optional[LLMService] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        database = Database(settings.database_url)
        database.create_all()

        llm_service = None
        if settings.llm_api_key:
            llm_service = LLMService(
                api_key=settings.llm_api_key,
                base_url=settings.llm_base_url,
                model=settings.llm_model,
                temperature=settings.llm_temperature,
                timeout=settings.llm_timeout_seconds,
            )
        else:
            logger.warning("LLM_API_KEY is not set; AI features are unavailable")

        return cls(
            settings=settings,
            database=database,
            auth_service=AuthService(
                secret=settings.jwt_secret,
                algorithm=settings.jwt_algorithm,
                expire_minutes=settings.jwt_expire_minutes,
            ),
            document_processor=DocumentProcessor(
                chunk_size=settings.chunk_size,
                chunk_overlap=settings.chunk_overlap,
            ),
            llm_service=llm_service,
        )

    async def close(self) -> None:
        if self.llm_service:
            await self.llm_service.close()
        self.database.dispose()
