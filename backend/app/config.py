"""Application configuration."""
import os
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # LLM provider (any OpenAI-compatible chat completions endpoint)
    llm_api_key: str = ""
    llm_base_url: str = "https://api.deepseek.com"
    llm_model: str = "deepseek-chat"
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 60.0
    max_context_chars: int = 15000  # Document text sent to the LLM for generation

    # Persistence
    database_url: str = "sqlite:///./study_aid.db"
    upload_dir: str = "./uploads"
    max_file_size_mb: int = 10

    # Authentication
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Document chunking configuration (word counts)
    chunk_size: int = 500
    chunk_overlap: int = 50
    chat_context_chunks: int = 3

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    # OpenTelemetry tracing configuration
    tracing_enabled: bool = True
    otlp_endpoint: str = ""  # empty = use console exporter

    class Config:
        # Look for .env in both backend/ and parent directory
        env_file = os.path.join(os.path.dirname(__file__), "..", "..", ".env")
        env_file_encoding = 'utf-8'
        case_sensitive = False
        extra = "ignore"
