"""Database engine and session management."""
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.utils.logger import logger


class Base(DeclarativeBase):
    pass


class Database:
    """Owns the SQLAlchemy engine and hands out sessions."""

    def __init__(self, url: str, echo: bool = False):
        """
        Initialize database connection.

        Args:
            url: SQLAlchemy database URL
            echo: Log emitted SQL statements
        """
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.url = url
        self.engine = create_engine(url, echo=echo, connect_args=connect_args)
        self.session_factory = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    def create_all(self) -> None:
        """Create tables for all registered models."""
        # Import models so they are registered on Base.metadata
        from app.models import orm  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ready")

    def session(self) -> Iterator[Session]:
        """Yield a session that is always closed afterwards."""
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()
