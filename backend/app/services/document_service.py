"""Document upload, background processing and lifecycle management."""
import os
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.database import Database
from app.exceptions import DocumentBusyError, DocumentNotFoundError
from app.models.orm import Document, DocumentChunk, DocumentStatus, FlashcardSet, Quiz, User
from app.services.document_processor import DocumentProcessor
from app.utils.logger import logger
from app.utils.metrics import DOCUMENTS_PROCESSED
from app.utils.tracer import span
from app.validators import validate_upload


class DocumentService:
    """Service for handling document uploads and queries."""

    def __init__(self, db: Session, upload_dir: str = "./uploads", max_file_size_mb: int = 10):
        """
        Initialize document service.

        Args:
            db: Database session
            upload_dir: Directory where uploaded PDFs are kept
            max_file_size_mb: Maximum accepted upload size
        """
        self.db = db
        self.upload_dir = Path(upload_dir)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.max_file_size_mb = max_file_size_mb

    def create_document(
        self, user: User, title: str, filename: str, file_content: bytes
    ) -> Document:
        """
        Validate and store an uploaded PDF and register it for processing.

        Args:
            user: Owner of the document
            title: Document title
            filename: Original filename
            file_content: Raw file content as bytes

        Returns:
            The new document in ``processing`` status

        Raises:
            ValidationError: If the upload is rejected
        """
        cleaned_title = validate_upload(filename, file_content, title, self.max_file_size_mb)

        stored_path = self.upload_dir / f"{uuid.uuid4().hex}.pdf"
        stored_path.write_bytes(file_content)

        try:
            document = Document(
                user_id=user.id,
                title=cleaned_title,
                file_name=filename,
                file_path=str(stored_path),
                file_size=len(file_content),
                status=DocumentStatus.PROCESSING,
            )
            self.db.add(document)
            self.db.commit()
            self.db.refresh(document)
        except Exception:
            self.db.rollback()
            stored_path.unlink(missing_ok=True)
            raise

        logger.info(
            f"Document uploaded: {filename}",
            extra={"document_id": document.id, "user_id": user.id},
        )
        return document

    def list_documents(self, user: User) -> List[Dict[str, Any]]:
        """List the user's documents, newest first, with flashcard and quiz counts."""
        flashcard_counts = dict(
            self.db.execute(
                select(FlashcardSet.document_id, func.count(FlashcardSet.id))
                .where(FlashcardSet.user_id == user.id)
                .group_by(FlashcardSet.document_id)
            ).all()
        )
        quiz_counts = dict(
            self.db.execute(
                select(Quiz.document_id, func.count(Quiz.id))
                .where(Quiz.user_id == user.id)
                .group_by(Quiz.document_id)
            ).all()
        )
        documents = self.db.scalars(
            select(Document)
            .where(Document.user_id == user.id)
            .order_by(Document.upload_date.desc())
        ).all()

        return [
            {
                "document": document,
                "flashcard_count": flashcard_counts.get(document.id, 0),
                "quiz_count": quiz_counts.get(document.id, 0),
            }
            for document in documents
        ]

    def get_document(self, user: User, document_id: str) -> Document:
        """
        Fetch a document owned by the user.

        Raises:
            DocumentNotFoundError: If it does not exist or belongs to someone else
        """
        document = self.db.scalars(
            select(Document).where(Document.id == document_id, Document.user_id == user.id)
        ).first()
        if not document:
            raise DocumentNotFoundError("Document not found")
        return document

    def get_ready_document(self, user: User, document_id: str) -> Document:
        """Fetch a document that has finished processing."""
        document = self.db.scalars(
            select(Document).where(
                Document.id == document_id,
                Document.user_id == user.id,
                Document.status == DocumentStatus.READY,
            )
        ).first()
        if not document:
            raise DocumentNotFoundError("Document not found or not ready")
        return document

    def open_document(self, user: User, document_id: str) -> Dict[str, Any]:
        """Fetch a document with its counts and record the access time."""
        document = self.get_document(user, document_id)
        document.last_accessed = datetime.now(timezone.utc)
        self.db.commit()
        return {
            "document": document,
            "flashcard_count": len(document.flashcard_sets),
            "quiz_count": len(document.quizzes),
        }

    def mark_for_reprocessing(self, user: User, document_id: str) -> Document:
        """
        Put an existing document back into ``processing`` status.

        The status flip is a conditional update, so two concurrent requests
        cannot both start a processing pass.

        Raises:
            DocumentNotFoundError: If it does not exist or belongs to someone else
            DocumentBusyError: If the document is still being processed
        """
        document = self.get_document(user, document_id)
        claimed = self.db.execute(
            update(Document)
            .where(Document.id == document.id, Document.status != DocumentStatus.PROCESSING)
            .values(status=DocumentStatus.PROCESSING)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            self.db.rollback()
            raise DocumentBusyError("Document is already being processed")

        self.db.commit()
        self.db.refresh(document)
        return document

    def delete_document(self, user: User, document_id: str) -> None:
        """Delete a document, its stored file and everything generated from it."""
        document = self.get_document(user, document_id)
        file_path = document.file_path

        self.db.delete(document)
        self.db.commit()

        try:
            os.unlink(file_path)
        except FileNotFoundError:
            logger.warning(f"Stored file already missing: {file_path}")

        logger.info("Document deleted", extra={"document_id": document_id, "user_id": user.id})


def _mark_failed(db: Session, document_id: str) -> None:
    """Roll back and flag the document as ``failed`` if it still exists."""
    db.rollback()
    document = db.get(Document, document_id)
    if document is None:
        logger.warning("Document deleted during processing", extra={"document_id": document_id})
        return
    document.status = DocumentStatus.FAILED
    db.commit()
    DOCUMENTS_PROCESSED.labels(status=DocumentStatus.FAILED).inc()


def process_document(database: Database, processor: DocumentProcessor, document_id: str) -> None:
    """
    Extract and chunk a stored document; runs as a background task.

    Chunks are replaced wholesale. The document becomes ``ready`` on success
    and ``failed`` on any error, including a failed write of the results.
    """
    start_time = time.time()
    db = database.session_factory()
    try:
        document = db.get(Document, document_id)
        if document is None:
            logger.warning("Document vanished before processing", extra={"document_id": document_id})
            return

        try:
            with span("document.process", document_id=document_id):
                text, chunks = processor.process_document(document.file_path)
        except Exception as e:
            logger.error(
                f"Error processing document: {str(e)}",
                exc_info=True,
                extra={"document_id": document_id},
            )
            _mark_failed(db, document_id)
            return

        try:
            document.extracted_text = text
            document.chunks = [
                DocumentChunk(
                    chunk_index=chunk.chunk_index,
                    page_number=chunk.page_number,
                    content=chunk.content,
                )
                for chunk in chunks
            ]
            document.status = DocumentStatus.READY
            db.commit()
        except Exception as e:
            logger.error(
                f"Error saving processed document: {str(e)}",
                exc_info=True,
                extra={"document_id": document_id},
            )
            _mark_failed(db, document_id)
            return

        DOCUMENTS_PROCESSED.labels(status=DocumentStatus.READY).inc()
        logger.info(
            f"Document processed in {time.time() - start_time:.2f}s",
            extra={"document_id": document_id, "chunk_count": len(chunks)},
        )
    finally:
        db.close()
