"""Document upload and management endpoints."""
from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile, status

from app.api.deps import get_context, get_current_user, get_document_service
from app.api.schemas import DocumentDetail, DocumentSummary, MessageResponse, UploadResponse
from app.context import AppContext
from app.exceptions import FileTypeNotSupportedError
from app.models.orm import User
from app.services.document_service import DocumentService, process_document

router = APIRouter()


def _with_counts(entry: Dict[str, Any], schema=DocumentSummary):
    return schema.model_validate(entry["document"]).model_copy(
        update={"flashcard_count": entry["flashcard_count"], "quiz_count": entry["quiz_count"]}
    )


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    background_tasks: BackgroundTasks,
    file: Annotated[Optional[UploadFile], File()] = None,
    title: Annotated[str, Form()] = "",
    user: User = Depends(get_current_user),
    documents: DocumentService = Depends(get_document_service),
    context: AppContext = Depends(get_context),
):
    """
    Upload a PDF; text extraction and chunking continue in the background.

    Args:
        file: PDF file to upload
        title: Document title
        user: Authenticated user
        documents: Document service instance

    Returns:
        UploadResponse with the new document in ``processing`` status
    """
    if file is None:
        raise FileTypeNotSupportedError("Please upload a PDF file")

    file_content = await file.read()
    document = documents.create_document(user, title, file.filename or "", file_content)

    background_tasks.add_task(
        process_document, context.database, context.document_processor, document.id
    )
    return UploadResponse.model_validate(document)


@router.get("", response_model=List[DocumentSummary])
def list_documents(
    user: User = Depends(get_current_user),
    documents: DocumentService = Depends(get_document_service),
):
    return [_with_counts(entry) for entry in documents.list_documents(user)]


@router.get("/{document_id}", response_model=DocumentDetail)
def get_document(
    document_id: str,
    user: User = Depends(get_current_user),
    documents: DocumentService = Depends(get_document_service),
):
    return _with_counts(documents.open_document(user, document_id), DocumentDetail)


@router.post("/{document_id}/reprocess", response_model=UploadResponse)
def reprocess_document(
    document_id: str,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    documents: DocumentService = Depends(get_document_service),
    context: AppContext = Depends(get_context),
):
    """Re-run extraction and chunking; existing chunks are replaced."""
    document = documents.mark_for_reprocessing(user, document_id)
    background_tasks.add_task(
        process_document, context.database, context.document_processor, document.id
    )
    response = UploadResponse.model_validate(document)
    return response.model_copy(update={"message": "Document reprocessing started"})


@router.delete("/{document_id}", response_model=MessageResponse)
def delete_document(
    document_id: str,
    user: User = Depends(get_current_user),
    documents: DocumentService = Depends(get_document_service),
):
    documents.delete_document(user, document_id)
    return MessageResponse(message="Document deleted successfully")
