from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
import time
from facilityhub.core.pagination import PageParams, pagination_params
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.document import DocumentCategory
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import require_staff
from facilityhub.schemas.document import DocumentPreview, DocumentResponse, DocumentStatistics, DocumentUpdate
from facilityhub.services import document_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])

document_staff = require_staff(active_company=True)


@router.post("/upload", response_model=ApiResponse[DocumentResponse], status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: Optional[UploadFile] = File(None),
    category: DocumentCategory = Form(DocumentCategory.OTHER),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    is_public: bool = Form(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(document_staff),
):
    """
    Upload a company document (PDF, Word, Excel, images, plain text).
    """
    upload_start = time.time()
    content = await file.read() if file is not None else b""
    document = document_service.upload_document(
        db, current_user,
        filename=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
        content=content,
        category=category,
        description=description,
        tags=tags,
        is_public=is_public,
    )
    logger.info(f"Upload of document {document.id} finished in {time.time() - upload_start:.2f}s")
    return ApiResponse.ok(DocumentResponse.model_validate(document), message="Document uploaded")


@router.get("/statistics", response_model=ApiResponse[DocumentStatistics])
def document_statistics(
    db: Session = Depends(get_db),
    current_user: User = Depends(document_staff),
):
    return ApiResponse.ok(document_service.document_statistics(db, current_user.company_id))


@router.get("", response_model=ApiResponse[List[DocumentResponse]])
def list_documents(
    category: Optional[DocumentCategory] = None,
    uploaded_by: Optional[int] = None,
    is_public: Optional[bool] = None,
    tags: Optional[str] = None,
    search: Optional[str] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(document_staff),
):
    documents, meta = document_service.list_documents(
        db, current_user, params, category, uploaded_by, is_public, tags, search
    )
    return ApiResponse.ok([DocumentResponse.model_validate(d) for d in documents], pagination=meta)


@router.get("/{document_id}", response_model=ApiResponse[DocumentResponse])
def get_document(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(document_staff),
):
    return ApiResponse.ok(DocumentResponse.model_validate(document_service.get_document(db, document_id, current_user)))


@router.put("/{document_id}", response_model=ApiResponse[DocumentResponse])
def update_document(
    document_id: int,
    data: DocumentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(document_staff),
):
    document = document_service.update_document(db, document_id, data, current_user)
    return ApiResponse.ok(DocumentResponse.model_validate(document), message="Document updated")


@router.delete("/{document_id}", response_model=ApiResponse[None])
def delete_document(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(document_staff),
):
    document_service.delete_document(db, document_id, current_user)
    return ApiResponse.ok(message="Document deleted")


@router.get("/{document_id}/preview", response_model=ApiResponse[DocumentPreview])
def preview_document(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(document_staff),
):
    document = document_service.document_file(db, document_id, current_user)
    return ApiResponse.ok({"preview_url": f"/api/documents/{document.id}/download?inline=true"})


@router.get("/{document_id}/download")
def download_document(
    document_id: int,
    inline: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(document_staff),
):
    document = document_service.document_file(db, document_id, current_user)
    return FileResponse(
        document.file_path,
        media_type=document.mimetype,
        filename=document.original_name,
        content_disposition_type="inline" if inline else "attachment",
    )
