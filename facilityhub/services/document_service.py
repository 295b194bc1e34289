"""
Company document storage: files on local disk under <UPLOAD_DIR>/documents,
metadata in the documents table.
"""
import logging
import os
from typing import List, Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from facilityhub.core.config import settings
from facilityhub.core.exceptions import NotFoundError
from facilityhub.core.pagination import PageParams, paginate, paginate_list
from facilityhub.core.uploads import remove_file, store_file, validate_upload
from facilityhub.models.document import Document, DocumentCategory
from facilityhub.models.user import User
from facilityhub.schemas.document import DocumentResponse, DocumentUpdate
from facilityhub.services.audit import AuditService

logger = logging.getLogger(__name__)


def parse_tags(raw: Optional[str]) -> List[str]:
    return [tag.strip() for tag in (raw or "").split(",") if tag.strip()]


def upload_document(
    db: Session,
    actor: User,
    filename: Optional[str],
    content_type: Optional[str],
    content: bytes,
    category: DocumentCategory = DocumentCategory.OTHER,
    description: Optional[str] = None,
    tags: Optional[str] = None,
    is_public: bool = False,
) -> Document:
    validate_upload(filename, content_type, len(content))
    stored_name, path = store_file("documents", filename, content)
    try:
        document = Document(
            company_id=actor.company_id,
            uploaded_by=actor.id,
            file_name=stored_name,
            original_name=filename,
            file_path=path,
            mimetype=content_type,
            size=len(content),
            category=category.value,
            description=description,
            tags=parse_tags(tags),
            is_public=is_public,
        )
        db.add(document)
        db.flush()
        AuditService(db).log_user_action(
            actor, "upload_document", "document", document.id,
            {"original_name": filename, "size": len(content), "category": category.value},
        )
        db.commit()
    except Exception:
        db.rollback()
        remove_file(path)
        logger.error(f"Document insert failed, removed stored file {stored_name}", exc_info=True)
        raise
    db.refresh(document)
    logger.info(f"Document {document.id} uploaded by user {actor.id}")
    return document


def get_document(db: Session, document_id: int, user: User) -> Document:
    document = db.query(Document).filter(
        Document.id == document_id,
        Document.company_id == user.company_id,
        Document.is_deleted == False,  # noqa: E712
    ).first()
    if document is None:
        raise NotFoundError("Document")
    return document


def list_documents(
    db: Session,
    user: User,
    params: PageParams,
    category: Optional[DocumentCategory] = None,
    uploaded_by: Optional[int] = None,
    is_public: Optional[bool] = None,
    tags: Optional[str] = None,
    search: Optional[str] = None,
):
    query = db.query(Document).filter(
        Document.company_id == user.company_id,
        Document.is_deleted == False,  # noqa: E712
    )
    if category:
        query = query.filter(Document.category == category.value)
    if uploaded_by:
        query = query.filter(Document.uploaded_by == uploaded_by)
    if is_public is not None:
        query = query.filter(Document.is_public == is_public)
    if search:
        term = f"%{search}%"
        query = query.filter(or_(
            Document.file_name.ilike(term),
            Document.original_name.ilike(term),
            Document.description.ilike(term),
        ))
    query = query.order_by(Document.created_at.desc(), Document.id.desc())

    wanted = set(parse_tags(tags))
    if wanted:
        # JSON list membership is matched in Python
        matches = [doc for doc in query.all() if wanted.intersection(doc.tags or [])]
        return paginate_list(matches, params)
    return paginate(query, params)


def update_document(db: Session, document_id: int, data: DocumentUpdate, actor: User) -> Document:
    document = get_document(db, document_id, actor)
    changes = data.model_dump(mode="json", exclude_unset=True)
    for field, value in changes.items():
        if value is None and field in ("is_public", "category", "original_name"):
            continue
        setattr(document, field, list(value) if field == "tags" else value)
    AuditService(db).log_user_action(actor, "update_document", "document", document.id, changes)
    db.commit()
    db.refresh(document)
    return document


def delete_document(db: Session, document_id: int, actor: User):
    document = get_document(db, document_id, actor)
    document.is_deleted = True
    removed = remove_file(document.file_path)
    AuditService(db).log_user_action(
        actor, "delete_document", "document", document.id,
        {"original_name": document.original_name, "file_removed": removed},
    )
    db.commit()


def document_statistics(db: Session, company_id: int) -> dict:
    base = db.query(Document).filter(Document.company_id == company_id, Document.is_deleted == False)  # noqa: E712
    rows = base.with_entities(
        Document.category, func.count(Document.id), func.coalesce(func.sum(Document.size), 0)
    ).group_by(Document.category).all()

    breakdown = {category: {"count": count, "size": int(size)} for category, count, size in rows}
    total_documents = sum(v["count"] for v in breakdown.values())
    total_size = sum(v["size"] for v in breakdown.values())
    limit = settings.document_storage_limit_bytes
    recent = base.order_by(Document.created_at.desc(), Document.id.desc()).limit(5).all()

    return {
        "total_documents": total_documents,
        "total_size": total_size,
        "category_breakdown": breakdown,
        "recent_uploads": [DocumentResponse.model_validate(d) for d in recent],
        "storage_usage": {
            "used": total_size,
            "limit": limit,
            "percentage": round(total_size / limit * 100, 2) if limit else 0.0,
        },
    }


def document_file(db: Session, document_id: int, user: User) -> Document:
    """The document, provided its file is still on disk."""
    document = get_document(db, document_id, user)
    if not document.file_path or not os.path.exists(document.file_path):
        raise NotFoundError("File", message="File not found on server")
    return document
