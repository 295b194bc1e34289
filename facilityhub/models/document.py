from sqlalchemy import Column, Integer, String, Text, Boolean, JSON, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from facilityhub.database import Base


class DocumentCategory(str, enum.Enum):
    INVOICE = "invoice"
    RECEIPT = "receipt"
    CONTRACT = "contract"
    LICENSE = "license"
    OTHER = "other"


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_company_category_created", "company_id", "category", "created_at"),
        Index("ix_documents_uploader_created", "uploaded_by", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    uploaded_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    file_name = Column(String, nullable=False)
    original_name = Column(String, nullable=False)
    file_path = Column(String, nullable=False)
    mimetype = Column(String, nullable=False)
    size = Column(Integer, default=0, nullable=False)
    category = Column(String, default=DocumentCategory.OTHER.value, nullable=False)
    description = Column(Text, nullable=True)
    tags = Column(JSON, default=list)
    is_public = Column(Boolean, default=False, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    uploader = relationship("User")
