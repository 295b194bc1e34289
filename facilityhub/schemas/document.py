from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, List, Optional
from datetime import datetime
from facilityhub.models.document import DocumentCategory


class DocumentUpdate(BaseModel):
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None
    category: Optional[DocumentCategory] = None
    original_name: Optional[str] = Field(default=None, min_length=1)


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    uploaded_by: int
    file_name: str
    original_name: str
    mimetype: str
    size: int
    category: DocumentCategory
    description: Optional[str] = None
    tags: List[str] = []
    is_public: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return value or []


class CategoryUsage(BaseModel):
    count: int
    size: int


class StorageUsage(BaseModel):
    used: int
    limit: int
    percentage: float


class DocumentStatistics(BaseModel):
    total_documents: int
    total_size: int
    category_breakdown: Dict[str, CategoryUsage]
    recent_uploads: List[DocumentResponse]
    storage_usage: StorageUsage


class DocumentPreview(BaseModel):
    preview_url: str
