from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field
from datetime import datetime, timezone

T = TypeVar("T")

class ErrorInfo(BaseModel):
    msg: str
    code: Optional[str] = None
    field: Optional[str] = None

class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

class ApiResponse(BaseModel, Generic[T]):
    """Uniform success envelope: {success, message, data, pagination, timestamp}."""
    success: bool = True
    message: str = "Success"
    data: Optional[T] = None
    pagination: Optional[PaginationMeta] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with JSON-serializable values."""
        return self.model_dump(mode="json")

    @classmethod
    def ok(
        cls,
        data: Any = None,
        message: str = "Success",
        pagination: Optional[PaginationMeta] = None,
    ) -> "ApiResponse[T]":
        return cls(success=True, message=message, data=data, pagination=pagination)

def error_body(message: str, errors: List[ErrorInfo]) -> Dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "errors": [e.model_dump(exclude_none=True) for e in errors],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
