import logging
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session


class BaseService:
    """Common plumbing for services bound to one request's session and tenant."""

    def __init__(self, db: Session, company_id: Optional[int] = None):
        self.db = db
        self.company_id = company_id
        self._logger = logging.getLogger(self.__class__.__module__)


def apply_changes(entity, changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Copy a partial update onto a model and return what was applied.

    An explicit null only clears columns that are nullable and carry no
    default; for every other column it leaves the stored value alone.
    """
    columns = entity.__table__.columns
    applied = {}
    for field, value in changes.items():
        column = columns.get(field)
        if value is None and column is not None and (not column.nullable or column.default is not None):
            continue
        setattr(entity, field, value)
        applied[field] = value
    return applied
