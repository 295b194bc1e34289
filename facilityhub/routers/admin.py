from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from facilityhub.core.pagination import PageParams, pagination_params
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.company import Company
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_company, require_admin, require_staff
from facilityhub.schemas.dashboard import AuditLogResponse, CompanySummary
from facilityhub.services import dashboard_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/summary", response_model=ApiResponse[CompanySummary])
def get_dashboard_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
    company: Company = Depends(get_current_company),
):
    """
    Aggregated dashboard figures for the caller's company.
    """
    return ApiResponse.ok(dashboard_service.company_summary(db, company))


@router.get("/audit-logs", response_model=ApiResponse[List[AuditLogResponse]])
def get_audit_logs(
    entity_type: Optional[str] = Query(None, description="Filter by entity type (e.g. 'booking')"),
    action: Optional[str] = Query(None, description="Filter by action name"),
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    """
    Get audit logs. READ-ONLY.
    Restricted to company admins, scoped to their company.
    """
    logs, meta = dashboard_service.list_audit_logs(
        db, current_user.company_id, params, action=action, entity_type=entity_type
    )
    return ApiResponse.ok([AuditLogResponse.model_validate(log) for log in logs], pagination=meta)
