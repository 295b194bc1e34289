from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.routers.auth_deps import require_super_admin
from facilityhub.schemas.dashboard import PlatformStats
from facilityhub.services import dashboard_service

router = APIRouter(
    prefix="/super-admin",
    tags=["super-admin"],
    dependencies=[Depends(require_super_admin)]
)


@router.get("/stats", response_model=ApiResponse[PlatformStats])
def get_platform_stats(db: Session = Depends(get_db)):
    """Platform-wide totals across every company."""
    return ApiResponse.ok(dashboard_service.platform_stats(db))
