from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from facilityhub.core.exceptions import NotFoundError
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.notification import Notification
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_user
from facilityhub.schemas.notification import NotificationResponse

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=ApiResponse[List[NotificationResponse]])
def get_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Notification).filter(Notification.user_id == current_user.id)
    if unread_only:
        query = query.filter(Notification.is_read == False)  # noqa: E712
    notifications = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(50).all()
    return ApiResponse.ok([NotificationResponse.model_validate(n) for n in notifications])


@router.patch("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == current_user.id
    ).first()

    if not notification:
        raise NotFoundError("Notification")

    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return ApiResponse.ok(NotificationResponse.model_validate(notification))


@router.post("/mark-all-read", response_model=ApiResponse[None])
def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    db.query(Notification).filter(
        Notification.user_id == current_user.id,
        Notification.is_read == False  # noqa: E712
    ).update({Notification.is_read: True}, synchronize_session=False)
    db.commit()
    return ApiResponse.ok(message="All notifications marked as read")
