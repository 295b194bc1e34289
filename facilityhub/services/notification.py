from typing import Iterable, Optional
from sqlalchemy.orm import Session
from facilityhub.models.notification import Notification

class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        user_id: int,
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None
    ) -> Notification:
        """
        Queue an in-app notification on the session. The caller commits.
        """
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            link=link
        )
        db.add(notification)
        return notification

    @staticmethod
    def notify_user(
        db: Session,
        user_id: Optional[int],
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None
    ):
        """
        Standardized notification trigger. A missing recipient is a no-op.
        """
        if user_id is None:
            return None
        return NotificationService.create_notification(db, user_id, title, message, type, link)

    @staticmethod
    def notify_users(
        db: Session,
        user_ids: Iterable[int],
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None,
        exclude: Optional[int] = None,
    ):
        return [
            NotificationService.create_notification(db, uid, title, message, type, link)
            for uid in set(user_ids)
            if uid is not None and uid != exclude
        ]
