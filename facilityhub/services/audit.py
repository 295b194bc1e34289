from facilityhub.services.base import BaseService
from facilityhub.models.audit_log import AuditLog
from typing import Optional

class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        user_id: Optional[int],
        user_role: Optional[str],
        details: dict,
        company_id: Optional[int] = None,
    ):
        """
        Create an audit log entry. Strictly append-only.

        Flushes but does not commit, so the entry lands with the caller's
        transaction. Failures are logged and never break the main flow.
        """
        try:
            def sanitize(obj):
                if hasattr(obj, "model_dump"):
                    return obj.model_dump(mode="json")
                if isinstance(obj, dict):
                    return {k: sanitize(v) for k, v in obj.items()}
                if isinstance(obj, (list, tuple)):
                    return [sanitize(i) for i in obj]
                if hasattr(obj, "isoformat"):
                    return obj.isoformat()
                return obj

            role = user_role.value if hasattr(user_role, "value") else user_role
            db_log = AuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                user_id=user_id,
                user_role=role,
                details=sanitize(details),
                company_id=company_id or self.company_id,
            )
            self.db.add(db_log)
            self.db.flush()
            return db_log
        except Exception as e:
            self._logger.error(f"FAILED TO AUDIT LOG: {e}", exc_info=True)
            return None

    def log_user_action(self, user, action: str, entity_type: str, entity_id: Optional[int], details: Optional[dict] = None):
        """Shorthand when the acting user is at hand."""
        return self.log_action(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user.id if user else None,
            user_role=user.role if user else None,
            details=details or {},
            company_id=user.company_id if user else None,
        )

    # Static wrapper for call sites that only hold a session
    @staticmethod
    def log(db, *args, **kwargs):
        service = AuditService(db)
        return service.log_action(*args, **kwargs)
