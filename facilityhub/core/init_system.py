import logging
from facilityhub.core.config import settings
from facilityhub.database import SessionLocal
from facilityhub.models.user import User, UserRole
from facilityhub.services import auth as auth_service

logger = logging.getLogger(__name__)


def init_system_data():
    """
    Ensures the platform owner account exists.
    Skipped unless SUPER_ADMIN_EMAIL and SUPER_ADMIN_PASSWORD are both set.
    """
    email = settings.super_admin_email
    password = settings.super_admin_password
    if not email or not password:
        logger.info("System initialization check: no super admin credentials configured, skipping.")
        return

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.email == email).first()
        if existing is None:
            db.add(User(
                email=email,
                hashed_password=auth_service.get_password_hash(password),
                full_name="Platform Administrator",
                role=UserRole.SUPER_ADMIN,
                is_active=True,
            ))
            db.commit()
            logger.info(f"✓ Created super admin {email}")
        elif existing.role != UserRole.SUPER_ADMIN:
            logger.warning(f"User {email} exists but is not a super admin; leaving it unchanged")
        else:
            logger.info("System initialization check: super admin present.")
    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
    finally:
        db.close()
