"""
Subscription plans, company licensing and plan limits.

Limits use -1 for unlimited. A company without a plan is held to the free
trial limits.
"""
import logging
import math
import secrets
from datetime import timedelta
from typing import Optional
from sqlalchemy.orm import Session
from facilityhub.core.clock import utcnow
from facilityhub.core.exceptions import AppException
from facilityhub.models.booking import Booking
from facilityhub.models.company import Company, SubscriptionStatus
from facilityhub.models.facility import Facility
from facilityhub.models.inventory import InventoryItem
from facilityhub.models.user import User
from facilityhub.services.audit import AuditService

logger = logging.getLogger(__name__)

TRIAL_PLAN_ID = "free_trial"


def _features(facilities, users, items, bookings, support, analytics, **flags):
    features = {
        "max_facilities": facilities,
        "max_users": users,
        "max_inventory_items": items,
        "max_bookings": bookings,
        "support": support,
        "analytics": analytics,
    }
    for flag in ("api_access", "custom_branding", "white_label", "dedicated_support",
                 "custom_integrations", "sla_guarantee", "training"):
        features[flag] = flags.get(flag, False)
    return features


PLANS = [
    {
        "id": "free_trial", "label": "Free Trial", "duration_days": 14, "price": 0,
        "description": "Perfect for trying out our platform", "popular": False, "is_trial": True,
        "features": _features(2, 3, 50, 100, "email", "basic"),
    },
    {
        "id": "monthly", "label": "Monthly", "duration_days": 30, "price": 99,
        "description": "Perfect for small businesses and startups", "popular": False, "is_trial": False,
        "features": _features(10, 10, 500, 1000, "email", "standard"),
    },
    {
        "id": "biannual", "label": "Bi-Annual", "duration_days": 182, "price": 499,
        "description": "Great value for growing businesses", "popular": True, "is_trial": False,
        "features": _features(25, 25, 2000, 5000, "priority", "advanced", api_access=True, custom_branding=True),
    },
    {
        "id": "annual", "label": "Annual", "duration_days": 365, "price": 899,
        "description": "Best value for established businesses", "popular": False, "is_trial": False,
        "features": _features(
            50, 50, 10000, 25000, "24/7_priority", "advanced_ai",
            api_access=True, custom_branding=True, white_label=True, dedicated_support=True, training=True,
        ),
    },
    {
        "id": "triannual", "label": "Tri-Annual", "duration_days": 1095, "price": 2399,
        "description": "Ultimate value for enterprise businesses", "popular": False, "is_trial": False,
        "features": _features(
            -1, -1, -1, -1, "24/7_dedicated", "enterprise_ai",
            api_access=True, custom_branding=True, white_label=True, dedicated_support=True,
            custom_integrations=True, sla_guarantee=True, training=True,
        ),
    },
]

_PLANS_BY_ID = {plan["id"]: plan for plan in PLANS}

LIMIT_FEATURES = ("max_facilities", "max_users", "max_inventory_items", "max_bookings")


def find_plan(plan_id: Optional[str]) -> Optional[dict]:
    return _PLANS_BY_ID.get(plan_id) if plan_id else None


def get_plan(plan_id: str) -> dict:
    plan = find_plan(plan_id)
    if plan is None:
        raise AppException(f"Invalid plan: {plan_id}", error_code="INVALID_PLAN")
    return plan


def generate_license_key(company_id: int) -> str:
    return f"{str(company_id).zfill(6)[-6:]}-{secrets.token_hex(8)}".upper()


def has_active_subscription(company: Optional[Company]) -> bool:
    if company is None or company.expires_at is None:
        return False
    return company.expires_at > utcnow() and company.is_active


def apply_plan(company: Company, plan_id: str, payment_reference: Optional[str] = None) -> Company:
    """Start `plan_id` now. Does not commit."""
    plan = get_plan(plan_id)
    now = utcnow()
    company.plan = plan["id"]
    company.expires_at = now + timedelta(days=plan["duration_days"])
    company.license_key = generate_license_key(company.id)
    company.payment_reference = payment_reference
    company.activated_at = now
    company.subscription_status = SubscriptionStatus.ACTIVE.value
    company.is_trial = plan["is_trial"]
    company.is_active = True
    logger.info(f"Company {company.id} activated on plan {plan_id}")
    return company


def start_trial(db: Session, company: Company, actor: User) -> Company:
    if company.has_used_trial:
        raise AppException("Free trial has already been used", error_code="TRIAL_USED")
    apply_plan(company, TRIAL_PLAN_ID)
    company.has_used_trial = True
    AuditService(db).log_user_action(actor, "start_trial", "company", company.id, {"plan": TRIAL_PLAN_ID})
    db.commit()
    db.refresh(company)
    return company


def activate(db: Session, company: Company, plan_id: str, actor: Optional[User], payment_reference: Optional[str] = None) -> Company:
    apply_plan(company, plan_id, payment_reference)
    AuditService(db).log_user_action(actor, "activate_subscription", "company", company.id, {"plan": plan_id})
    db.commit()
    db.refresh(company)
    return company


def renew(db: Session, company: Company, plan_id: str, payment_reference: str, actor: User) -> Company:
    """Extend from the current expiry, or from now when already expired."""
    plan = get_plan(plan_id)
    now = utcnow()
    base = company.expires_at if company.expires_at and company.expires_at > now else now
    company.plan = plan["id"]
    company.expires_at = base + timedelta(days=plan["duration_days"])
    company.payment_reference = payment_reference
    company.subscription_status = SubscriptionStatus.ACTIVE.value
    company.is_trial = plan["is_trial"]
    company.is_active = True
    if not company.license_key:
        company.license_key = generate_license_key(company.id)
    AuditService(db).log_user_action(actor, "renew_subscription", "company", company.id, {"plan": plan_id})
    db.commit()
    db.refresh(company)
    return company


def upgrade(db: Session, company: Company, plan_id: str, payment_reference: str, actor: User) -> Company:
    """New plan starts now; unused time on the current plan carries over."""
    plan = get_plan(plan_id)
    now = utcnow()
    remaining = company.expires_at - now if company.expires_at and company.expires_at > now else timedelta(0)
    company.plan = plan["id"]
    company.expires_at = now + timedelta(days=plan["duration_days"]) + remaining
    company.license_key = generate_license_key(company.id)
    company.payment_reference = payment_reference
    company.activated_at = now
    company.subscription_status = SubscriptionStatus.ACTIVE.value
    company.is_trial = plan["is_trial"]
    company.is_active = True
    AuditService(db).log_user_action(actor, "upgrade_subscription", "company", company.id, {"plan": plan_id})
    db.commit()
    db.refresh(company)
    return company


def cancel(db: Session, company: Company, actor: User) -> Company:
    if not company.plan:
        raise AppException("No subscription to cancel", error_code="NO_SUBSCRIPTION")
    company.subscription_status = SubscriptionStatus.CANCELLED.value
    company.is_active = False
    AuditService(db).log_user_action(actor, "cancel_subscription", "company", company.id, {"plan": company.plan})
    db.commit()
    db.refresh(company)
    return company


def get_status(company: Company) -> dict:
    if not company.plan or company.expires_at is None:
        return {
            "has_subscription": False,
            "is_active": False,
            "plan": None,
            "features": None,
            "expires_at": None,
            "days_remaining": 0,
            "can_start_trial": not company.has_used_trial,
            "is_trial": False,
            "status": company.subscription_status,
        }

    plan = find_plan(company.plan)
    seconds_left = (company.expires_at - utcnow()).total_seconds()
    return {
        "has_subscription": True,
        "is_active": has_active_subscription(company),
        "plan": {k: v for k, v in plan.items() if k != "features"} if plan else None,
        "features": plan["features"] if plan else None,
        "expires_at": company.expires_at,
        "days_remaining": max(0, math.ceil(seconds_left / 86400)),
        "can_start_trial": not company.has_used_trial,
        "is_trial": company.is_trial,
        "status": company.subscription_status,
    }


def can_access_feature(company: Optional[Company], feature: str) -> bool:
    if not has_active_subscription(company):
        return False
    plan = find_plan(company.plan)
    if plan is None or feature not in plan["features"]:
        return False
    value = plan["features"][feature]
    if feature in LIMIT_FEATURES:
        return value == -1 or value > 0
    return value is True


def _limits_for(company: Company) -> dict:
    plan = find_plan(company.plan) or _PLANS_BY_ID[TRIAL_PLAN_ID]
    return plan["features"]


def _count(db: Session, company_id: int, limit_key: str) -> int:
    if limit_key == "max_facilities":
        return db.query(Facility).filter(Facility.company_id == company_id, Facility.is_deleted == False).count()  # noqa: E712
    if limit_key == "max_users":
        return db.query(User).filter(User.company_id == company_id).count()
    if limit_key == "max_inventory_items":
        return db.query(InventoryItem).filter(
            InventoryItem.company_id == company_id, InventoryItem.is_deleted == False  # noqa: E712
        ).count()
    if limit_key == "max_bookings":
        return db.query(Booking).filter(Booking.company_id == company_id, Booking.is_deleted == False).count()  # noqa: E712
    raise ValueError(f"Unknown limit: {limit_key}")


def enforce_limit(db: Session, company: Optional[Company], limit_key: str):
    """Raise 403 PLAN_LIMIT_REACHED once the company is at its plan's limit."""
    if company is None:
        return
    limit = _limits_for(company)[limit_key]
    if limit == -1:
        return
    used = _count(db, company.id, limit_key)
    if used >= limit:
        resource = limit_key.replace("max_", "").replace("_", " ")
        raise AppException(
            f"Plan limit reached: your plan allows {limit} {resource}. Upgrade to add more.",
            status_code=403,
            error_code="PLAN_LIMIT_REACHED",
            details={"limit": limit, "used": used},
        )


def usage(db: Session, company: Company) -> dict:
    limits = _limits_for(company)
    result = {}
    for key, label in (
        ("max_facilities", "facilities"),
        ("max_users", "users"),
        ("max_inventory_items", "inventory"),
        ("max_bookings", "bookings"),
    ):
        result[label] = {
            "used": _count(db, company.id, key),
            "limit": limits[key],
            "unlimited": limits[key] == -1,
        }
    return result
