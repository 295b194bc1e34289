import logging
from typing import Optional
from sqlalchemy.orm import Session
from facilityhub.core.exceptions import AppException, ConflictError, NotFoundError
from facilityhub.core.pagination import PageParams, paginate
from facilityhub.models.company import Company
from facilityhub.models.user import User, UserRole
from facilityhub.schemas.company import CompanyCreate, CompanyUpdate
from facilityhub.services.audit import AuditService
from facilityhub.services.company_role_service import initialize_default_roles
from facilityhub.services.base import apply_changes

logger = logging.getLogger(__name__)


def get_company(db: Session, company_id: int) -> Company:
    company = db.get(Company, company_id)
    if company is None:
        raise NotFoundError("Company")
    return company


def create_company(db: Session, owner: User, data: CompanyCreate) -> Company:
    """
    Create a tenant owned by `owner`, who becomes its admin.
    The company stays inactive until a trial or subscription activates it.
    """
    if owner.company_id is not None:
        raise AppException("You already belong to a company", status_code=400, error_code="ALREADY_IN_COMPANY")
    if owner.role == UserRole.SUPER_ADMIN:
        raise AppException("Super admins cannot own a company", status_code=400)
    if db.query(Company).filter(Company.name == data.name).first():
        raise ConflictError("A company with this name already exists")

    company = Company(
        name=data.name,
        location=data.location,
        contact_email=data.contact_email or owner.email,
        contact_phone=data.contact_phone,
        currency=data.currency,
        owner_id=owner.id,
        is_active=False,
    )
    db.add(company)
    db.flush()

    owner.company_id = company.id
    owner.role = UserRole.ADMIN
    initialize_default_roles(db, company.id, owner)
    AuditService(db).log_user_action(owner, "create_company", "company", company.id, {"name": company.name})
    db.commit()
    db.refresh(company)
    logger.info(f"Company {company.id} created by user {owner.id}")
    return company


def update_company(db: Session, company: Company, data: CompanyUpdate, actor: User) -> Company:
    changes = data.model_dump(exclude_unset=True)
    if changes.get("name") and changes["name"] != company.name:
        clash = db.query(Company).filter(Company.name == changes["name"], Company.id != company.id).first()
        if clash:
            raise ConflictError("A company with this name already exists")
    changes = apply_changes(company, changes)
    AuditService(db).log_user_action(actor, "update_company", "company", company.id, changes)
    db.commit()
    db.refresh(company)
    return company


def list_companies(db: Session, params: PageParams, search: Optional[str] = None, is_active: Optional[bool] = None):
    query = db.query(Company)
    if search:
        query = query.filter(Company.name.ilike(f"%{search}%"))
    if is_active is not None:
        query = query.filter(Company.is_active == is_active)
    return paginate(query.order_by(Company.id.desc()), params)


def set_company_status(db: Session, company_id: int, is_active: bool, actor: User) -> Company:
    company = get_company(db, company_id)
    company.is_active = is_active
    AuditService(db).log_user_action(actor, "set_company_status", "company", company.id, {"is_active": is_active})
    db.commit()
    db.refresh(company)
    return company


def update_payout_config(db: Session, company_id: int, subaccount_code: Optional[str], fee_percent: float, actor: User) -> Company:
    company = get_company(db, company_id)
    if subaccount_code is not None:
        company.paystack_subaccount_code = subaccount_code or None
    company.fee_percent = fee_percent
    AuditService(db).log_user_action(
        actor, "update_payout_config", "company", company.id,
        {"subaccount_code": company.paystack_subaccount_code, "fee_percent": fee_percent},
    )
    db.commit()
    db.refresh(company)
    return company
