import logging
from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from facilityhub.core.exceptions import NotFoundError
from facilityhub.core.pagination import PageParams, paginate, paginate_list
from facilityhub.models.company import Company
from facilityhub.models.tax import Tax, TaxAppliesTo
from facilityhub.models.user import User, UserRole
from facilityhub.schemas.tax import TaxCalculationRequest, TaxCreate, TaxUpdate
from facilityhub.services.audit import AuditService
from facilityhub.services.base import apply_changes
from facilityhub.services.tax_calculator import calculate_taxes

logger = logging.getLogger(__name__)

# (name, rate, type) seeded as platform-wide defaults
DEFAULT_TAXES = [
    ("VAT", 15.0, "VAT"),
    ("NHIL", 2.5, "Levy"),
    ("GETFund", 2.5, "Levy"),
    ("COVID-19 Levy", 1.0, "Levy"),
    ("Service Fee", 0.0, "Service Fee"),
]


def get_tax(db: Session, tax_id: int, user: User) -> Tax:
    tax = db.get(Tax, tax_id)
    if tax is None:
        raise NotFoundError("Tax")
    if user.role == UserRole.SUPER_ADMIN:
        return tax
    if tax.company_id is None or tax.company_id != user.company_id:
        raise NotFoundError("Tax")
    return tax


def _filtered(query, active: Optional[bool], type: Optional[str], applies_to: Optional[TaxAppliesTo]):
    if active is not None:
        query = query.filter(Tax.active == active)
    if type:
        query = query.filter(Tax.type == type)
    if applies_to:
        query = query.filter(Tax.applies_to == applies_to.value)
    return query


def list_company_taxes(
    db: Session,
    company_id: int,
    params: PageParams,
    active: Optional[bool] = None,
    type: Optional[str] = None,
    applies_to: Optional[TaxAppliesTo] = None,
):
    query = _filtered(db.query(Tax).filter(Tax.company_id == company_id), active, type, applies_to)
    return paginate(query.order_by(Tax.name, Tax.id), params)


def list_global_taxes(db: Session, params: PageParams, active: Optional[bool] = None):
    query = _filtered(db.query(Tax).filter(Tax.is_super_admin_tax == True), active, None, None)  # noqa: E712
    return paginate(query.order_by(Tax.name, Tax.id), params)


def list_combined_taxes(db: Session, company_id: Optional[int], params: PageParams):
    """Global taxes followed by the company's own."""
    global_taxes = db.query(Tax).filter(Tax.is_super_admin_tax == True).order_by(Tax.name, Tax.id).all()  # noqa: E712
    company_taxes: List[Tax] = []
    if company_id is not None:
        company_taxes = db.query(Tax).filter(Tax.company_id == company_id).order_by(Tax.name, Tax.id).all()
    return paginate_list(global_taxes + company_taxes, params)


def create_tax(db: Session, data: TaxCreate, actor: User, is_global: bool = False) -> Tax:
    tax = Tax(
        **data.model_dump(mode="json"),
        is_super_admin_tax=is_global,
        company_id=None if is_global else actor.company_id,
        created_by=actor.id,
    )
    db.add(tax)
    db.flush()
    AuditService(db).log_user_action(actor, "create_tax", "tax", tax.id, {"name": tax.name, "rate": tax.rate, "global": is_global})
    db.commit()
    db.refresh(tax)
    return tax


def update_tax(db: Session, tax_id: int, data: TaxUpdate, actor: User) -> Tax:
    tax = get_tax(db, tax_id, actor)
    changes = apply_changes(tax, data.model_dump(mode="json", exclude_unset=True))
    AuditService(db).log_user_action(actor, "update_tax", "tax", tax.id, changes)
    db.commit()
    db.refresh(tax)
    return tax


def delete_tax(db: Session, tax_id: int, actor: User):
    tax = get_tax(db, tax_id, actor)
    AuditService(db).log_user_action(actor, "delete_tax", "tax", tax.id, {"name": tax.name})
    db.delete(tax)
    db.commit()


def seed_default_taxes(db: Session, actor: Optional[User] = None) -> List[Tax]:
    """Create any missing platform default taxes. Safe to call repeatedly."""
    existing = {
        name for (name,) in db.query(Tax.name).filter(Tax.is_super_admin_tax == True).all()  # noqa: E712
    }
    created = []
    for name, rate, tax_type in DEFAULT_TAXES:
        if name in existing:
            continue
        tax = Tax(
            name=name,
            rate=rate,
            type=tax_type,
            applies_to=TaxAppliesTo.BOTH.value,
            is_super_admin_tax=True,
            company_id=None,
            active=True,
            is_default=True,
            created_by=actor.id if actor else None,
        )
        db.add(tax)
        created.append(tax)
    if created:
        db.flush()
        AuditService(db).log_user_action(actor, "seed_default_taxes", "tax", None, {"created": [t.name for t in created]})
        logger.info(f"Seeded {len(created)} default tax(es)")
    db.commit()
    return db.query(Tax).filter(Tax.is_super_admin_tax == True, Tax.is_default == True).order_by(Tax.id).all()  # noqa: E712


def calculate(db: Session, data: TaxCalculationRequest, user: Optional[User] = None) -> dict:
    company_id = data.company_id if data.company_id is not None else (user.company_id if user else None)
    company = db.get(Company, company_id) if company_id is not None else None
    if company_id is not None and company is None:
        raise NotFoundError("Company")

    candidates = db.query(Tax).filter(
        Tax.active == True,  # noqa: E712
        or_(Tax.is_super_admin_tax == True, Tax.company_id == company_id),  # noqa: E712
    ).all()
    return calculate_taxes(
        subtotal=data.subtotal,
        taxes=candidates,
        applies_to=data.applies_to,
        company_id=company_id,
        is_taxable=data.is_taxable,
        is_tax_inclusive=bool(company and company.is_tax_inclusive),
        is_tax_on_tax=bool(company and company.is_tax_on_tax),
    )
