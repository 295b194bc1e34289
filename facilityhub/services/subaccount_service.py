"""Paystack subaccounts: where a company's share of each payment settles."""
import logging
from typing import Optional
from sqlalchemy.orm import Session
from facilityhub.core.exceptions import ConflictError, NotFoundError
from facilityhub.core.security import decrypt_data, encrypt_data, mask_account_number
from facilityhub.models.company import Company
from facilityhub.models.user import User
from facilityhub.schemas.subaccount import SubaccountCreate, SubaccountUpdate
from facilityhub.services import paystack
from facilityhub.services.audit import AuditService

logger = logging.getLogger(__name__)


def list_banks(country: str = "ghana", currency: Optional[str] = None, type: Optional[str] = None):
    return paystack.get_client().list_banks(country=country, currency=currency, type=type)


def resolve_account(account_number: str, bank_code: str) -> dict:
    return paystack.get_client().resolve_account(account_number, bank_code)


def _masked(details: dict) -> dict:
    details = dict(details or {})
    if details.get("account_number"):
        details["account_number"] = mask_account_number(details["account_number"])
    return details


def create_subaccount(db: Session, company: Company, data: SubaccountCreate, actor: User) -> dict:
    if company.paystack_subaccount_code:
        raise ConflictError("Company already has a subaccount")

    percentage = data.percentage_charge if data.percentage_charge is not None else company.fee_percent
    created = paystack.get_client().create_subaccount({
        "business_name": data.business_name,
        "settlement_bank": data.settlement_bank,
        "account_number": data.account_number,
        "percentage_charge": percentage,
    })

    company.paystack_subaccount_code = created.get("subaccount_code")
    company.settlement_bank_code = data.settlement_bank
    company.settlement_account_number = encrypt_data(data.account_number)
    company.settlement_account_name = created.get("account_name") or data.business_name
    company.fee_percent = percentage
    AuditService(db).log_user_action(
        actor, "create_subaccount", "company", company.id,
        {"subaccount_code": company.paystack_subaccount_code, "settlement_bank": data.settlement_bank},
    )
    db.commit()
    logger.info(f"Subaccount {company.paystack_subaccount_code} created for company {company.id}")
    return _masked(created)


def get_subaccount(company: Company) -> dict:
    if not company.paystack_subaccount_code:
        raise NotFoundError("Subaccount")
    return _masked(paystack.get_client().fetch_subaccount(company.paystack_subaccount_code))


def update_subaccount(db: Session, company: Company, data: SubaccountUpdate, actor: User) -> dict:
    if not company.paystack_subaccount_code:
        raise NotFoundError("Subaccount")
    payload = data.model_dump(exclude_unset=True, exclude_none=True)
    updated = paystack.get_client().update_subaccount(company.paystack_subaccount_code, payload)

    if data.settlement_bank:
        company.settlement_bank_code = data.settlement_bank
    if data.account_number:
        company.settlement_account_number = encrypt_data(data.account_number)
    if data.settlement_bank or data.account_number:
        # new bank details need a new transfer recipient
        company.paystack_recipient_code = None
    if data.percentage_charge is not None:
        company.fee_percent = data.percentage_charge
    AuditService(db).log_user_action(
        actor, "update_subaccount", "company", company.id,
        {k: v for k, v in payload.items() if k != "account_number"},
    )
    db.commit()
    return _masked(updated)


def settlement_account_number(company: Company) -> Optional[str]:
    return decrypt_data(company.settlement_account_number) if company.settlement_account_number else None
