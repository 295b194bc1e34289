"""
Tax arithmetic for bookings, rentals and general transactions.

Amounts are rounded half-up to whole currency units. Taxes whose name
contains "service fee" form the service fee; every other applicable tax is
charged on the tax base (subtotal, plus the service fee when the company
charges tax on tax).
"""
import math
from typing import Iterable, List, Optional
from facilityhub.models.tax import Tax, TaxAppliesTo


def _normalize(name: str) -> str:
    return "".join((name or "").split()).lower()


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_service_fee(tax: Tax) -> bool:
    return "servicefee" in _normalize(tax.name)


def applicable_taxes(taxes: Iterable[Tax], applies_to: TaxAppliesTo, company_id: Optional[int]) -> List[Tax]:
    """Active taxes matching the scope, global or owned by the company; VAT first, then by name."""
    scope = TaxAppliesTo(applies_to).value
    matched = [
        tax for tax in taxes
        if tax.active
        and tax.applies_to in (scope, TaxAppliesTo.BOTH.value)
        and (tax.is_super_admin_tax or (company_id is not None and tax.company_id == company_id))
    ]
    return sorted(matched, key=lambda t: (_normalize(t.name) != "vat", t.name.lower()))


def calculate_taxes(
    subtotal: float,
    taxes: Iterable[Tax],
    applies_to: TaxAppliesTo = TaxAppliesTo.BOTH,
    company_id: Optional[int] = None,
    is_taxable: bool = True,
    is_tax_inclusive: bool = False,
    is_tax_on_tax: bool = False,
) -> dict:
    if not is_taxable or subtotal <= 0:
        return {
            "subtotal": subtotal,
            "service_fee": 0,
            "service_fee_rate": 0,
            "tax": 0,
            "total_tax_rate": 0,
            "total": subtotal,
            "breakdown": [],
        }

    matched = applicable_taxes(taxes, applies_to, company_id)
    fee_taxes = [t for t in matched if is_service_fee(t)]
    regular_taxes = [t for t in matched if not is_service_fee(t)]

    service_fee_rate = sum(t.rate or 0 for t in fee_taxes)
    service_fee = round_half_up(subtotal * service_fee_rate / 100)

    tax_base = subtotal + service_fee if is_tax_on_tax else subtotal
    breakdown = [
        {
            "tax_id": t.id,
            "name": t.name,
            "rate": t.rate or 0,
            "amount": round_half_up(tax_base * (t.rate or 0) / 100),
        }
        for t in regular_taxes
    ]
    tax = sum(line["amount"] for line in breakdown)
    total = subtotal if is_tax_inclusive else subtotal + service_fee + tax

    return {
        "subtotal": subtotal,
        "service_fee": service_fee,
        "service_fee_rate": service_fee_rate,
        "tax": tax,
        "total_tax_rate": sum(t.rate or 0 for t in regular_taxes),
        "total": total,
        "breakdown": breakdown,
    }
