"""
Form 401 (營業人銷售額與稅額申報書) summary.

Pure.  The caller supplies the posted invoices of one bi-monthly period as
``InvoiceDetail`` values; credit notes subtract from their bucket.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from tax_filing.domain.types import (
    Form401,
    Form401Bucket,
    InvoiceDetail,
    TaxCategory,
    TaxPeriod,
)

ZERO = Decimal("0")

ZERO_RATED_TAX_TYPE = "2"
SPECIAL_TAX_TYPE = "9"


def calculate_tax_period(year: int, bi_month: int) -> TaxPeriod:
    """Bi-month 1 is Jan-Feb, 6 is Nov-Dec.  Returns are due on the 15th of the next month."""
    if not (1 <= bi_month <= 6):
        raise ValueError(f"bi_month must be 1..6, got {bi_month}")
    start_month = (bi_month - 1) * 2 + 1
    end_month = start_month + 1
    last_day = calendar.monthrange(year, end_month)[1]
    if end_month == 12:
        due = date(year + 1, 1, 15)
    else:
        due = date(year, end_month + 1, 15)
    return TaxPeriod(
        year=year,
        bi_month=bi_month,
        start_date=date(year, start_month, 1),
        end_date=date(year, end_month, last_day),
        filing_due_date=due,
    )


def determine_tax_category(
    untaxed_amount: Decimal,
    tax_amount: Decimal,
    has_tax_code: bool = False,
) -> TaxCategory:
    """
    No tax on a positive sale is zero-rated when the invoice carries a
    zero-rate tax code, otherwise exempt.
    """
    untaxed = abs(untaxed_amount)
    tax = abs(tax_amount)
    if tax == ZERO and untaxed > ZERO:
        return TaxCategory.ZERO_RATED if has_tax_code else TaxCategory.EXEMPT
    if tax > ZERO:
        return TaxCategory.TAXABLE
    return TaxCategory.NON_TAXABLE


def category_for_tax_type(
    tax_type: str | None, untaxed_amount: Decimal, tax_amount: Decimal
) -> TaxCategory:
    """Tax type column ("1", "2", "3", "9") plus amounts -> category."""
    if tax_type == SPECIAL_TAX_TYPE:
        return TaxCategory.SPECIAL
    return determine_tax_category(
        untaxed_amount, tax_amount, has_tax_code=tax_type == ZERO_RATED_TAX_TYPE
    )


def _bucket(details: list[InvoiceDetail]) -> Form401Bucket:
    return Form401Bucket(
        count=len(details),
        untaxed_amount=sum((d.signed_untaxed for d in details), ZERO),
        tax_amount=sum((d.signed_tax for d in details), ZERO),
        invoices=tuple(details),
    )


def build_form_401(
    period: TaxPeriod,
    company_tax_id: str,
    company_name: str,
    sales: Iterable[InvoiceDetail],
    purchases: Iterable[InvoiceDetail],
) -> Form401:
    taxable: list[InvoiceDetail] = []
    zero_rated: list[InvoiceDetail] = []
    exempt: list[InvoiceDetail] = []
    for detail in sales:
        if detail.tax_category == TaxCategory.TAXABLE:
            taxable.append(detail)
        elif detail.tax_category == TaxCategory.ZERO_RATED:
            zero_rated.append(detail)
        elif detail.tax_category == TaxCategory.EXEMPT:
            exempt.append(detail)

    deductible: list[InvoiceDetail] = []
    non_deductible: list[InvoiceDetail] = []
    for detail in purchases:
        if detail.is_deductible and detail.tax_amount != ZERO:
            deductible.append(detail)
        else:
            non_deductible.append(detail)

    sales_taxable = _bucket(taxable)
    purchases_deductible = _bucket(deductible)

    output_tax = sales_taxable.tax_amount
    input_tax = purchases_deductible.tax_amount
    difference = output_tax - input_tax

    return Form401(
        period=period,
        company_tax_id=company_tax_id,
        company_name=company_name,
        sales_taxable=sales_taxable,
        sales_zero_rated=_bucket(zero_rated),
        sales_exempt=_bucket(exempt),
        purchases_deductible=purchases_deductible,
        purchases_non_deductible=_bucket(non_deductible),
        output_tax=output_tax,
        input_tax=input_tax,
        net_tax=abs(difference),
        is_refund=difference < ZERO,
    )
