"""
Invoice Configuration Schema.

Account codes for the fixed posting template and payment tolerances.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from ledger_config.schema import PostingAccounts


@dataclass
class InvoiceConfig:
    """
    Posting template:

        OUTPUT  Dr receivable (total)  / Cr revenue (untaxed) / Cr output tax (tax)
        INPUT   Dr expense (untaxed)   / Dr input tax (tax)   / Cr payable (total)

    Credit notes use the same accounts with every side swapped.  Zero
    amount lines are omitted.
    """

    receivable_code: str = "1131"
    payable_code: str = "2101"
    output_tax_code: str = "2261"
    input_tax_code: str = "2262"

    # A payment may exceed the remaining balance by at most this much
    payment_tolerance: Decimal = Decimal("0.01")

    def __post_init__(self):
        if self.payment_tolerance < 0:
            raise ValueError("payment_tolerance cannot be negative")

    @classmethod
    def from_posting(cls, posting: PostingAccounts) -> Self:
        return cls(
            receivable_code=posting.receivable_code,
            payable_code=posting.payable_code,
            output_tax_code=posting.output_tax_code,
            input_tax_code=posting.input_tax_code,
        )
