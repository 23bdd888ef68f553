"""
Reporting Configuration Schema.

Account codes are grouped by the category stored on each account; the
income statement additionally splits expenses into cost of sales and
operating expenses by code prefix (5xxx = cost of sales in the default
chart).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ReportingConfig:
    """Configuration schema for the reporting module."""

    # Expense accounts whose code starts with one of these are cost of sales
    cost_of_sales_prefixes: tuple[str, ...] = ("5",)

    entity_name: str = "Company"

    include_zero_balances: bool = False

    def __post_init__(self):
        self.cost_of_sales_prefixes = tuple(self.cost_of_sales_prefixes)
        if any(not p for p in self.cost_of_sales_prefixes):
            raise ValueError("cost_of_sales_prefixes cannot contain empty prefixes")

    def is_cost_of_sales(self, code: str) -> bool:
        return any(code.startswith(p) for p in self.cost_of_sales_prefixes)
