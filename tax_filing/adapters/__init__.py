"""Workbook readers for tax-filing imports."""

from tax_filing.adapters.base import SheetData, SheetSource, SourceProbe
from tax_filing.adapters.xlsx_adapter import XlsxSourceAdapter

__all__ = ["SheetData", "SheetSource", "SourceProbe", "XlsxSourceAdapter"]
