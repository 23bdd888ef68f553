"""
Header vocabulary for Ministry of Finance e-invoice exports.

Each logical field maps to an ordered tuple of header synonyms.  A sheet is
resolved once per import into a ``HeaderMap`` (logical field -> header
actually present); rows are then read through that map.

Headers match case-sensitively.  A trailing ``" *"`` required-marker on a
header cell is tolerated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

_COMMON: dict[str, tuple[str, ...]] = {
    "number": ("發票號碼", "發票字軌號碼", "統一發票號碼", "Invoice Number"),
    "date": ("發票日期", "開票日期", "日期", "Invoice Date"),
    "untaxed_amount": ("銷售額", "未稅金額", "淨額", "Sales Amount"),
    "tax_amount": ("稅額", "營業稅額", "Tax Amount"),
    "total_amount": ("總計", "含稅金額", "發票金額", "Total Amount"),
    "tax_type": ("課稅別", "稅別", "Tax Type"),
}

SELLER_TAX_ID = ("賣方統一編號", "銷售人統一編號", "銷售人統編", "賣方統編", "Seller Tax ID")
SELLER_NAME = ("賣方名稱", "銷售人名稱", "Seller Name")
BUYER_TAX_ID = ("買方統一編號", "買受人統一編號", "買受人統編", "買方統編", "Buyer Tax ID")
BUYER_NAME = ("買方名稱", "買受人名稱", "Buyer Name")

PURCHASE_COLUMNS: dict[str, tuple[str, ...]] = {
    **_COMMON,
    "counterparty_tax_id": SELLER_TAX_ID,
    "counterparty_name": SELLER_NAME,
    "deductible": ("可扣抵", "扣抵", "Deductible"),
}

SALES_COLUMNS: dict[str, tuple[str, ...]] = {
    **_COMMON,
    "counterparty_tax_id": BUYER_TAX_ID,
    "counterparty_name": BUYER_NAME,
}

# Display names used in ParseError.column
COLUMN_LABELS = {
    "number": "發票號碼",
    "date": "發票日期",
    "untaxed_amount": "銷售額",
    "tax_amount": "稅額",
    "total_amount": "總計",
}


def strip_marker(header: str) -> str:
    """``"發票號碼 *"`` -> ``"發票號碼"``."""
    header = str(header).strip()
    if header.endswith("*"):
        header = header[:-1].rstrip()
    return header


def normalized_headers(headers: Iterable[Any]) -> set[str]:
    return {strip_marker(h) for h in headers if h is not None}


@dataclass(frozen=True)
class HeaderMap:
    """Logical field -> the header cell(s) present in the sheet, in synonym order."""

    columns: Mapping[str, tuple[str, ...]]

    @classmethod
    def resolve(cls, headers: Iterable[Any], vocabulary: Mapping[str, tuple[str, ...]]) -> HeaderMap:
        present = [str(h) for h in headers if h is not None]
        by_plain: dict[str, list[str]] = {}
        for header in present:
            by_plain.setdefault(strip_marker(header), []).append(header)

        columns: dict[str, tuple[str, ...]] = {}
        for name, synonyms in vocabulary.items():
            found: list[str] = []
            for synonym in synonyms:
                found.extend(by_plain.get(synonym, ()))
            if found:
                columns[name] = tuple(found)
        return cls(columns=columns)

    def has(self, name: str) -> bool:
        return name in self.columns

    def value(self, row: Mapping[str, Any], name: str) -> Any:
        """First non-blank value among the field's headers, else None."""
        for header in self.columns.get(name, ()):
            value = row.get(header)
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            return value
        return None
