"""
Cell value normalizers for MOF e-invoice sheets.

Pure functions.  Dates come in as native dates, ISO strings, ROC-calendar
strings (``113/12/15``, ``113-12-15``, ``1131215``), western strings
(``2024/12/15``) or spreadsheet serial numbers.  Anything ambiguous returns
``None`` so the caller records a row error instead of guessing.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ROC_YEAR_OFFSET = 1911

# Serial 1 = 1899-12-31, serial 45292 = 2024-01-01
SPREADSHEET_EPOCH = date(1899, 12, 30)
MAX_SERIAL = 100_000

_ISO = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_ROC_SEPARATED = re.compile(r"^(\d{2,3})[/-](\d{1,2})[/-](\d{1,2})$")
_ROC_COMPACT = re.compile(r"^(\d{3})(\d{2})(\d{2})$")
_WESTERN = re.compile(r"^(\d{4})[/-](\d{1,2})[/-](\d{1,2})$")

_CENT = Decimal("0.01")
ZERO = Decimal("0")

DEDUCTIBLE_MARKERS = frozenset({"Y", "y", "是", "True", "true", "1"})


def roc_to_western_year(roc_year: int) -> int:
    return roc_year + ROC_YEAR_OFFSET


def western_to_roc_year(year: int) -> int:
    return year - ROC_YEAR_OFFSET


def _make_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_roc_date(text: str) -> date | None:
    """``113/12/15`` -> 2024-12-15.  A 4-digit year is not ROC and gives None."""
    text = text.strip()
    match = _ROC_SEPARATED.match(text)
    if match:
        roc_year, month, day = (int(g) for g in match.groups())
        if roc_year < 200:
            return _make_date(roc_to_western_year(roc_year), month, day)
        return None
    match = _ROC_COMPACT.match(text)
    if match:
        roc_year, month, day = (int(g) for g in match.groups())
        return _make_date(roc_to_western_year(roc_year), month, day)
    return None


def parse_western_date(text: str) -> date | None:
    match = _WESTERN.match(text.strip())
    if not match:
        return None
    year, month, day = (int(g) for g in match.groups())
    return _make_date(year, month, day)


def parse_spreadsheet_serial(serial: int | float) -> date | None:
    if isinstance(serial, bool) or serial < 1 or serial > MAX_SERIAL:
        return None
    return SPREADSHEET_EPOCH + timedelta(days=int(serial))


def parse_date(value: Any) -> date | None:
    """
    Try, in order: native date, spreadsheet serial, ISO, ROC, western.
    Returns None for blank, invalid or ambiguous input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        return parse_spreadsheet_serial(value)

    text = str(value).strip()
    if not text:
        return None

    match = _ISO.match(text)
    if match:
        return _make_date(*(int(g) for g in match.groups()))

    return parse_roc_date(text) or parse_western_date(text)


def parse_amount(value: Any) -> Decimal:
    """
    ``"1,234,567"`` -> 1234567, ``"-5000"`` -> -5000.  Blank or non-numeric
    input gives 0.  Rounded half-up to 2 places.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        cleaned = re.sub(r"[,\s]", "", str(value))
        if not cleaned:
            return ZERO
        try:
            amount = Decimal(cleaned)
        except InvalidOperation:
            return ZERO
    if not amount.is_finite():
        return ZERO
    try:
        return amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # exponent too large for the context precision, e.g. "1e50"
        return ZERO


def parse_deductible(value: Any) -> bool:
    """Blank means deductible, as do Y / 是 / True / 1."""
    if value is None or value is True:
        return True
    if value is False:
        return False
    if isinstance(value, (int, float)):
        return value == 1
    text = str(value).strip()
    return not text or text in DEDUCTIBLE_MARKERS


def clean_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def clean_identifier(value: Any) -> str:
    """Strip all whitespace: ``"AB 1234 5678"`` -> ``"AB12345678"``."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return re.sub(r"\s", "", clean_text(value))


def clean_invoice_number(number: str) -> str:
    """``AB-12345678`` -> ``AB12345678``."""
    return re.sub(r"[-\s]", "", number)
