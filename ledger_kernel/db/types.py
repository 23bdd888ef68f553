"""
Module: ledger_kernel.db.types
Responsibility: Annotated column types and the one sanctioned rounding
    function for monetary values.
Architecture position: Kernel > DB.  May be imported by every kernel layer
    and by outer packages.  MUST NOT import from any of them.

Invariants enforced:
    - No floats for money: every amount is a Decimal quantized by
      round_money() to two places with ROUND_HALF_UP.
    - to_money() is the single entry point that turns user input (int,
      str, Decimal) into a ledger amount.

Failure modes:
    - InvalidAmountError (a ValueError) for floats, NaN/Infinity, booleans
      and unparseable strings.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated

from sqlalchemy import BigInteger, Numeric, String

# 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

ShortCode = Annotated[str, String(50)]

Sequence = Annotated[int, BigInteger]

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP
ZERO = Decimal("0")


class InvalidAmountError(ValueError):
    """Raised when a value cannot be used as a ledger amount."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid monetary amount: {value!r}")


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the ONLY rounding function for ledger amounts.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def to_money(value: int | str | Decimal) -> Decimal:
    """
    Convert an int, numeric string or Decimal into a rounded ledger amount.

    Floats are refused: they cannot represent currency exactly.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountError(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmountError(value) from exc
    if not amount.is_finite():
        raise InvalidAmountError(value)
    return round_money(amount)
