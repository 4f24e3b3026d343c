"""
Income/expense classification for imported rows.

Statements signal direction in different ways: an explicit type column,
separate withdrawal/deposit columns, or a single signed amount. The rules
below are evaluated in a fixed order and the first match wins.
"""

from decimal import Decimal
from typing import Iterable, Optional

from ledgerimport.core.config import DEFAULT_IMPORT_CONFIG, EXPENSE, INCOME
from ledgerimport.parsers.models import normalize_type_text

ZERO = Decimal("0")


def determine_type(
    type_text: Optional[str],
    withdraw_amount: Decimal = ZERO,
    deposit_amount: Decimal = ZERO,
    net_amount: Decimal = ZERO,
    income_markers: Iterable[str] = DEFAULT_IMPORT_CONFIG.income_markers,
    expense_markers: Iterable[str] = DEFAULT_IMPORT_CONFIG.expense_markers,
) -> str:
    """
    Decide the transaction type ("입금" or "출금").

    Precedence:
    1. Type text equal to a canonical token once whitespace is removed
    2. Type text containing an income or expense marker
    3. Exactly one of deposit/withdrawal amount is positive
    4. Sign of the net amount
    5. Fallback: "출금" for blank type text, otherwise the type text itself

    Args:
        type_text: Raw text of the type column ("" when there is none)
        withdraw_amount: Parsed withdrawal column value (0 if absent)
        deposit_amount: Parsed deposit column value (0 if absent)
        net_amount: The amount chosen for the row, possibly signed

    Returns:
        Transaction type token
    """
    trimmed = (type_text or "").strip()
    canonical = normalize_type_text(type_text)

    if trimmed:
        if canonical in (INCOME, EXPENSE):
            return canonical

        if any(marker in trimmed for marker in income_markers):
            return INCOME
        if any(marker in trimmed for marker in expense_markers):
            return EXPENSE

    withdraw_amount = withdraw_amount or ZERO
    deposit_amount = deposit_amount or ZERO

    has_deposit = deposit_amount > 0
    has_withdraw = withdraw_amount > 0
    if has_deposit != has_withdraw:
        return INCOME if has_deposit else EXPENSE

    if net_amount:
        return INCOME if net_amount > 0 else EXPENSE

    if not trimmed:
        return EXPENSE

    # May be neither canonical token; downstream treats anything but
    # "입금" as an expense.
    return canonical or EXPENSE
