"""
Ledger helpers over imported records.

Merges records from several files and computes daily, monthly and running
totals. Anything whose type is not "입금" counts as an expense.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from itertools import chain
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

from ledgerimport.parsers.models import TransactionRecord
from ledgerimport.parsers.tabular import assemble_records

ZERO = Decimal("0")

ExcludePredicate = Callable[[TransactionRecord], bool]


def _included(records: Iterable[TransactionRecord], exclude: Optional[ExcludePredicate]):
    if exclude is None:
        return records
    return (record for record in records if not exclude(record))


def merge_sources(
    sources: Mapping[str, Iterable[TransactionRecord]],
    exclude: Optional[ExcludePredicate] = None,
) -> list:
    """
    Merge records of several loaded sources.

    - Concatenates sources in mapping order
    - Sorts by transaction time (stable, nothing deduplicated)

    Args:
        sources: Records per source key
        exclude: Drop records for which this returns True

    Returns:
        Ordered list of records
    """
    return assemble_records(_included(chain.from_iterable(sources.values()), exclude))


@dataclass
class DailySummary:
    """Income and expense totals for one day."""

    income: Decimal = ZERO
    expense: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.income - self.expense

    def add(self, record: TransactionRecord):
        if record.is_income:
            self.income += record.amount
        else:
            self.expense += record.amount


def summarize_by_day(
    records: Iterable[TransactionRecord],
    exclude: Optional[ExcludePredicate] = None,
) -> Dict[date, DailySummary]:
    """Totals per calendar day, in date order."""
    summaries: Dict[date, DailySummary] = {}
    for record in _included(records, exclude):
        day = record.transaction_time.date()
        summaries.setdefault(day, DailySummary()).add(record)
    return dict(sorted(summaries.items()))


def monthly_totals(
    records: Iterable[TransactionRecord],
    year: int,
    month: int,
    exclude: Optional[ExcludePredicate] = None,
) -> Tuple[Decimal, Decimal]:
    """
    Income and expense totals of one month.

    Returns:
        (income, expense)
    """
    summary = DailySummary()
    for record in _included(records, exclude):
        when = record.transaction_time
        if when.year == year and when.month == month:
            summary.add(record)
    return summary.income, summary.expense


def net_balance(
    records: Iterable[TransactionRecord],
    exclude: Optional[ExcludePredicate] = None,
) -> Decimal:
    """Sum of signed amounts (income positive, expense negative)."""
    return sum((record.signed_amount for record in _included(records, exclude)), ZERO)
