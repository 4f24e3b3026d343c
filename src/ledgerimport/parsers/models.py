"""
Transaction record and parse result data models.

Dataclasses for representing normalized statement rows.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from ledgerimport.core.config import EXPENSE, INCOME
from ledgerimport.core.exceptions import LedgerImportError


def normalize_type_text(type_text: Optional[str]) -> str:
    """
    Normalize transaction type text.

    Whitespace-containing variants of the canonical tokens ("입 금") collapse
    to the token; anything else is returned trimmed.
    """
    if type_text is None:
        return ""

    trimmed = type_text.strip()
    if not trimmed:
        return ""

    sanitized = "".join(ch for ch in trimmed if not ch.isspace())
    if sanitized == INCOME:
        return INCOME
    if sanitized == EXPENSE:
        return EXPENSE

    return trimmed


@dataclass(frozen=True)
class TransactionRecord:
    """
    A single normalized statement transaction.

    The amount is always non-negative; direction lives only in
    transaction_type.
    """

    transaction_time: datetime
    transaction_type: str
    amount: Decimal
    category: str = ""
    description: str = ""

    def __post_init__(self):
        amount = self.amount
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        object.__setattr__(self, "amount", abs(amount))
        object.__setattr__(self, "transaction_type", normalize_type_text(self.transaction_type))
        object.__setattr__(self, "category", self.category or "")
        object.__setattr__(self, "description", self.description or "")

    @property
    def is_income(self) -> bool:
        """Check if transaction is income."""
        return self.transaction_type == INCOME

    @property
    def signed_amount(self) -> Decimal:
        """Amount with sign derived from the transaction type."""
        return self.amount if self.is_income else -self.amount

    def with_description(self, description: str) -> "TransactionRecord":
        """Return a copy with a different description."""
        return replace(self, description=description)

    def to_dict(self) -> dict:
        """Plain representation for JSON/CSV output."""
        return {
            "transaction_time": self.transaction_time.isoformat(),
            "transaction_type": self.transaction_type,
            "amount": str(self.amount),
            "category": self.category,
            "description": self.description,
        }


class OutcomeStatus(Enum):
    """Status of a single parse attempt."""

    OK = "ok"
    NEEDS_PASSWORD = "needs_password"
    FATAL = "fatal"


@dataclass
class ParseOutcome:
    """
    Result of one parse attempt.

    Either an ordered list of records (OK), a recoverable password signal
    (NEEDS_PASSWORD) or a fatal error (FATAL).
    """

    status: OutcomeStatus
    records: List[TransactionRecord] = field(default_factory=list)
    error: Optional[LedgerImportError] = None

    @classmethod
    def ok(cls, records: List[TransactionRecord]) -> "ParseOutcome":
        return cls(OutcomeStatus.OK, records=list(records))

    @classmethod
    def needs_password(cls, error: LedgerImportError) -> "ParseOutcome":
        return cls(OutcomeStatus.NEEDS_PASSWORD, error=error)

    @classmethod
    def fatal(cls, error: LedgerImportError) -> "ParseOutcome":
        return cls(OutcomeStatus.FATAL, error=error)

    @property
    def success(self) -> bool:
        return self.status is OutcomeStatus.OK

    @property
    def is_retry(self) -> bool:
        """True when a password was supplied and rejected."""
        return self.status is OutcomeStatus.NEEDS_PASSWORD and bool(
            self.error and self.error.had_password
        )

    @property
    def transaction_count(self) -> int:
        return len(self.records)

    def unwrap(self) -> List[TransactionRecord]:
        """Return the records or raise the carried error."""
        if self.status is OutcomeStatus.OK:
            return self.records
        raise self.error
