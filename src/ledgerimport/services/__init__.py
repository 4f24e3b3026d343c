"""Services built on the parsers.

Provides:
- Password Retry: prompt/retry loop and password cache
- Ledger: multi-file merge and totals
"""

from .password_retry import (
    PasswordCache,
    PasswordRetryOrchestrator,
    RetryState,
    import_statement,
    import_many,
)
from .ledger import DailySummary, merge_sources, summarize_by_day, monthly_totals, net_balance

__all__ = [
    "PasswordCache",
    "PasswordRetryOrchestrator",
    "RetryState",
    "import_statement",
    "import_many",
    "DailySummary",
    "merge_sources",
    "summarize_by_day",
    "monthly_totals",
    "net_balance",
]
