"""
ledgerimport - bank/card statement importer.

Reads xlsx, xls and pdf statement exports (optionally password protected)
into normalized TransactionRecord lists.
"""

from ledgerimport.core.exceptions import (
    LedgerImportError,
    DocumentPasswordError,
    PasswordRequiredError,
    InvalidPasswordError,
    PasswordPromptCancelledError,
)
from ledgerimport.parsers.importer import SourceDocument, StatementImporter
from ledgerimport.parsers.models import ParseOutcome, TransactionRecord
from ledgerimport.services.password_retry import import_many, import_statement

__version__ = "0.1.0"

__all__ = [
    "LedgerImportError",
    "DocumentPasswordError",
    "PasswordRequiredError",
    "InvalidPasswordError",
    "PasswordPromptCancelledError",
    "SourceDocument",
    "StatementImporter",
    "ParseOutcome",
    "TransactionRecord",
    "import_many",
    "import_statement",
]
