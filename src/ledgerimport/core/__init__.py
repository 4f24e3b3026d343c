"""
Core module - configuration, password lookup and the error hierarchy.
"""

from ledgerimport.core.config import ImportConfig, HeaderGroups, DEFAULT_IMPORT_CONFIG, INCOME, EXPENSE
from ledgerimport.core.passwords import PasswordStore
from ledgerimport.core.exceptions import (
    DocumentKind,
    LedgerImportError,
    SourceNotFoundError,
    UnsupportedFormatError,
    MissingRequiredHeaderError,
    DocumentPasswordError,
    PasswordRequiredError,
    InvalidPasswordError,
    PasswordPromptCancelledError,
    RowUnparseableError,
)

__all__ = [
    "ImportConfig",
    "HeaderGroups",
    "DEFAULT_IMPORT_CONFIG",
    "INCOME",
    "EXPENSE",
    "PasswordStore",
    "DocumentKind",
    "LedgerImportError",
    "SourceNotFoundError",
    "UnsupportedFormatError",
    "MissingRequiredHeaderError",
    "DocumentPasswordError",
    "PasswordRequiredError",
    "InvalidPasswordError",
    "PasswordPromptCancelledError",
    "RowUnparseableError",
]
