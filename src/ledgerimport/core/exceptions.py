"""
Custom exceptions for statement import.

All import errors inherit from LedgerImportError for easy catching.

Exception hierarchy:
    LedgerImportError (base)
    ├── SourceNotFoundError
    ├── UnsupportedFormatError
    ├── MissingRequiredHeaderError
    ├── DocumentPasswordError
    │   ├── PasswordRequiredError
    │   └── InvalidPasswordError
    ├── PasswordPromptCancelledError
    └── RowUnparseableError
"""

from enum import Enum
from typing import Optional


class DocumentKind(Enum):
    """Kind of document being imported, used for user-facing messages."""

    SPREADSHEET = "spreadsheet"
    PDF = "pdf"


class LedgerImportError(Exception):
    """
    Base exception for all import errors.

    Carries enough context for a caller to render a message and to decide
    whether prompting for a password makes sense.
    """

    def __init__(
        self,
        message: str,
        code: str = None,
        document_kind: Optional[DocumentKind] = None,
        had_password: bool = False,
        prompt_attempted: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.document_kind = document_kind
        self.had_password = had_password
        self.prompt_attempted = prompt_attempted

    @property
    def is_fatal(self) -> bool:
        """True when no amount of prompting can recover the source."""
        return True


class SourceNotFoundError(LedgerImportError):
    """Raised when the input path does not exist."""

    def __init__(self, path: str, code: str = "SOURCE_NOT_FOUND"):
        super().__init__(f"파일을 찾을 수 없습니다: {path}", code)
        self.path = path


class UnsupportedFormatError(LedgerImportError):
    """Raised when the container cannot be read by any backend."""

    def __init__(
        self,
        message: str,
        document_kind: Optional[DocumentKind] = None,
        had_password: bool = False,
        code: str = "UNSUPPORTED_FORMAT",
    ):
        super().__init__(message, code, document_kind, had_password)


class MissingRequiredHeaderError(LedgerImportError):
    """Raised when no row of a source satisfies the required-columns predicate."""

    def __init__(
        self,
        message: str = "필수 컬럼을 포함한 헤더 행을 찾을 수 없습니다.",
        missing: Optional[list] = None,
        code: str = "MISSING_HEADER",
    ):
        super().__init__(message, code)
        self.missing = missing or []


class DocumentPasswordError(LedgerImportError):
    """
    A document needs a (different) password.

    Attributes:
        document_kind: Spreadsheet or PDF
        had_password: A password was supplied for the failed attempt
        prompt_attempted: An interactive prompt already ran for this call
    """

    def __init__(
        self,
        message: str,
        document_kind: DocumentKind,
        had_password: bool,
        code: str,
        prompt_attempted: bool = False,
    ):
        super().__init__(message, code, document_kind, had_password, prompt_attempted)

    @property
    def is_fatal(self) -> bool:
        return False

    @property
    def is_invalid_password(self) -> bool:
        """True when the failed attempt used a password (prompt says "incorrect")."""
        return self.had_password

    @classmethod
    def for_document(
        cls, document_kind: DocumentKind, had_password: bool
    ) -> "DocumentPasswordError":
        """Build the matching subclass for a failed open."""
        if had_password:
            return InvalidPasswordError(document_kind)
        return PasswordRequiredError(document_kind)


_KIND_LABELS = {
    DocumentKind.SPREADSHEET: "Excel",
    DocumentKind.PDF: "PDF",
}


class PasswordRequiredError(DocumentPasswordError):
    """The document is encrypted and no password was supplied."""

    def __init__(self, document_kind: DocumentKind, prompt_attempted: bool = False):
        label = _KIND_LABELS[document_kind]
        super().__init__(
            f"비밀번호를 입력해야 {label} 파일을 열 수 있습니다.",
            document_kind,
            had_password=False,
            code="PASSWORD_REQUIRED",
            prompt_attempted=prompt_attempted,
        )


class InvalidPasswordError(DocumentPasswordError):
    """The supplied password did not open the document."""

    def __init__(self, document_kind: DocumentKind, prompt_attempted: bool = False):
        label = _KIND_LABELS[document_kind]
        super().__init__(
            f"입력한 비밀번호가 맞지 않아 {label} 파일을 열 수 없습니다.",
            document_kind,
            had_password=True,
            code="INVALID_PASSWORD",
            prompt_attempted=prompt_attempted,
        )


class PasswordPromptCancelledError(LedgerImportError):
    """The password provider declined to supply a password."""

    def __init__(self, display_name: str, document_kind: Optional[DocumentKind] = None):
        super().__init__(
            f"{display_name} 비밀번호 입력이 취소되었습니다.",
            "PROMPT_CANCELLED",
            document_kind,
            prompt_attempted=True,
        )
        self.display_name = display_name


class RowUnparseableError(LedgerImportError):
    """
    A single row lacks a resolvable date or non-zero amount.

    Raised and caught inside the extractors; the row is skipped and the
    error never reaches the caller.
    """

    def __init__(self, reason: str, row_index: int = -1):
        super().__init__(f"Row {row_index}: {reason}", "ROW_UNPARSEABLE")
        self.reason = reason
        self.row_index = row_index

    @property
    def is_fatal(self) -> bool:
        return False
