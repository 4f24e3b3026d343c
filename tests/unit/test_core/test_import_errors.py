"""
Unit tests for the import error hierarchy.
"""

import pytest

from ledgerimport.core.exceptions import (
    DocumentKind,
    DocumentPasswordError,
    InvalidPasswordError,
    LedgerImportError,
    MissingRequiredHeaderError,
    PasswordPromptCancelledError,
    PasswordRequiredError,
    RowUnparseableError,
    SourceNotFoundError,
    UnsupportedFormatError,
)


class TestHierarchy:
    """All errors share the LedgerImportError base."""

    @pytest.mark.parametrize("error", [
        SourceNotFoundError("a.xlsx"),
        UnsupportedFormatError("bad"),
        MissingRequiredHeaderError(),
        PasswordRequiredError(DocumentKind.PDF),
        InvalidPasswordError(DocumentKind.SPREADSHEET),
        PasswordPromptCancelledError("a.pdf"),
        RowUnparseableError("no date", 3),
    ])
    def test_base_class(self, error):
        assert isinstance(error, LedgerImportError)
        assert error.message
        assert error.code

    def test_fatal_flags(self):
        assert SourceNotFoundError("a").is_fatal
        assert MissingRequiredHeaderError().is_fatal
        assert not PasswordRequiredError(DocumentKind.PDF).is_fatal
        assert not RowUnparseableError("x").is_fatal


class TestPasswordErrors:
    """Tests for password error context."""

    def test_required(self):
        error = PasswordRequiredError(DocumentKind.SPREADSHEET)
        assert error.code == "PASSWORD_REQUIRED"
        assert error.had_password is False
        assert not error.is_invalid_password
        assert error.message == "비밀번호를 입력해야 Excel 파일을 열 수 있습니다."

    def test_invalid(self):
        error = InvalidPasswordError(DocumentKind.PDF, prompt_attempted=True)
        assert error.code == "INVALID_PASSWORD"
        assert error.had_password is True
        assert error.is_invalid_password
        assert error.prompt_attempted is True
        assert error.message == "입력한 비밀번호가 맞지 않아 PDF 파일을 열 수 없습니다."

    @pytest.mark.parametrize("had_password,expected", [
        (False, PasswordRequiredError),
        (True, InvalidPasswordError),
    ])
    def test_for_document(self, had_password, expected):
        error = DocumentPasswordError.for_document(DocumentKind.PDF, had_password)
        assert type(error) is expected
        assert error.document_kind is DocumentKind.PDF

    def test_cancelled(self):
        error = PasswordPromptCancelledError("card.pdf", DocumentKind.PDF)
        assert error.code == "PROMPT_CANCELLED"
        assert error.prompt_attempted is True
        assert "card.pdf" in error.message
