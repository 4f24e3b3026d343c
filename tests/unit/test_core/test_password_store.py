"""
Unit tests for password lookup from passwords.json.
"""

import json
import pytest

from ledgerimport.core.passwords import PasswordStore


@pytest.fixture
def password_file(tmp_path):
    path = tmp_path / "passwords.json"
    path.write_text(json.dumps({
        "files": {"statement_2024_03.xlsx": "exact"},
        "patterns": {
            "KB": "kb_pwd",
            "*.pdf": "pdf_pwd",
            "*": "fallback",
        },
    }), encoding="utf-8")
    return path


class TestPasswordStore:
    """Tests for lookup priority."""

    def test_exact_file(self, password_file):
        assert PasswordStore(password_file).get_password("statement_2024_03.xlsx") == "exact"

    def test_substring_pattern(self, password_file):
        assert PasswordStore(password_file).get_password("KB_거래내역.xls") == "kb_pwd"

    def test_extension_pattern(self, password_file):
        assert PasswordStore(password_file).get_password("card.PDF") == "pdf_pwd"

    def test_wildcard(self, password_file):
        assert PasswordStore(password_file).get_password("other.xlsx") == "fallback"

    def test_no_config(self, tmp_path):
        assert PasswordStore(None).get_password("a.pdf") is None
        assert PasswordStore(tmp_path / "missing.json").get_password("a.pdf") is None

    def test_unreadable_config(self, tmp_path):
        path = tmp_path / "passwords.json"
        path.write_text("[broken", encoding="utf-8")
        assert PasswordStore(path).get_password("a.pdf") is None

    def test_no_wildcard(self, tmp_path):
        path = tmp_path / "passwords.json"
        path.write_text(json.dumps({"patterns": {"*.pdf": "x"}}), encoding="utf-8")
        assert PasswordStore(path).get_password("a.xlsx") is None
