"""
Unit tests for the ledgerimport command line.
"""

import argparse
import csv
import io
import json
import pytest
from unittest.mock import patch

from ledgerimport.cli.main import build_parser, main, parse_month, password_prompt


class TestArguments:
    """Tests for argument parsing."""

    def test_parse_defaults(self):
        args = build_parser().parse_args(["parse", "a.xlsx", "b.pdf"])
        assert args.command == "parse"
        assert [str(f) for f in args.files] == ["a.xlsx", "b.pdf"]
        assert args.format == "table"
        assert args.no_prompt is False

    def test_summary_month(self):
        args = build_parser().parse_args(["summary", "a.xlsx", "--month", "2024-02"])
        assert args.month == (2024, 2)

    @pytest.mark.parametrize("value", ["2024", "2024-13", "abc-01"])
    def test_invalid_month(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_month(value)

    def test_no_command(self, capsys):
        assert main([]) == 1


class TestParseCommand:
    """Tests for the parse command output."""

    def test_json_output(self, xlsx_file, capsys):
        exit_code = main(["parse", str(xlsx_file), "--format", "json", "--no-prompt"])

        assert exit_code == 0
        data = json.loads(capsys.readouterr().out)
        assert [row["transaction_type"] for row in data] == ["입금", "출금"]
        assert data[0]["amount"] == "100000"

    def test_csv_output(self, xlsx_file, capsys):
        assert main(["parse", str(xlsx_file), "--format", "csv", "--no-prompt"]) == 0

        rows = list(csv.DictReader(io.StringIO(capsys.readouterr().out)))
        assert len(rows) == 2
        assert rows[1]["category"] == "체크카드"

    def test_table_output(self, xlsx_file, capsys):
        assert main(["parse", str(xlsx_file), "--no-prompt"]) == 0
        out = capsys.readouterr().out
        assert "편의점" in out
        assert "Total: 2 transactions" in out

    def test_missing_file(self, tmp_path, capsys):
        exit_code = main(["parse", str(tmp_path / "missing.xlsx"), "--no-prompt"])

        assert exit_code == 1
        assert "missing.xlsx" in capsys.readouterr().err

    @patch("ledgerimport.parsers.backends.is_encrypted_package", return_value=True)
    def test_no_prompt_reports_password_error(self, mock_check, xlsx_file, capsys):
        exit_code = main(["parse", str(xlsx_file), "--no-prompt"])

        assert exit_code == 1
        assert "비밀번호" in capsys.readouterr().err


class TestSummaryCommand:
    """Tests for the summary command."""

    def test_summary(self, xlsx_file, capsys):
        assert main(["summary", str(xlsx_file), "--month", "2024-03"]) == 0
        out = capsys.readouterr().out
        assert "2024-03-01" in out
        assert "Income:  100,000" in out
        assert "Expense: 4,500" in out
        assert "Net balance: 95,500" in out


class TestPasswordPrompt:
    """Tests for the interactive prompt."""

    @patch("ledgerimport.cli.main.getpass.getpass", return_value="  pw  ")
    def test_returns_stripped(self, mock_getpass, capsys):
        assert password_prompt("a.pdf", False) == "pw"
        assert "Password required for: a.pdf" in capsys.readouterr().out

    @patch("ledgerimport.cli.main.getpass.getpass", return_value="")
    def test_empty_is_none(self, mock_getpass, capsys):
        assert password_prompt("a.pdf", True) is None
        assert "Incorrect password" in capsys.readouterr().out

    @patch("ledgerimport.cli.main.getpass.getpass", side_effect=EOFError)
    def test_eof_is_none(self, mock_getpass):
        assert password_prompt("a.pdf", False) is None
