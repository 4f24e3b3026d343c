"""
Shared pytest fixtures for ledgerimport tests.

Provides statement grids, in-memory workbooks and PDFs (plain and
password protected) and common utilities.
"""

import io
import sys
from pathlib import Path

import pytest
import xlwt
from msoffcrypto.format.ooxml import OOXMLFile
from openpyxl import Workbook
from pypdf import PdfReader, PdfWriter
from reportlab.pdfgen import canvas

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ledgerimport.core.config import ImportConfig


def make_xlsx(rows) -> bytes:
    """Build an .xlsx file in memory with one row per list."""
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def encrypt_xlsx(data: bytes, password: str) -> bytes:
    """Password protect an .xlsx file the way Excel does (agile encryption)."""
    encrypted = io.BytesIO()
    OOXMLFile(io.BytesIO(data)).encrypt(password, encrypted)
    return encrypted.getvalue()


def make_xls(rows) -> bytes:
    """Build a legacy BIFF8 .xls file in memory."""
    book = xlwt.Workbook(encoding="utf-8")
    sheet = book.add_sheet("Sheet1")
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            if value is not None:
                sheet.write(r, c, value)
    buffer = io.BytesIO()
    book.save(buffer)
    return buffer.getvalue()


def make_pdf(lines, password=None) -> bytes:
    """Build a one-page PDF with one text line per entry, optionally encrypted."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer)
    y = 800
    for line in lines:
        pdf.drawString(72, y, line)
        y -= 20
    pdf.save()

    if password is None:
        return buffer.getvalue()

    writer = PdfWriter()
    for page in PdfReader(io.BytesIO(buffer.getvalue())).pages:
        writer.add_page(page)
    writer.encrypt(password)
    encrypted = io.BytesIO()
    writer.write(encrypted)
    return encrypted.getvalue()


STATEMENT_ROWS = [
    ["거래일시", "구분", "거래금액", "거래구분", "내용"],
    ["2024-01-15 09:30:00", "출금", 12000, "체크카드결제", "스타벅스"],
    ["2024-01-10 18:00:00", "입금", 50000, "이체", "환불"],
]


@pytest.fixture
def import_config():
    """Provide the default import configuration."""
    return ImportConfig()


@pytest.fixture
def combined_grid():
    """Card statement grid with a title block above a combined date-time table."""
    return [
        ["카드 이용내역", None, None, None, None],
        ["조회기간: 2024-01-01 ~ 2024-01-31", None, None, None, None],
        ["거래일시", "구분", "거래금액", "거래구분", "내용"],
        ["2024-01-16 18:05:00", "출금", "12,000", "체크카드결제", "스타벅스"],
        ["2024-01-15 09:30:00", "입금", "3,000,000", "급여", "1월 급여"],
        ["2024-01-17 12:00:00", "출금", "0", "체크카드결제", "취소건"],
        ["", "", "", "", ""],
        ["합계", None, "3,012,000", None, None],
    ]


@pytest.fixture
def split_grid():
    """Bank statement grid with separate date/time and withdrawal/deposit columns."""
    return [
        ["거래일자", "거래시간", "적요", "출금금액(원)", "입금금액(원)", "내용"],
        ["2024-02-01", "0930", "이체", "50,000", "0", "월세"],
        ["2024-02-01", "1415", "이자", "0", "1,234", "예금이자"],
        ["2024-02-02", "", "이체", "", "", "금액 없음"],
    ]


@pytest.fixture
def xlsx_bytes():
    """A small unencrypted workbook with native date and number cells."""
    from datetime import datetime

    return make_xlsx([
        ["KB국민은행 거래내역조회"],
        ["거래일시", "구분", "거래금액", "거래구분", "내용"],
        [datetime(2024, 3, 2, 8, 15), "출금", 4500, "체크카드결제", "편의점"],
        [datetime(2024, 3, 1, 10, 0), "입금", 100000, "이체", "용돈"],
    ])


@pytest.fixture
def xlsx_file(tmp_path, xlsx_bytes):
    """The workbook from xlsx_bytes written to disk."""
    path = tmp_path / "statement_2024_03.xlsx"
    path.write_bytes(xlsx_bytes)
    return path


@pytest.fixture
def xlsx_factory():
    """Provide make_xlsx to tests that build their own workbooks."""
    return make_xlsx


@pytest.fixture
def encrypted_xlsx():
    """The statement rows as an .xlsx protected with password "secret"."""
    return encrypt_xlsx(make_xlsx(STATEMENT_ROWS), "secret")


@pytest.fixture
def xls_bytes():
    """The statement rows as a real legacy .xls workbook."""
    return make_xls(STATEMENT_ROWS)


@pytest.fixture
def encrypted_pdf():
    """A PDF protected with password "secret"."""
    return make_pdf(["STATEMENT 2024-01"], password="secret")


@pytest.fixture
def encrypted_xlsx_factory():
    """Build a password protected .xlsx from rows."""
    def factory(rows, password):
        return encrypt_xlsx(make_xlsx(rows), password)
    return factory
