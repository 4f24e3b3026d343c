"""
Statement parsers.

Supports:
- Modern spreadsheets (xlsx) via openpyxl
- Legacy spreadsheets (xls) via xlrd
- PDF statements via pdfplumber

Architecture:
- detection: container sniffing and encryption probes
- backends: one reader per container behind ReaderBackend
- headers / primitives / direction: column, value and type resolution
- tabular / pdf_table: grid and text-line extractors
- importer: StatementImporter entry point
"""

from ledgerimport.parsers.models import TransactionRecord, ParseOutcome, OutcomeStatus
from ledgerimport.parsers.headers import HeaderMap, DateColumnSpec, ResolvedColumns
from ledgerimport.parsers.detection import ContainerType, detect_container
from ledgerimport.parsers.backends import ReaderBackend, OpenpyxlBackend, XlrdBackend, PdfplumberBackend
from ledgerimport.parsers.importer import SourceDocument, StatementImporter

__all__ = [
    "TransactionRecord",
    "ParseOutcome",
    "OutcomeStatus",
    "HeaderMap",
    "DateColumnSpec",
    "ResolvedColumns",
    "ContainerType",
    "detect_container",
    "ReaderBackend",
    "OpenpyxlBackend",
    "XlrdBackend",
    "PdfplumberBackend",
    "SourceDocument",
    "StatementImporter",
]
