"""
Reader backends for the three statement containers.

Each backend turns raw bytes (plus an optional password) into something the
extractors understand: a grid of raw cell values for spreadsheets, a list of
text lines for PDFs. Password problems surface as DocumentPasswordError
subclasses, everything else the reader chokes on as UnsupportedFormatError.
"""

import io
import logging
import warnings
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import msoffcrypto
import numpy as np
import pandas as pd
import pdfplumber
from msoffcrypto.exceptions import DecryptionError, FileFormatError, InvalidKeyError
from pdfminer.pdfdocument import PDFPasswordIncorrect
from pdfplumber.utils.exceptions import PdfminerException

from ledgerimport.core.config import DEFAULT_IMPORT_CONFIG, ImportConfig
from ledgerimport.core.exceptions import (
    DocumentKind,
    DocumentPasswordError,
    InvalidPasswordError,
    LedgerImportError,
    PasswordRequiredError,
    UnsupportedFormatError,
)
from ledgerimport.parsers.detection import is_encrypted_envelope, is_encrypted_package, is_password_error
from ledgerimport.parsers.pdf_table import extract_pdf_lines

logger = logging.getLogger(__name__)

Grid = List[List[Any]]


def _to_python(value: Any) -> Any:
    """Turn pandas/numpy scalars into plain Python values, NaN/NaT into None."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, np.generic):
        return value.item()
    return value


def dataframe_to_grid(df: pd.DataFrame) -> Grid:
    """Convert a header-less DataFrame into a list of rows."""
    return [[_to_python(value) for value in row] for row in df.itertuples(index=False, name=None)]


def decrypt_office_file(data: bytes, password: str) -> bytes:
    """
    Decrypt an encrypted workbook with msoffcrypto.

    Raises:
        InvalidPasswordError: If the password does not verify
    """
    with io.BytesIO(data) as source, io.BytesIO() as target:
        office_file = msoffcrypto.OfficeFile(source)
        try:
            if getattr(office_file, "format", None) == "ooxml":
                office_file.load_key(password=password, verify_password=True)
            else:
                office_file.load_key(password=password)
            office_file.decrypt(target)
        except (InvalidKeyError, DecryptionError) as e:
            raise InvalidPasswordError(DocumentKind.SPREADSHEET) from e
        return target.getvalue()


def is_pdf_password_incorrect(exc: BaseException) -> bool:
    """True for pdfminer's password failure, bare or wrapped by pdfplumber."""
    if isinstance(exc, PDFPasswordIncorrect):
        return True
    return (
        isinstance(exc, PdfminerException)
        and bool(exc.args)
        and isinstance(exc.args[0], PDFPasswordIncorrect)
    )


class ReaderBackend(ABC):
    """A concrete reading library behind an explicit capability interface."""

    name: str = ""
    document_kind: DocumentKind = DocumentKind.SPREADSHEET

    def __init__(self, config: ImportConfig = DEFAULT_IMPORT_CONFIG):
        self.config = config

    @abstractmethod
    def supports_password(self) -> bool:
        """Whether this backend can open password protected documents."""

    @abstractmethod
    def read(self, data: bytes, password: Optional[str] = None) -> Any:
        """Read the document content."""

    def _wrap_failure(self, exc: Exception, password: Optional[str]) -> LedgerImportError:
        """Classify a low-level reader failure."""
        if is_password_error(exc):
            return DocumentPasswordError.for_document(self.document_kind, password is not None)
        return UnsupportedFormatError(
            f"{self.name}: 파일 형식을 읽을 수 없습니다 ({type(exc).__name__}: {exc})",
            self.document_kind,
            had_password=password is not None,
        )


class SpreadsheetBackend(ReaderBackend):
    """Shared logic for pandas-driven spreadsheet engines."""

    engine: str = ""

    def supports_password(self) -> bool:
        # Decryption happens up front through msoffcrypto
        return True

    def load_grid(self, data: bytes) -> Grid:
        """Read the first sheet without interpreting any row as header."""
        with io.BytesIO(data) as stream, warnings.catch_warnings():
            warnings.filterwarnings("ignore", category=UserWarning, module="openpyxl")
            df = pd.read_excel(stream, sheet_name=0, header=None, dtype=object, engine=self.engine)
        return dataframe_to_grid(df)

    def _decrypt(self, data: bytes, password: Optional[str]) -> bytes:
        if not password:
            raise PasswordRequiredError(DocumentKind.SPREADSHEET)
        try:
            return decrypt_office_file(data, password)
        except DocumentPasswordError:
            raise
        except (FileFormatError, OSError, ValueError) as e:
            # Marked as encrypted but not decryptable with what we have
            raise InvalidPasswordError(DocumentKind.SPREADSHEET) from e
        except Exception as e:
            raise self._wrap_failure(e, password) from e


class OpenpyxlBackend(SpreadsheetBackend):
    """Modern (OOXML) workbooks via pandas + openpyxl."""

    name = "openpyxl"
    engine = "openpyxl"

    def read(self, data: bytes, password: Optional[str] = None) -> Grid:
        if is_encrypted_package(data, self.config.encryption_scan_bytes):
            logger.debug("Encrypted workbook package detected")
            decrypted = self._decrypt(data, password)
            try:
                return self.load_grid(decrypted)
            except Exception as e:
                # Some "xlsx" downloads are encrypted legacy workbooks
                logger.debug(f"Decrypted package is not OOXML ({e}), trying legacy reader")
                return XlrdBackend(self.config).load_decrypted(decrypted, password)

        try:
            return self.load_grid(data)
        except Exception as e:
            raise self._wrap_failure(e, password) from e


class XlrdBackend(SpreadsheetBackend):
    """Legacy binary (BIFF) workbooks via pandas + xlrd."""

    name = "xlrd"
    engine = "xlrd"

    def read(self, data: bytes, password: Optional[str] = None) -> Grid:
        if is_encrypted_envelope(data):
            logger.debug("Encrypted legacy workbook detected")
            return self.load_decrypted(self._decrypt(data, password), password)

        try:
            return self.load_grid(data)
        except Exception as e:
            raise self._wrap_failure(e, password) from e

    def load_decrypted(self, data: bytes, password: Optional[str]) -> Grid:
        try:
            return self.load_grid(data)
        except Exception as e:
            raise self._wrap_failure(e, password) from e


class PdfplumberBackend(ReaderBackend):
    """PDF text extraction via pdfplumber."""

    name = "pdfplumber"
    document_kind = DocumentKind.PDF

    def supports_password(self) -> bool:
        return True

    def read(self, data: bytes, password: Optional[str] = None) -> List[str]:
        try:
            with io.BytesIO(data) as stream:
                with pdfplumber.open(stream, password=password or "") as pdf:
                    return list(extract_pdf_lines(pdf))
        except Exception as e:
            if is_pdf_password_incorrect(e):
                raise DocumentPasswordError.for_document(DocumentKind.PDF, password is not None) from e
            raise self._wrap_failure(e, password) from e
