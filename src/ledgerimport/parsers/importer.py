"""
Statement importer - entry point for path and byte-buffer sources.

Picks a reader backend from the detected container, runs the matching
extractor and returns records ordered by transaction time.
"""

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from ledgerimport.core.config import DEFAULT_IMPORT_CONFIG, ImportConfig
from ledgerimport.core.exceptions import (
    DocumentPasswordError,
    LedgerImportError,
    SourceNotFoundError,
    UnsupportedFormatError,
)
from ledgerimport.parsers.backends import (
    OpenpyxlBackend,
    PdfplumberBackend,
    ReaderBackend,
    XlrdBackend,
)
from ledgerimport.parsers.detection import ContainerType, detect_container
from ledgerimport.parsers.models import ParseOutcome, TransactionRecord
from ledgerimport.parsers.pdf_table import reconstruct_pdf_records
from ledgerimport.parsers.tabular import extract_records

logger = logging.getLogger(__name__)


def source_key_for_path(path: Union[str, Path]) -> str:
    """Normalized identity of a file, stable across spellings of the same path."""
    return os.path.normcase(os.path.abspath(str(path)))


@dataclass(frozen=True)
class SourceDocument:
    """
    A statement to import.

    Path sources are read from disk on every call to read_bytes(), so a
    retried attempt always starts from the beginning of the file and no
    handle stays open between attempts.
    """

    display_name: str
    source_key: str
    filename_hint: Optional[str] = None
    data: Optional[bytes] = None
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "SourceDocument":
        path = Path(path)
        return cls(
            display_name=path.name,
            source_key=source_key_for_path(path),
            filename_hint=str(path),
            path=path,
        )

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        filename_hint: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> "SourceDocument":
        data = bytes(data or b"")
        name = display_name or (Path(filename_hint).name if filename_hint else "statement")
        return cls(
            display_name=name,
            source_key="sha256:" + hashlib.sha256(data).hexdigest(),
            filename_hint=filename_hint,
            data=data,
        )

    def read_bytes(self) -> bytes:
        """Complete content of the source."""
        if self.path is None:
            return self.data or b""
        if not self.path.is_file():
            raise SourceNotFoundError(str(self.path))
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise UnsupportedFormatError(f"파일을 읽을 수 없습니다: {self.path} ({e})") from e


class StatementImporter:
    """
    Imports bank/card statements into TransactionRecord lists.

    Usage:
        importer = StatementImporter()
        records = importer.load_path("statement.xlsx", password="1234")
    """

    def __init__(
        self,
        config: ImportConfig = DEFAULT_IMPORT_CONFIG,
        backends: Optional[Dict[ContainerType, ReaderBackend]] = None,
    ):
        """
        Initialize importer.

        Args:
            config: Header synonyms, aliases and detection limits
            backends: Reader backend per container (defaults cover all three)
        """
        self.config = config
        self.backends = backends if backends is not None else {
            ContainerType.MODERN_SPREADSHEET: OpenpyxlBackend(config),
            ContainerType.LEGACY_SPREADSHEET: XlrdBackend(config),
            ContainerType.PDF: PdfplumberBackend(config),
        }

    def backend_for(self, container: ContainerType) -> ReaderBackend:
        try:
            return self.backends[container]
        except KeyError:
            raise UnsupportedFormatError(
                f"지원하지 않는 파일 형식입니다: {container.value}",
                container.document_kind,
            ) from None

    def load_path(
        self, path: Union[str, Path], password: Optional[str] = None
    ) -> List[TransactionRecord]:
        """
        Import a statement file.

        Args:
            path: Statement file (.xlsx, .xls or .pdf)
            password: Password for an encrypted file - optional

        Returns:
            Records ordered by transaction time

        Raises:
            SourceNotFoundError: If the path does not exist
            DocumentPasswordError: If a (different) password is needed
            LedgerImportError: For unreadable or headerless sources
        """
        return self.load_source(SourceDocument.from_path(path), password)

    def load_bytes(
        self,
        data: bytes,
        filename_hint: Optional[str] = None,
        password: Optional[str] = None,
    ) -> List[TransactionRecord]:
        """Import a statement held in memory. An empty buffer yields no records."""
        if not data:
            return []

        container = detect_container(data, filename_hint)
        backend = self.backend_for(container)
        if password and not backend.supports_password():
            raise UnsupportedFormatError(
                f"{backend.name}: 암호로 보호된 파일을 열 수 없습니다.",
                container.document_kind,
                had_password=True,
            )

        logger.debug(f"Reading {filename_hint or 'buffer'} as {container.value} with {backend.name}")
        try:
            content = backend.read(data, password)
            if container is ContainerType.PDF:
                records = reconstruct_pdf_records(content, self.config)
            else:
                records = extract_records(content, self.config)
        except DocumentPasswordError:
            raise
        except LedgerImportError as e:
            if e.document_kind is None:
                e.document_kind = container.document_kind
            e.had_password = e.had_password or password is not None
            raise

        logger.info(f"Imported {len(records)} transactions from {filename_hint or 'buffer'}")
        return records

    def load_source(
        self, source: SourceDocument, password: Optional[str] = None
    ) -> List[TransactionRecord]:
        return self.load_bytes(source.read_bytes(), source.filename_hint, password)

    def try_load(self, source: SourceDocument, password: Optional[str] = None) -> ParseOutcome:
        """
        Single parse attempt that reports instead of raising.

        Returns:
            ParseOutcome: OK with records, NEEDS_PASSWORD for password
            failures, FATAL for everything else the importer knows about
        """
        try:
            return ParseOutcome.ok(self.load_source(source, password))
        except DocumentPasswordError as e:
            logger.debug(f"{source.display_name}: {e.message}")
            return ParseOutcome.needs_password(e)
        except LedgerImportError as e:
            logger.warning(f"{source.display_name}: {e.message}")
            return ParseOutcome.fatal(e)
