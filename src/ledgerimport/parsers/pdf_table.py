"""
PDF table reconstruction.

PDF statements have no cell structure, only positioned text. With layout
preserving extraction, table columns are separated by runs of two or more
spaces, which is enough to rebuild rows:

- the first line whose columns satisfy the header predicate becomes the header
- a line with at least as many columns as the header is a new row
- a shorter line is wrapped text and is appended to the previous row's
  description
"""

import logging
import re
from typing import Iterable, Iterator, List, Optional

from ledgerimport.core.config import DEFAULT_IMPORT_CONFIG, ImportConfig
from ledgerimport.core.exceptions import MissingRequiredHeaderError, RowUnparseableError
from ledgerimport.parsers.headers import (
    HeaderMap,
    ResolvedColumns,
    contains_required_headers,
    resolve_columns,
)
from ledgerimport.parsers.models import TransactionRecord
from ledgerimport.parsers.tabular import assemble_records, parse_row

logger = logging.getLogger(__name__)


def split_columns(line: str, separator: str = DEFAULT_IMPORT_CONFIG.pdf_column_separator) -> List[str]:
    """Split a text line on runs of whitespace, dropping empty parts."""
    parts = (part.strip() for part in re.split(separator, line))
    return [part for part in parts if part]


def extract_pdf_lines(pdf) -> Iterator[str]:
    """
    Yield page-ordered text lines from an open pdfplumber document.

    Layout mode keeps horizontal gaps as runs of spaces so columns survive.
    """
    for page in pdf.pages:
        text = page.extract_text(layout=True) or ""
        for line in text.splitlines():
            yield line.strip()


def _try_header(columns: List[str], config: ImportConfig) -> Optional[ResolvedColumns]:
    header_map = HeaderMap((column, index + 1) for index, column in enumerate(columns))
    if not contains_required_headers(header_map, config.headers):
        return None
    return resolve_columns(header_map, config.headers, width=len(columns))


def reconstruct_pdf_records(
    lines: Iterable[str],
    config: ImportConfig = DEFAULT_IMPORT_CONFIG,
) -> List[TransactionRecord]:
    """
    Rebuild transaction records from extracted PDF text lines.

    Args:
        lines: Text lines in page order
        config: Import configuration

    Returns:
        Records ordered by transaction time

    Raises:
        MissingRequiredHeaderError: If no line can serve as the header
    """
    columns_spec: Optional[ResolvedColumns] = None
    records: List[TransactionRecord] = []

    for line_number, raw_line in enumerate(lines):
        line = (raw_line or "").strip()
        if not line:
            continue

        columns = split_columns(line, config.pdf_column_separator)
        if not columns:
            continue

        # Statements repeat the header on every page
        header = _try_header(columns, config)
        if header is not None:
            if columns_spec is None:
                logger.debug(f"PDF header found at line {line_number}: {columns}")
            columns_spec = header
            continue

        if columns_spec is None:
            continue

        if len(columns) < columns_spec.width:
            if records:
                additional = " ".join(columns).strip()
                if additional:
                    last = records[-1]
                    merged = " ".join(part for part in (last.description, additional) if part.strip())
                    records[-1] = last.with_description(merged.strip())
            continue

        try:
            records.append(parse_row(columns, columns_spec, config, line_number))
        except RowUnparseableError as e:
            logger.debug(f"Skipping PDF line: {e}")

    if columns_spec is None:
        raise MissingRequiredHeaderError()

    return assemble_records(records)
