"""
Tabular extraction: turns a grid of raw cells into transaction records.

The grid comes from a spreadsheet backend (one list per sheet row, None for
empty cells) or from reconstructed PDF lines. Rows that lack a usable date
or a non-zero amount are skipped; only a missing header row is fatal.
"""

import logging
from typing import Any, Iterable, List, Optional, Sequence

from ledgerimport.core.config import DEFAULT_IMPORT_CONFIG, ImportConfig
from ledgerimport.core.exceptions import RowUnparseableError
from ledgerimport.parsers.direction import ZERO, determine_type
from ledgerimport.parsers.headers import ResolvedColumns, resolve_columns, resolve_header
from ledgerimport.parsers.models import TransactionRecord
from ledgerimport.parsers.primitives import (
    cell_text,
    combine_date_and_time,
    is_blank,
    parse_datetime,
    parse_decimal,
    read_amount,
)

logger = logging.getLogger(__name__)


def get_cell(row: Sequence[Any], column: Optional[int]) -> Any:
    """Raw value at a 1-based column, None when the row is shorter."""
    if column is None or column < 1 or column > len(row):
        return None
    return row[column - 1]


def get_text(row: Sequence[Any], column: Optional[int]) -> str:
    return cell_text(get_cell(row, column)).strip()


def _resolve_time(row: Sequence[Any], columns: ResolvedColumns, row_index: int):
    dates = columns.dates
    if dates.is_combined:
        raw = get_cell(row, dates.combined)
        text = cell_text(raw)
        if is_blank(raw, text):
            raise RowUnparseableError("empty date cell", row_index)
        transaction_time = parse_datetime(raw, text)
    else:
        date_raw = get_cell(row, dates.date)
        date_text = cell_text(date_raw)
        if is_blank(date_raw, date_text):
            raise RowUnparseableError("empty date cell", row_index)
        time_raw = get_cell(row, dates.time)
        transaction_time = combine_date_and_time(date_raw, date_text, time_raw, cell_text(time_raw))

    if transaction_time is None:
        raise RowUnparseableError("unparseable date", row_index)
    return transaction_time


def parse_row(
    row: Sequence[Any],
    columns: ResolvedColumns,
    config: ImportConfig = DEFAULT_IMPORT_CONFIG,
    row_index: int = -1,
) -> TransactionRecord:
    """
    Build a record from one data row.

    Args:
        row: Raw cells of the row (column 1 is row[0])
        columns: Column positions resolved from the header
        config: Import configuration
        row_index: Position of the row, for diagnostics

    Returns:
        TransactionRecord

    Raises:
        RowUnparseableError: If the row has no usable date or amount
    """
    transaction_time = _resolve_time(row, columns, row_index)

    units = config.currency_units
    candidates = [
        (get_cell(row, column), None)
        for column in (columns.amount, columns.withdraw, columns.deposit)
        if column is not None
    ]
    amount = read_amount(candidates, units)
    if amount is None:
        raise RowUnparseableError("no non-zero amount", row_index)

    withdraw_amount = ZERO
    deposit_amount = ZERO
    if columns.withdraw is not None:
        withdraw_amount = parse_decimal(get_cell(row, columns.withdraw), None, units) or ZERO
    if columns.deposit is not None:
        deposit_amount = parse_decimal(get_cell(row, columns.deposit), None, units) or ZERO

    transaction_type = determine_type(
        get_text(row, columns.type),
        withdraw_amount,
        deposit_amount,
        amount,
        config.income_markers,
        config.expense_markers,
    )

    return TransactionRecord(
        transaction_time=transaction_time,
        transaction_type=transaction_type,
        amount=abs(amount),
        category=config.normalize_category(get_text(row, columns.category)),
        description=get_text(row, columns.description),
    )


def assemble_records(records: Iterable[TransactionRecord]) -> List[TransactionRecord]:
    """Order records by transaction time. Stable; nothing is deduplicated."""
    return sorted(records, key=lambda record: record.transaction_time)


def extract_records(
    grid: Sequence[Sequence[Any]],
    config: ImportConfig = DEFAULT_IMPORT_CONFIG,
) -> List[TransactionRecord]:
    """
    Extract records from a spreadsheet grid.

    Args:
        grid: Sheet rows, each a sequence of raw cell values
        config: Import configuration

    Returns:
        Records ordered by transaction time

    Raises:
        MissingRequiredHeaderError: If no row can serve as the header
    """
    if not grid:
        return []

    header_index, header_map = resolve_header(grid, config.headers)
    columns = resolve_columns(
        header_map,
        config.headers,
        header_row=header_index,
        width=len(grid[header_index]),
    )

    records = []
    skipped = 0
    for row_index in range(header_index + 1, len(grid)):
        row = grid[row_index]
        if all(is_blank(cell) for cell in row):
            continue
        try:
            records.append(parse_row(row, columns, config, row_index))
        except RowUnparseableError as e:
            skipped += 1
            logger.debug(f"Skipping row: {e}")

    logger.debug(f"Extracted {len(records)} records, skipped {skipped} rows")
    return assemble_records(records)
