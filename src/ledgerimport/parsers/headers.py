"""
Header row resolution for tabular statements.

Statements put a title block, account details and sometimes a summary above
the real table, so the header row is searched for rather than assumed.
A row is accepted when every required logical column can be matched against
its whitespace-stripped cells, either exactly or by a single unambiguous
substring match.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple

from ledgerimport.core.config import HeaderGroups
from ledgerimport.core.exceptions import MissingRequiredHeaderError
from ledgerimport.parsers.primitives import cell_text

logger = logging.getLogger(__name__)


def normalize_header(header: Optional[str]) -> str:
    """Delete all whitespace from a header cell."""
    if header is None:
        return ""
    return "".join(ch for ch in str(header) if not ch.isspace())


class HeaderMap(Mapping):
    """
    Read-only mapping of normalized header text to 1-based column index.

    Lookups are case-insensitive and the first occurrence of a duplicated
    header wins.
    """

    def __init__(self, columns: Iterable[Tuple[str, int]]):
        entries = {}
        for header, column in columns:
            key = normalize_header(header).casefold()
            if key and key not in entries:
                entries[key] = column
        self._entries = entries

    @classmethod
    def from_cells(cls, cells: Sequence[Any]) -> "HeaderMap":
        """Build from one row of raw cells (column 1 is cells[0])."""
        return cls((cell_text(cell), index + 1) for index, cell in enumerate(cells))

    def __getitem__(self, header: str) -> int:
        return self._entries[normalize_header(header).casefold()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"HeaderMap({self._entries!r})"

    def find(self, candidates: Iterable[str]) -> Optional[int]:
        """
        Find the column for a synonym group.

        Every synonym is first tried as an exact key. Only then is each
        synonym tried as a substring; a synonym contained in more than one
        header is ambiguous and skipped rather than guessed.

        Returns:
            1-based column index or None
        """
        normalized = []
        for candidate in candidates:
            key = normalize_header(candidate).casefold()
            if not key:
                continue
            normalized.append(key)
            if key in self._entries:
                return self._entries[key]

        for key in normalized:
            matches = [column for header, column in self._entries.items() if key in header]
            if len(matches) == 1:
                return matches[0]

        return None

    def has(self, candidates: Iterable[str]) -> bool:
        return self.find(candidates) is not None


@dataclass(frozen=True)
class DateColumnSpec:
    """Either one combined date-time column or a (date, time) column pair."""

    combined: Optional[int] = None
    date: Optional[int] = None
    time: Optional[int] = None

    @classmethod
    def combined_column(cls, column: int) -> "DateColumnSpec":
        return cls(combined=column)

    @classmethod
    def split_columns(cls, date_column: int, time_column: int) -> "DateColumnSpec":
        return cls(date=date_column, time=time_column)

    @property
    def is_combined(self) -> bool:
        return self.combined is not None

    @property
    def is_split(self) -> bool:
        return self.date is not None and self.time is not None

    @property
    def date_column(self) -> int:
        """Column holding the (possibly combined) date."""
        return self.combined if self.is_combined else self.date


@dataclass(frozen=True)
class ResolvedColumns:
    """Logical column positions (1-based) for one source."""

    dates: DateColumnSpec
    category: int
    description: int
    type: Optional[int] = None
    amount: Optional[int] = None
    withdraw: Optional[int] = None
    deposit: Optional[int] = None
    header_row: int = 0
    width: int = 0


def resolve_date_columns(header_map: HeaderMap, groups: HeaderGroups) -> Optional[DateColumnSpec]:
    """Prefer a combined date-time column, else a date + time pair."""
    combined = header_map.find(groups.combined_date)
    if combined is not None:
        return DateColumnSpec.combined_column(combined)

    date_column = header_map.find(groups.date_part)
    time_column = header_map.find(groups.time_part)
    if date_column is not None and time_column is not None:
        return DateColumnSpec.split_columns(date_column, time_column)

    return None


def missing_groups(header_map: HeaderMap, groups: HeaderGroups) -> List[str]:
    """
    List the logical columns a candidate header row lacks.

    An empty list means the row satisfies the required-columns predicate:
    dates (combined or split), some amount column, a type column unless both
    withdrawal and deposit columns exist, a category and a description.
    """
    missing = []

    if resolve_date_columns(header_map, groups) is None:
        missing.append("date")

    has_amount = header_map.has(groups.amount)
    has_withdraw = header_map.has(groups.withdraw)
    has_deposit = header_map.has(groups.deposit)
    if not (has_amount or has_withdraw or has_deposit):
        missing.append("amount")
    if not header_map.has(groups.type) and not (has_withdraw and has_deposit):
        missing.append("type")

    if not header_map.has(groups.category):
        missing.append("category")
    if not header_map.has(groups.description):
        missing.append("description")

    return missing


def contains_required_headers(header_map: HeaderMap, groups: HeaderGroups) -> bool:
    return not missing_groups(header_map, groups)


def resolve_header(rows: Iterable[Sequence[Any]], groups: HeaderGroups) -> Tuple[int, HeaderMap]:
    """
    Find the first row that can serve as the table header.

    Args:
        rows: Candidate rows, each a sequence of raw cells
        groups: Synonym groups for the logical columns

    Returns:
        (row index, HeaderMap) of the first satisfying row

    Raises:
        MissingRequiredHeaderError: If no row qualifies
    """
    best_missing = None
    for index, row in enumerate(rows):
        header_map = HeaderMap.from_cells(row)
        if not header_map:
            continue

        missing = missing_groups(header_map, groups)
        if not missing:
            logger.debug(f"Header row found at index {index}: {list(header_map)}")
            return index, header_map

        if best_missing is None or len(missing) < len(best_missing):
            best_missing = missing

    raise MissingRequiredHeaderError(missing=best_missing or ["date", "amount", "category", "description"])


def resolve_columns(
    header_map: HeaderMap,
    groups: HeaderGroups,
    header_row: int = 0,
    width: int = 0,
) -> ResolvedColumns:
    """Resolve every logical column of an accepted header row."""
    dates = resolve_date_columns(header_map, groups)
    category = header_map.find(groups.category)
    description = header_map.find(groups.description)
    if dates is None or category is None or description is None:
        raise MissingRequiredHeaderError(missing=missing_groups(header_map, groups))

    return ResolvedColumns(
        dates=dates,
        category=category,
        description=description,
        type=header_map.find(groups.type),
        amount=header_map.find(groups.amount),
        withdraw=header_map.find(groups.withdraw),
        deposit=header_map.find(groups.deposit),
        header_row=header_row,
        width=width,
    )
