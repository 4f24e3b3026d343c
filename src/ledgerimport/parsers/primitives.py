"""
Amount and date/time primitives shared by all extractors.

Every function takes the raw cell value (as produced by the reader backend)
together with its text form, and returns None when nothing usable could be
parsed. Callers treat None as "skip this row".
"""

import locale
import math
import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Tuple

from dateutil import parser as date_parser

from ledgerimport.core.config import DEFAULT_IMPORT_CONFIG

# Day 0 of the OLE automation calendar
OLE_EPOCH = datetime(1899, 12, 30)
OLE_MIN_DAYS = -657435.0
OLE_MAX_DAYS = 2958465.99999999

# Bank exports we have seen, tried before the lenient parser
DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
    "%Y.%m.%d %H:%M:%S",
    "%Y.%m.%d %H:%M",
    "%Y.%m.%d",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
    "%Y%m%d %H%M%S",
    "%Y%m%d %H:%M:%S",
    "%Y%m%d",
    "%Y년 %m월 %d일 %H:%M:%S",
    "%Y년 %m월 %d일 %H:%M",
    "%Y년 %m월 %d일",
    "%y-%m-%d %H:%M:%S",
    "%y-%m-%d %H:%M",
    "%y-%m-%d",
    "%y.%m.%d %H:%M:%S",
    "%y.%m.%d %H:%M",
    "%y.%m.%d",
]

TIME_FORMATS = [
    "%H:%M",
    "%H:%M:%S",
    "%H:%M:%S.%f",
    "%I:%M %p",
    "%I:%M:%S %p",
    "%p %I:%M",
    "%p %I:%M:%S",
]

_MERIDIEM = {"오전": "AM", "오후": "PM"}

# Something that looks like a calendar date; guards the lenient parser
# against filling in today's date for stray numbers.
_DATE_HINT = re.compile(r"\d{1,4}\D+\d{1,2}\D+\d{1,4}|\d{8}|[A-Za-z]{3,}\.?\s+\d{1,2}")


def cell_text(raw: Any) -> str:
    """Text form of a raw cell value ("" for empty cells)."""
    if raw is None:
        return ""
    if isinstance(raw, float):
        if math.isnan(raw):
            return ""
        if raw.is_integer():
            return str(int(raw))
    if isinstance(raw, datetime):
        return raw.isoformat(sep=" ")
    return str(raw)


def is_blank(raw: Any, text: Optional[str] = None) -> bool:
    """True for empty cells and whitespace-only text."""
    if raw is None or (isinstance(raw, float) and math.isnan(raw)):
        return not (text or "").strip()
    if text is None:
        text = cell_text(raw)
    return not text.strip()


# =============================================================================
# Amounts
# =============================================================================

def parse_decimal(
    raw: Any,
    text: Optional[str] = None,
    currency_units: Iterable[str] = DEFAULT_IMPORT_CONFIG.currency_units,
) -> Optional[Decimal]:
    """
    Parse an amount cell.

    Native numbers are accepted as-is. Text has thousands separators and
    currency units removed, "(500)" becomes -500, and is then parsed with
    the current locale's decimal point before the plain form.

    Args:
        raw: Raw cell value
        text: Text form of the cell (derived from raw when omitted)
        currency_units: Suffixes/symbols to strip, e.g. "원"

    Returns:
        Decimal or None if the cell is not a number
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        return raw if raw.is_finite() else None
    if isinstance(raw, int):
        return Decimal(raw)
    if isinstance(raw, float):
        if math.isnan(raw) or math.isinf(raw):
            return None
        return Decimal(str(raw))

    if text is None:
        text = cell_text(raw)

    cleaned = text.replace(",", "")
    for unit in currency_units:
        cleaned = cleaned.replace(unit, "")
    cleaned = cleaned.strip().replace("(", "-").replace(")", "").strip()
    if not cleaned:
        return None

    for candidate in (locale.delocalize(cleaned), cleaned):
        try:
            value = Decimal(candidate)
        except (InvalidOperation, ValueError):
            continue
        if value.is_finite():
            return value

    return None


def parse_nonzero_decimal(
    raw: Any,
    text: Optional[str] = None,
    currency_units: Iterable[str] = DEFAULT_IMPORT_CONFIG.currency_units,
) -> Optional[Decimal]:
    """Like parse_decimal, but an exact zero counts as no amount."""
    value = parse_decimal(raw, text, currency_units)
    if value is None or value == 0:
        return None
    return value


def read_amount(
    candidates: Iterable[Tuple[Any, Optional[str]]],
    currency_units: Iterable[str] = DEFAULT_IMPORT_CONFIG.currency_units,
) -> Optional[Decimal]:
    """
    Pick the row amount from (raw, text) cells in priority order.

    The caller passes amount, withdrawal and deposit cells in that order;
    missing columns are simply left out. The first non-zero parse wins.
    """
    for raw, text in candidates:
        value = parse_nonzero_decimal(raw, text, currency_units)
        if value is not None:
            return value
    return None


# =============================================================================
# Dates and times
# =============================================================================

def from_ole_date(value: float) -> Optional[datetime]:
    """Convert an OLE automation day count to a naive datetime."""
    if math.isnan(value) or not (OLE_MIN_DAYS <= value <= OLE_MAX_DAYS):
        return None
    # Round to the millisecond like spreadsheet applications do
    millis = round(value * 86400000)
    return OLE_EPOCH + timedelta(milliseconds=millis)


def _parse_datetime_text(text: str) -> Optional[datetime]:
    text = text.strip().rstrip(".").strip()
    if not text:
        return None

    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    if not _DATE_HINT.search(text):
        return None

    try:
        parsed = date_parser.parse(text)
    except (ValueError, OverflowError):
        return None
    return parsed.replace(tzinfo=None)


def parse_datetime(raw: Any, text: Optional[str] = None) -> Optional[datetime]:
    """
    Parse a combined date-time cell.

    Accepts, in order: a native datetime/date, a numeric OLE automation
    date, then free text.

    Args:
        raw: Raw cell value
        text: Text form of the cell (derived from raw when omitted)

    Returns:
        Naive datetime or None
    """
    if isinstance(raw, datetime):
        # pandas.Timestamp is a datetime subclass
        if hasattr(raw, "to_pydatetime"):
            raw = raw.to_pydatetime()
        return raw.replace(tzinfo=None)
    if isinstance(raw, date):
        return datetime.combine(raw, time())
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        converted = from_ole_date(float(raw))
        if converted is not None:
            return converted

    if text is None:
        text = cell_text(raw)
    return _parse_datetime_text(text)


def _parse_digit_block(digits: str) -> Optional[time]:
    """Parse "HHmm" or "HHmmss" with range validation."""
    if not digits.isdigit():
        return None

    if len(digits) == 4:
        hours, minutes, seconds = int(digits[:2]), int(digits[2:]), 0
    elif len(digits) == 6:
        hours, minutes, seconds = int(digits[:2]), int(digits[2:4]), int(digits[4:])
    else:
        return None

    if hours < 24 and minutes < 60 and seconds < 60:
        return time(hours, minutes, seconds)
    return None


def parse_time_of_day(raw: Any, text: Optional[str] = None) -> Optional[time]:
    """
    Parse a time-only cell.

    Accepts a native time/timedelta/datetime, the fractional part of an OLE
    date, "H:mm"-style text, or a 4/6 digit "HHmm"/"HHmmss" block.
    """
    if isinstance(raw, time):
        return raw.replace(tzinfo=None)
    if isinstance(raw, datetime):
        return raw.time()
    if isinstance(raw, timedelta):
        seconds = int(raw.total_seconds()) % 86400
        return time(seconds // 3600, (seconds // 60) % 60, seconds % 60)
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
        if value >= 1 and value.is_integer():
            # A numeric "0930" loses its leading zero in the sheet
            digits = str(int(value))
            if len(digits) in (3, 5):
                digits = "0" + digits
            block = _parse_digit_block(digits)
            if block is not None:
                return block
        converted = from_ole_date(value)
        if converted is not None:
            return converted.time()

    if text is None:
        text = cell_text(raw)
    text = text.strip()
    if not text:
        return None

    normalized = text
    for korean, meridiem in _MERIDIEM.items():
        normalized = normalized.replace(korean, meridiem)
    normalized = " ".join(normalized.split())

    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(normalized, fmt).time()
        except ValueError:
            continue

    block = _parse_digit_block(text)
    if block is not None:
        return block

    parsed = _parse_datetime_text(text)
    if parsed is not None:
        return parsed.time()

    return None


def _join_parts(*parts: str) -> str:
    return " ".join(part.strip() for part in parts if part and part.strip()).strip()


def combine_date_and_time(
    date_raw: Any,
    date_text: Optional[str],
    time_raw: Any,
    time_text: Optional[str],
) -> Optional[datetime]:
    """
    Resolve a timestamp from separate date and time cells.

    A blank time cell keeps the date's own time of day, so date cells that
    already embed a time still work. When either part cannot be parsed on
    its own, the joined text of both cells is tried as one value.
    """
    date_text = date_text if date_text is not None else cell_text(date_raw)
    time_text = time_text if time_text is not None else cell_text(time_raw)

    date_part = parse_datetime(date_raw, date_text)
    if date_part is None:
        combined = _join_parts(date_text, time_text)
        if not combined:
            return None
        return _parse_datetime_text(combined)

    if is_blank(time_raw, time_text):
        return date_part

    time_part = parse_time_of_day(time_raw, time_text)
    if time_part is not None:
        return datetime.combine(date_part.date(), time_part)

    fallback = _join_parts(date_text, time_text)
    if not fallback:
        return date_part
    return _parse_datetime_text(fallback)
