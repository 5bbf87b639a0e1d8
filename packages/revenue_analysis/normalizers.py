"""Raw rows → :class:`~revenue_analysis.models.FinancialRecord` normalization.

Cells arrive untyped: CSV readers yield text, spreadsheet readers yield
numbers (including serial dates) and datetimes. This module owns the
locale-tolerant parsing rules:

- Dates: spreadsheet serials (days since 1899-12-30), ISO 8601 text, and
  ambiguous ``a-b-c`` / ``a/b/c`` text which is always read day-month-year.
- Amounts: European (``1.234,56``) and US (``1,234.56``) separators; the
  separator that appears last is the decimal separator.

Rows with an invalid date or a zero amount are dropped without raising; the
caller sees only the submitted/retained counts.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation

from .logging_setup import get_logger
from .models import (
    UNKNOWN_CATEGORY,
    CellValue,
    ColumnRoles,
    FinancialRecord,
    NormalizationResult,
    RawRow,
)

# Spreadsheet serial 25569 is 1970-01-01 (serial 0 is 1899-12-30).
EXCEL_EPOCH_OFFSET_DAYS = 25569
_MS_PER_DAY = 86400 * 1000
_UNIX_EPOCH = datetime(1970, 1, 1)

_DATE_PART_SPLIT_RE = re.compile(r"[-/]")
# Year-first layouts are unambiguous and parsed directly.
_YEAR_FIRST_FORMATS: tuple[str, ...] = ("%Y-%m-%d", "%Y/%m/%d")
_DAY_FIRST_FORMATS: tuple[str, ...] = ("%d-%m-%Y", "%d-%m-%y")

# Longest leading decimal number, mirroring lenient float parsing of exports
# such as "100 EUR".
_NUMBER_PREFIX_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_ZERO = Decimal(0)


_logger = get_logger("revenue_analysis.normalizers")


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------


def _is_number(cell: CellValue) -> bool:
    # bool is an int subclass but never a meaningful amount or serial date.
    return isinstance(cell, int | float | Decimal) and not isinstance(cell, bool)


def cell_text(cell: CellValue) -> str:
    """Render a cell as text; whole floats render without a trailing ``.0``."""

    if cell is None:
        return ""
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    if isinstance(cell, datetime | date):
        return cell.isoformat()
    return str(cell)


def _cell_at(row: RawRow, idx: int | None) -> CellValue:
    if idx is None or idx >= len(row):
        return None
    return row[idx]


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def _serial_to_date(serial: float) -> date | None:
    if not math.isfinite(serial):
        return None
    ms = round((serial - EXCEL_EPOCH_OFFSET_DAYS) * _MS_PER_DAY)
    try:
        return (_UNIX_EPOCH + timedelta(milliseconds=ms)).date()
    except (OverflowError, ValueError):
        return None


def _parse_text_date(text: str) -> date | None:
    s = text.strip()
    if not s:
        return None

    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        pass
    for fmt in _YEAR_FIRST_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue

    parts = _DATE_PART_SPLIT_RE.split(s)
    if len(parts) != 3:
        return None
    day, month, year = (p.strip() for p in parts)
    candidate = f"{day}-{month}-{year}"
    for fmt in _DAY_FIRST_FORMATS:
        try:
            return datetime.strptime(candidate, fmt).date()
        except ValueError:
            continue
    return None


def parse_date(cell: CellValue) -> date | None:
    """Parse a date cell; ``None`` when the value is not a valid calendar date.

    Numbers are spreadsheet serials. Text is tried as ISO 8601 (or another
    year-first layout) and otherwise reinterpreted as day-month-year when it
    splits into exactly three ``-``/``/`` separated parts. Month-day-year
    sources are therefore misread; that policy is fixed.
    """

    if isinstance(cell, datetime):
        return cell.date()
    if isinstance(cell, date):
        return cell
    if _is_number(cell):
        return _serial_to_date(float(cell))  # type: ignore[arg-type]
    if isinstance(cell, str):
        return _parse_text_date(cell)
    return None


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def _unify_separators(s: str) -> str:
    has_comma = "," in s
    has_dot = "." in s
    if has_comma and not has_dot:
        return s.replace(",", ".", 1)
    if has_comma and has_dot:
        if s.rfind(",") > s.rfind("."):
            # European: dots group thousands, the comma is the decimal point.
            return s.replace(".", "").replace(",", ".", 1)
        return s.replace(",", "")
    return s


def parse_amount(cell: CellValue) -> Decimal:
    """Parse an amount cell; unparseable values normalize to ``Decimal(0)``."""

    if isinstance(cell, Decimal):
        return cell if cell.is_finite() else _ZERO
    if _is_number(cell):
        value = float(cell)  # type: ignore[arg-type]
        if not math.isfinite(value):
            return _ZERO
        if isinstance(cell, int):
            return Decimal(cell)
        return Decimal(repr(value))
    if not isinstance(cell, str):
        return _ZERO

    s = _unify_separators(cell.strip())
    m = _NUMBER_PREFIX_RE.match(s)
    if m is None:
        return _ZERO
    try:
        return Decimal(m.group(0))
    except InvalidOperation:
        return _ZERO


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


def _record_id(row: RawRow, roles: ColumnRoles, position: int) -> str:
    raw = cell_text(_cell_at(row, roles.id)).strip() if roles.id is not None else ""
    return raw or f"row-{position}"


def normalize_row(row: RawRow, roles: ColumnRoles, position: int) -> FinancialRecord | None:
    """Normalize one data row; ``None`` when the row must be discarded.

    ``position`` is the 0-based index of the row among the data rows and
    seeds the synthetic identifier when no id column/value is available.
    """

    parsed_date = parse_date(_cell_at(row, roles.date))
    amount = parse_amount(_cell_at(row, roles.amount))
    if parsed_date is None or amount == _ZERO:
        return None

    raw_category = cell_text(_cell_at(row, roles.category))
    return FinancialRecord(
        id=_record_id(row, roles, position),
        date=parsed_date,
        revenue_type=raw_category or UNKNOWN_CATEGORY,
        description=cell_text(_cell_at(row, roles.description)),
        amount=amount,
        original_category=raw_category,
    )


def normalize_rows(rows: Iterable[RawRow], roles: ColumnRoles) -> NormalizationResult:
    """Normalize data rows (header excluded) in order, dropping invalid ones."""

    records: list[FinancialRecord] = []
    submitted = 0
    for position, row in enumerate(rows):
        submitted += 1
        record = normalize_row(row, roles, position)
        if record is not None:
            records.append(record)

    result = NormalizationResult(
        records=tuple(records), submitted=submitted, retained=len(records)
    )
    _logger.info(
        "normalize:done submitted=%d retained=%d discarded=%d",
        result.submitted,
        result.retained,
        result.discarded,
    )
    return result


__all__ = [
    "EXCEL_EPOCH_OFFSET_DAYS",
    "cell_text",
    "parse_date",
    "parse_amount",
    "normalize_row",
    "normalize_rows",
]
