"""File readers that turn CSV/XLSX files into raw rows.

The first returned row is the header row. Rows whose cells are all empty are
dropped. Cell values are passed through untouched: CSV yields text,
spreadsheets yield numbers, text and datetimes as cached by the workbook.
"""

from __future__ import annotations

import csv
from os import PathLike
from pathlib import Path

from openpyxl import load_workbook

from ..logging_setup import get_logger
from ..models import CellValue, RawRow

CSV_DELIMITERS: str = ",;\t|"
_SNIFF_BYTES: int = 8192

_logger = get_logger("revenue_analysis.ingest.readers")


def _is_blank_row(row: RawRow) -> bool:
    for cell in row:
        if cell is None:
            continue
        if isinstance(cell, str) and not cell.strip():
            continue
        return False
    return True


def read_csv_rows(path: str | PathLike[str]) -> list[RawRow]:
    """Read a delimited text file, sniffing the delimiter among ``, ; \\t |``."""

    p = Path(path)
    with p.open(encoding="utf-8-sig", newline="") as f:
        head = f.read(_SNIFF_BYTES)
        f.seek(0)
        try:
            dialect: type[csv.Dialect] | csv.Dialect = csv.Sniffer().sniff(
                head, delimiters=CSV_DELIMITERS
            )
        except csv.Error:
            dialect = csv.excel
        rows: list[RawRow] = [list(r) for r in csv.reader(f, dialect) if not _is_blank_row(r)]

    _logger.debug(
        "readers:csv path=%s delimiter=%r rows=%d",
        p.name,
        getattr(dialect, "delimiter", ","),
        len(rows),
    )
    return rows


def read_xlsx_rows(path: str | PathLike[str]) -> list[RawRow]:
    """Read the first worksheet of a workbook using cached cell values."""

    p = Path(path)
    wb = load_workbook(p, read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows: list[RawRow] = []
        for values in ws.iter_rows(values_only=True):
            row: list[CellValue] = list(values)
            if not _is_blank_row(row):
                rows.append(row)
    finally:
        wb.close()

    _logger.debug("readers:xlsx path=%s rows=%d", p.name, len(rows))
    return rows


def read_rows(path: str | PathLike[str]) -> list[RawRow]:
    """Dispatch on file suffix (``.csv``/``.txt`` or ``.xlsx``/``.xlsm``)."""

    suffix = Path(path).suffix.lower()
    if suffix in {".csv", ".txt"}:
        return read_csv_rows(path)
    if suffix in {".xlsx", ".xlsm"}:
        return read_xlsx_rows(path)
    raise ValueError(f"Unsupported file type: {suffix or '(none)'}")


__all__ = ["CSV_DELIMITERS", "read_csv_rows", "read_xlsx_rows", "read_rows"]
