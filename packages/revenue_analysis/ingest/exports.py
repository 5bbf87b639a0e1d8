"""Workbook exports: the input template and the active lookup rules."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from os import PathLike
from pathlib import Path

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from ..logging_setup import get_logger
from ..models import LookupRule
from ..rules import RULE_FILE_HEADER

TEMPLATE_SHEET = "OmzetTemplate"
TEMPLATE_RULES_SHEET = "LookupReferenties"
RULES_SHEET = "LookupRules"

TEMPLATE_HEADER: tuple[str, ...] = (
    "Boekstuknummer",
    "Relatie",
    "Dagboek",
    "Grootboek",
    "Omzetsoort",
    "Datum",
    "Bedrag",
    "Omschrijving",
)
TEMPLATE_SAMPLE_ROWS: tuple[tuple[str | float, ...], ...] = (
    ("2024001", "Klant A", "VERK", "8000", "Terugkerende inkomsten", "2024-01-15", 5000.00,
     "Maandelijks SaaS Abonnement"),
    ("2024002", "Klant B", "VERK", "8010", "Dienstverlening", "2024-01-18", 1250.00,
     "Consultancy uren januari"),
    ("2024003", "Klant C", "BANK", "8020", "Eenmalige inkomsten", "2024-01-20", 8500.00,
     "Implementatie Project"),
    ("2024004", "Reseller X", "VERK", "8030", "Licentie-inkomsten", "2024-01-22", 2500.00,
     "Softwarelicenties Q1"),
)

_logger = get_logger("revenue_analysis.ingest.exports")


def _fill_sheet(
    ws: Worksheet,
    header: Sequence[str],
    rows: Iterable[Sequence[object]],
    widths: Sequence[int],
) -> None:
    ws.append(list(header))
    for row in rows:
        ws.append(list(row))
    for idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width


def _rule_rows(rules: Iterable[LookupRule]) -> list[tuple[str, str, str]]:
    return [(r.main_category, r.sub_category, r.search_term) for r in rules]


def write_template(path: str | PathLike[str], rules: Iterable[LookupRule]) -> Path:
    """Write the input template workbook with a reference sheet of ``rules``."""

    p = Path(path)
    rule_rows = _rule_rows(rules)

    wb = Workbook()
    ws = wb.active
    ws.title = TEMPLATE_SHEET
    _fill_sheet(ws, TEMPLATE_HEADER, TEMPLATE_SAMPLE_ROWS, [20] * len(TEMPLATE_HEADER))
    _fill_sheet(wb.create_sheet(TEMPLATE_RULES_SHEET), RULE_FILE_HEADER, rule_rows, (30, 30, 40))
    wb.save(p)

    _logger.info("exports:template path=%s rules=%d", p.name, len(rule_rows))
    return p


def write_rules(path: str | PathLike[str], rules: Iterable[LookupRule]) -> Path:
    """Write the rules as a single-sheet workbook that :func:`load_rules_file` accepts."""

    p = Path(path)
    rule_rows = _rule_rows(rules)

    wb = Workbook()
    ws = wb.active
    ws.title = RULES_SHEET
    _fill_sheet(ws, RULE_FILE_HEADER, rule_rows, (30, 30, 30))
    wb.save(p)

    _logger.info("exports:rules path=%s rules=%d", p.name, len(rule_rows))
    return p


__all__ = [
    "TEMPLATE_SHEET",
    "TEMPLATE_RULES_SHEET",
    "RULES_SHEET",
    "TEMPLATE_HEADER",
    "write_template",
    "write_rules",
]
