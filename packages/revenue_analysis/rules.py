"""Lookup rules: the default seed list and rule-file parsing.

A rule file holds one header row followed by rows of exactly three columns in
fixed order: main category, sub category, search term. Rows without a main
category or search term are skipped. An empty result means the file was
rejected and callers keep their current rule set.
"""

from __future__ import annotations

from collections.abc import Iterable
from os import PathLike

from pydantic import ValidationError

from .logging_setup import get_logger
from .models import LookupRule, RawRow
from .normalizers import cell_text

RULE_FILE_HEADER: tuple[str, str, str] = ("Hoofdsoort", "Subcategorie", "Zoekterm")


def _rule(main: str, sub: str, term: str) -> LookupRule:
    return LookupRule(main_category=main, sub_category=sub, search_term=term)


# Seed taxonomy. Order matters: the first matching rule wins.
DEFAULT_LOOKUP_RULES: tuple[LookupRule, ...] = (
    # Recurring revenue
    _rule("Terugkerende inkomsten", "Abonnementen", "abonnement"),
    _rule("Terugkerende inkomsten", "Abonnementen", "subscription"),
    _rule("Terugkerende inkomsten", "Servicecontracten", "servicecontract"),
    _rule("Terugkerende inkomsten", "Support/maintenance fees", "maintenance"),
    _rule("Terugkerende inkomsten", "SLA-contracten", "sla"),
    _rule("Terugkerende inkomsten", "Periodieke licenties", "maandelijks"),
    # One-off revenue
    _rule("Eenmalige inkomsten", "Projectwerk", "project"),
    _rule("Eenmalige inkomsten", "Installatiekosten", "installatie"),
    _rule("Eenmalige inkomsten", "Implementaties", "implementatie"),
    _rule("Eenmalige inkomsten", "Training", "training"),
    _rule("Eenmalige inkomsten", "Consultancy per opdracht", "advies"),
    # Licence revenue
    _rule("Licentie-inkomsten", "Softwarelicenties", "licentie"),
    _rule("Licentie-inkomsten", "Softwarelicenties", "license"),
    _rule("Licentie-inkomsten", "Usage-based licenties", "usage"),
    _rule("Licentie-inkomsten", "API-call licenties", "api call"),
    # Services
    _rule("Dienstverlening", "Consultancy per uur", "consultancy uren"),
    _rule("Dienstverlening", "Maatwerkontwikkeling", "maatwerk"),
    _rule("Dienstverlening", "Maatwerkontwikkeling", "development"),
    _rule("Dienstverlening", "Support-in-uren", "strippenkaart"),
    # Transactional revenue
    _rule("Transactionele inkomsten", "Per transactie", "transactie"),
    _rule("Transactionele inkomsten", "Marketplace fees", "marketplace"),
    # Usage-based revenue
    _rule("Usage-based inkomsten", "Per GB", "storage"),
    _rule("Usage-based inkomsten", "Per minuut", "belminuten"),
    # Product sales
    _rule("Productverkoop", "Hardware", "hardware"),
    _rule("Productverkoop", "Hardware", "laptop"),
    _rule("Productverkoop", "Accessoires", "accessoire"),
    # Financial income
    _rule("Financiële inkomsten", "Rente", "rente"),
    # Advertising
    _rule("Advertentie-inkomsten", "Display ads", "ads"),
    _rule("Advertentie-inkomsten", "Sponsored content", "sponsored"),
)


_logger = get_logger("revenue_analysis.rules")


def parse_rule_rows(rows: Iterable[RawRow]) -> list[LookupRule]:
    """Parse rule-file rows (header first) into an ordered rule list.

    Missing cells read as empty strings; invalid rows are skipped and counted
    in the log line.
    """

    it = iter(rows)
    if next(it, None) is None:
        return []

    rules: list[LookupRule] = []
    skipped = 0
    for row in it:
        cells = [cell_text(row[i]) if i < len(row) else "" for i in range(3)]
        try:
            rules.append(
                LookupRule(main_category=cells[0], sub_category=cells[1], search_term=cells[2])
            )
        except ValidationError:
            skipped += 1

    _logger.info("rules:parsed accepted=%d skipped=%d", len(rules), skipped)
    return rules


def load_rules_file(path: str | PathLike[str]) -> list[LookupRule]:
    """Read a CSV/XLSX rule file and return its valid rules (possibly empty)."""

    from .ingest.readers import read_rows

    return parse_rule_rows(read_rows(path))


__all__ = ["RULE_FILE_HEADER", "DEFAULT_LOOKUP_RULES", "parse_rule_rows", "load_rules_file"]
