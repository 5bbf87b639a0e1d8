"""Header-row schema inference.

Maps the first row of an export to :class:`~revenue_analysis.models.ColumnRoles`
using case-insensitive substring matches against a fixed multilingual (Dutch
and English) keyword set per role. Exports whose headers match neither a date
nor an amount keyword are read positionally as ``date, category, amount``.
"""

from __future__ import annotations

from collections.abc import Sequence

from .logging_setup import get_logger
from .models import CellValue, ColumnRoles

# Keyword sets per logical role. Any keyword contained in a header cell
# assigns that column; the leftmost matching cell wins.
ROLE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "date": ("datum", "date", "transactiedatum"),
    "amount": ("bedrag", "amount", "saldo"),
    "id": ("boekstuk", "id", "transactie"),
    "description": ("omschrijving", "relatie", "description", "naam", "klant"),
    "category": ("omzetsoort", "inkomsten", "revenue", "kostensoort", "category", "grootboek"),
}

# Positional layout used when no date/amount header is recognized.
_FALLBACK_DATE, _FALLBACK_CATEGORY, _FALLBACK_AMOUNT = 0, 1, 2
_FALLBACK_MIN_COLUMNS = 3


_logger = get_logger("revenue_analysis.schema")


class SchemaError(ValueError):
    """Raised when the essential date/amount columns cannot be resolved."""


def _header_text(cell: CellValue) -> str:
    if cell is None:
        return ""
    return str(cell).strip().lower()


def _find_role(headers: Sequence[str], keywords: Sequence[str]) -> int | None:
    for idx, header in enumerate(headers):
        if any(k in header for k in keywords):
            return idx
    return None


def infer_column_roles(header_cells: Sequence[CellValue] | None) -> ColumnRoles:
    """Resolve column roles from a header row.

    Raises
    ------
    SchemaError
        When there is no header row, or when the date or amount column is
        still unresolved after keyword matching and the positional fallback.
    """

    if not header_cells:
        raise SchemaError("File has no header row")

    headers = [_header_text(c) for c in header_cells]
    found = {role: _find_role(headers, kws) for role, kws in ROLE_KEYWORDS.items()}

    if (
        found["date"] is None
        and found["amount"] is None
        and len(headers) >= _FALLBACK_MIN_COLUMNS
    ):
        found["date"] = _FALLBACK_DATE
        found["category"] = _FALLBACK_CATEGORY
        found["amount"] = _FALLBACK_AMOUNT
        if found["description"] is None:
            found["description"] = _FALLBACK_CATEGORY
        _logger.info("schema:positional_fallback columns=%d", len(headers))

    missing = [role for role in ("date", "amount") if found[role] is None]
    if missing:
        raise SchemaError(
            "Missing essential columns: " + ", ".join(missing) + f" (headers: {headers!r})"
        )

    roles = ColumnRoles(**found)
    _logger.debug(
        "schema:resolved date=%s amount=%s id=%s description=%s category=%s",
        roles.date,
        roles.amount,
        roles.id,
        roles.description,
        roles.category,
    )
    return roles


__all__ = ["ROLE_KEYWORDS", "SchemaError", "infer_column_roles"]
