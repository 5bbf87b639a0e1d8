"""Data models and type aliases for ``revenue_analysis``.

Raw input is kept deliberately loose (``CellValue``/``RawRow``) because file
readers yield whatever the source format holds: text from CSV, numbers and
datetimes from spreadsheets. Everything downstream of the normalizer works on
typed, frozen records only.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Raw input
# ---------------------------------------------------------------------------

type CellValue = str | int | float | Decimal | date | datetime | None
"""One untyped cell as produced by a file reader (``None`` means empty)."""

type RawRow = Sequence[CellValue]
"""Ordered cells of one input line."""


# ---------------------------------------------------------------------------
# Sentinels and enums
# ---------------------------------------------------------------------------

UNKNOWN_CATEGORY = "Unknown"
UNCLASSIFIED_SUBCATEGORY = "Unclassified"


class Language(StrEnum):
    NL = "NL"
    EN = "EN"


class Severity(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ColumnRoles:
    """Column index per logical role; ``None`` marks an absent role.

    Roles are resolved independently, so two roles may point at the same
    column (the positional fallback reuses the category column as the
    description, for instance).
    """

    date: int | None = None
    amount: int | None = None
    id: int | None = None
    description: int | None = None
    category: int | None = None


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FinancialRecord:
    """A normalized transaction.

    ``date`` is always a valid calendar date and ``amount`` is never zero; rows
    that cannot satisfy both are dropped by the normalizer. ``revenue_type`` is
    either a taxonomy category assigned by classification or
    :data:`UNKNOWN_CATEGORY`. Before classification it carries the raw
    category cell text.
    """

    id: str
    date: date
    revenue_type: str
    description: str
    amount: Decimal
    sub_category: str | None = None
    original_category: str | None = None


class LookupRule(BaseModel):
    """One ordered text-matching rule (first match wins).

    ``main_category`` and ``search_term`` are required and must be non-empty;
    ``sub_category`` may be empty. Values are kept verbatim, matching is
    case-insensitive.
    """

    model_config = ConfigDict(frozen=True, strict=True, extra="forbid")

    main_category: str
    sub_category: str = ""
    search_term: str

    @field_validator("main_category", "search_term")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if v == "":
            raise ValueError("must be non-empty")
        return v


@dataclass(frozen=True, slots=True)
class NormalizationResult:
    """Records retained by the normalizer plus row counts for diagnostics."""

    records: tuple[FinancialRecord, ...]
    submitted: int
    retained: int

    @property
    def discarded(self) -> int:
        return self.submitted - self.retained


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    records: tuple[FinancialRecord, ...]
    unmatched: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """Output of one full ingest: roles, classified records and the audit list."""

    roles: ColumnRoles
    records: tuple[FinancialRecord, ...]
    unmatched: tuple[str, ...]
    submitted: int
    retained: int


# ---------------------------------------------------------------------------
# Anomalies
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryStats:
    mean: float
    std_dev: float
    count: int


@dataclass(frozen=True, slots=True)
class Anomaly:
    id: str
    date: date
    revenue_type: str
    amount: Decimal
    z_score: float
    severity: Severity
    description: str


# ---------------------------------------------------------------------------
# Trends and insights
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MonthlyTotal:
    month: str  # YYYY-MM
    revenue_type: str
    amount: Decimal


class InsightStatus(StrEnum):
    OK = "ok"
    NO_CREDENTIALS = "no_credentials"
    QUOTA_EXCEEDED = "quota_exceeded"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class RevenueInsight:
    revenue_type: str
    insight: str
    status: InsightStatus = InsightStatus.OK


__all__ = [
    "CellValue",
    "RawRow",
    "UNKNOWN_CATEGORY",
    "UNCLASSIFIED_SUBCATEGORY",
    "Language",
    "Severity",
    "ColumnRoles",
    "FinancialRecord",
    "LookupRule",
    "NormalizationResult",
    "ClassificationResult",
    "PipelineResult",
    "CategoryStats",
    "Anomaly",
    "MonthlyTotal",
    "InsightStatus",
    "RevenueInsight",
]
