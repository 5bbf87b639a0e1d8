"""Public orchestration surface for the ``revenue_analysis`` package.

Wires the pipeline stages together:

    rows -> infer_column_roles -> normalize_rows -> classify -> PipelineResult

and exposes the period-scoped anomaly analysis used by the CLI. Each call is a
pure transform over its inputs; callers own the "current" record and rule
sets and replace them wholesale with the returned values.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Collection, Iterable, Sequence
from os import PathLike

from .anomalies import detect_anomalies
from .categorize import classify
from .ingest.readers import read_rows
from .logging_setup import get_logger
from .models import Anomaly, FinancialRecord, Language, LookupRule, PipelineResult, RawRow
from .normalizers import normalize_rows
from .periods import DateRangeOption, filter_records, resolve_date_range
from .rules import DEFAULT_LOOKUP_RULES, parse_rule_rows
from .schema import infer_column_roles

_logger = get_logger("revenue_analysis.api")


def ingest_rows(
    rows: Sequence[RawRow], rules: Sequence[LookupRule] = DEFAULT_LOOKUP_RULES
) -> PipelineResult:
    """Run schema inference, normalization and classification over raw rows.

    Input
    -----
    rows:
        Header row first, then data rows, as produced by
        :func:`~revenue_analysis.ingest.readers.read_rows`.
    rules:
        Ordered lookup rules; the first match wins.

    Output
    ------
    A :class:`~revenue_analysis.models.PipelineResult` with the resolved
    column roles, classified records, unmatched audit list and row counts.

    Raises
    ------
    SchemaError
        When there is no header row or the date/amount columns cannot be
        identified. No partial result is produced.
    """

    roles = infer_column_roles(rows[0] if rows else None)
    normalized = normalize_rows(rows[1:], roles)
    classified = classify(normalized.records, rules)
    return PipelineResult(
        roles=roles,
        records=classified.records,
        unmatched=classified.unmatched,
        submitted=normalized.submitted,
        retained=normalized.retained,
    )


def ingest_file(
    path: str | PathLike[str], rules: Sequence[LookupRule] = DEFAULT_LOOKUP_RULES
) -> PipelineResult:
    """Read a CSV/XLSX file and run :func:`ingest_rows` on its rows."""

    result = ingest_rows(read_rows(path), rules)
    _logger.info(
        "api:ingested records=%d unmatched=%d discarded=%d",
        len(result.records),
        len(result.unmatched),
        result.submitted - result.retained,
    )
    return result


def replace_rules(
    result: PipelineResult,
    rule_rows: Iterable[RawRow],
    current_rules: Sequence[LookupRule],
) -> tuple[Sequence[LookupRule], PipelineResult]:
    """Swap in a new rule set parsed from ``rule_rows`` and re-classify.

    A rule file yielding zero valid rules is rejected: ``current_rules`` and
    ``result`` are returned unchanged. Otherwise the new rules fully replace
    the old ones and the already-normalized records are classified again.
    """

    new_rules = parse_rule_rows(rule_rows)
    if not new_rules:
        _logger.warning("api:rules_rejected reason=no_valid_rules kept=%d", len(current_rules))
        return current_rules, result

    reclassified = classify(result.records, new_rules)
    return new_rules, PipelineResult(
        roles=result.roles,
        records=reclassified.records,
        unmatched=reclassified.unmatched,
        submitted=result.submitted,
        retained=result.retained,
    )


def analyze(
    records: Iterable[FinancialRecord],
    *,
    option: DateRangeOption | str = DateRangeOption.MONTHS_6,
    today: dt.date | None = None,
    custom_start: dt.date | None = None,
    custom_end: dt.date | None = None,
    revenue_types: Collection[str] | None = None,
    language: Language = Language.NL,
) -> list[Anomaly]:
    """Detect anomalies within the resolved period and revenue-type selection.

    Statistics are computed over the filtered subset only.
    """

    start, end = resolve_date_range(
        option, today=today, custom_start=custom_start, custom_end=custom_end
    )
    in_scope = filter_records(records, start=start, end=end, revenue_types=revenue_types)
    _logger.debug(
        "api:analyze start=%s end=%s in_scope=%d", start.isoformat(), end.isoformat(), len(in_scope)
    )
    return detect_anomalies(in_scope, language=language)


__all__ = ["ingest_rows", "ingest_file", "replace_rules", "analyze"]
