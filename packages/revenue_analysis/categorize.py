"""Rule-based revenue classification.

Public API:
    - :func:`classify`
    - :func:`match_rule`

Each record's haystack is ``lower(description + " " + original_category)``.
Rules are scanned in list order and the first rule whose lowercased search
term occurs in the haystack wins; rule specificity plays no part. Records no
rule matches get the sentinel ``Unknown``/``Unclassified`` pair and their
source text is collected for follow-up.

``classify`` is pure: it returns new record instances and never reads the
current ``revenue_type``, so re-running it with the same rules is a no-op.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from .logging_setup import get_logger
from .models import (
    UNCLASSIFIED_SUBCATEGORY,
    UNKNOWN_CATEGORY,
    ClassificationResult,
    FinancialRecord,
    LookupRule,
)

_logger = get_logger("revenue_analysis.categorize")


def _haystack(record: FinancialRecord) -> str:
    return f"{record.description or ''} {record.original_category or ''}".lower()


def match_rule(record: FinancialRecord, rules: Sequence[LookupRule]) -> LookupRule | None:
    """Return the first rule matching ``record`` or ``None``."""

    text = _haystack(record)
    for rule in rules:
        if rule.search_term.lower() in text:
            return rule
    return None


def classify(
    records: Iterable[FinancialRecord], rules: Sequence[LookupRule]
) -> ClassificationResult:
    """Assign a taxonomy category to every record.

    Returns the classified records in input order together with the
    deduplicated unmatched source strings in first-seen order.
    """

    out: list[FinancialRecord] = []
    unmatched: dict[str, None] = {}
    unmatched_records = 0
    for record in records:
        match = match_rule(record, rules)
        if match is not None:
            out.append(
                replace(record, revenue_type=match.main_category, sub_category=match.sub_category)
            )
            continue

        unmatched_records += 1
        out.append(
            replace(record, revenue_type=UNKNOWN_CATEGORY, sub_category=UNCLASSIFIED_SUBCATEGORY)
        )
        source = record.description or record.original_category
        if source:
            unmatched.setdefault(source, None)

    result = ClassificationResult(records=tuple(out), unmatched=tuple(unmatched))
    _logger.info(
        "classify:done records=%d rules=%d unmatched_records=%d unmatched_items=%d",
        len(out),
        len(rules),
        unmatched_records,
        len(result.unmatched),
    )
    return result


__all__ = ["classify", "match_rule"]
