"""Per-category z-score anomaly detection.

Amounts are grouped by ``revenue_type``; each group gets a population mean and
population standard deviation (divide by ``n``). A record is anomalous when
``|z| > 2``. Constant groups (``std_dev == 0``) never produce anomalies.

Severity bands (upper bounds inclusive):

============  ==========
``|z|``       severity
============  ==========
(2, 3]        LOW
(3, 4]        MEDIUM
> 4           HIGH
============  ==========

The detector is stateless; callers re-run it on whatever filtered subset is
currently in scope.
"""

from __future__ import annotations

import statistics
from collections.abc import Iterable, Mapping

from .logging_setup import get_logger
from .models import Anomaly, CategoryStats, FinancialRecord, Language, Severity

Z_SCORE_THRESHOLD = 2.0
MEDIUM_THRESHOLD = 3.0
HIGH_THRESHOLD = 4.0

_SPIKE_TEXT: Mapping[Language, str] = {
    Language.NL: "Opvallende Omzetpiek",
    Language.EN: "Revenue Spike",
}
_DROP_TEXT: Mapping[Language, str] = {
    Language.NL: "Onverwachte Omzetdaling",
    Language.EN: "Unexpected Revenue Drop",
}


_logger = get_logger("revenue_analysis.anomalies")


def compute_category_stats(records: Iterable[FinancialRecord]) -> dict[str, CategoryStats]:
    """Return population mean/std-dev per ``revenue_type`` (first-seen order)."""

    grouped: dict[str, list[float]] = {}
    for record in records:
        grouped.setdefault(record.revenue_type, []).append(float(record.amount))

    stats: dict[str, CategoryStats] = {}
    for revenue_type, values in grouped.items():
        mean = statistics.fmean(values)
        stats[revenue_type] = CategoryStats(
            mean=mean,
            std_dev=statistics.pstdev(values, mu=mean),
            count=len(values),
        )
    return stats


def is_anomalous(z_score: float) -> bool:
    return abs(z_score) > Z_SCORE_THRESHOLD


def classify_severity(z_score: float) -> Severity:
    """Map a z-score to its severity band (callers check :func:`is_anomalous`)."""

    magnitude = abs(z_score)
    if magnitude > HIGH_THRESHOLD:
        return Severity.HIGH
    if magnitude > MEDIUM_THRESHOLD:
        return Severity.MEDIUM
    return Severity.LOW


def describe_deviation(z_score: float, language: Language = Language.NL) -> str:
    """Spike wording for positive deviations, drop wording otherwise."""

    texts = _SPIKE_TEXT if z_score > 0 else _DROP_TEXT
    return texts[language]


def detect_anomalies(
    records: Iterable[FinancialRecord], *, language: Language = Language.NL
) -> list[Anomaly]:
    """Flag outliers per revenue type, most recent first.

    Ties on date keep their input order.
    """

    materialized = list(records)
    stats = compute_category_stats(materialized)

    anomalies: list[Anomaly] = []
    for record in materialized:
        group = stats[record.revenue_type]
        if group.std_dev == 0:
            continue
        z_score = (float(record.amount) - group.mean) / group.std_dev
        if not is_anomalous(z_score):
            continue
        anomalies.append(
            Anomaly(
                id=record.id,
                date=record.date,
                revenue_type=record.revenue_type,
                amount=record.amount,
                z_score=z_score,
                severity=classify_severity(z_score),
                description=describe_deviation(z_score, language),
            )
        )

    # Stable sort: equal dates keep input order even with reverse=True.
    anomalies.sort(key=lambda a: a.date, reverse=True)
    _logger.info(
        "anomalies:done records=%d groups=%d anomalies=%d",
        len(materialized),
        len(stats),
        len(anomalies),
    )
    return anomalies


__all__ = [
    "Z_SCORE_THRESHOLD",
    "compute_category_stats",
    "is_anomalous",
    "classify_severity",
    "describe_deviation",
    "detect_anomalies",
]
