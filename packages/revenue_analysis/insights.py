"""Natural-language revenue insights via the OpenAI Responses API.

Public API:
    - :func:`generate_insight`
    - :func:`generate_insights`

Insights are a best-effort collaborator of the pipeline: every failure mode
(missing ``OPENAI_API_KEY``, quota exhaustion, network or API errors, empty
output) degrades to a localized fallback text and a non-OK
:class:`~revenue_analysis.models.InsightStatus`. Nothing here raises into the
caller. No side effects occur at import time.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from openai import OpenAI, RateLimitError

from . import prompting
from .logging_setup import get_logger
from .models import (
    UNKNOWN_CATEGORY,
    FinancialRecord,
    InsightStatus,
    Language,
    RevenueInsight,
)
from .pmap import p_map_settled

# ---- Tunables ----------------------------------------------------------------

_DEFAULT_MODEL: str = "gpt-5"
_DEFAULT_CONCURRENCY: int = 10
_DEFAULT_CATEGORY_LIMIT: int = 10

_FALLBACK_TEXT: Mapping[InsightStatus, Mapping[Language, str]] = {
    InsightStatus.NO_CREDENTIALS: {
        Language.NL: (
            "AI-sleutel ontbreekt. Dit is een gesimuleerd inzicht gebaseerd op de omzettrend."
        ),
        Language.EN: "AI key missing. This is a simulated insight based on the revenue trend.",
    },
    InsightStatus.QUOTA_EXCEEDED: {
        Language.NL: "AI-limiet bereikt. Probeer het later opnieuw.",
        Language.EN: "AI quota exceeded. Please try again later.",
    },
    InsightStatus.UNAVAILABLE: {
        Language.NL: "Kan geen AI-analyse genereren.",
        Language.EN: "Unable to generate AI analysis.",
    },
}
_EMPTY_TEXT: Mapping[Language, str] = {
    Language.NL: "Geen analyse beschikbaar.",
    Language.EN: "No analysis available.",
}


_logger = get_logger("revenue_analysis.insights")


# ---- Internal helpers --------------------------------------------------------


def _create_client() -> OpenAI:
    return OpenAI()


def _model_name() -> str:
    return os.getenv("REVENUE_ANALYSIS_INSIGHT_MODEL") or _DEFAULT_MODEL


def _resolve_concurrency(n_items: int, requested: int | None = None) -> int:
    """Resolve the fan-out width.

    Honors ``requested``, then ``REVENUE_ANALYSIS_INSIGHT_CONCURRENCY``, then
    the default of 10; always capped to ``n_items`` and at least 1.
    """

    width = requested
    if width is None:
        env_val = os.getenv("REVENUE_ANALYSIS_INSIGHT_CONCURRENCY")
        try:
            width = int(env_val) if env_val else None
        except ValueError:
            width = None
    if width is None or width < 1:
        width = _DEFAULT_CONCURRENCY
    return max(1, min(width, n_items))


def _extract_output_text(resp: Any) -> str:
    """Return the text output of a Responses SDK result ("" when absent).

    Prefers ``resp.output_text``; falls back to ``resp.output[0].content[0].text``
    (which some SDK versions expose as an object with a ``value`` string).
    """

    text = getattr(resp, "output_text", None)
    if isinstance(text, str) and text:
        return text
    output = getattr(resp, "output", None)
    if not output:
        return ""
    content = getattr(output[0], "content", None)
    if not content:
        return ""
    txt_obj = getattr(content[0], "text", None)
    if isinstance(txt_obj, str):
        return txt_obj
    value = getattr(txt_obj, "value", None)
    return value if isinstance(value, str) else ""


def _is_quota_error(exc: BaseException) -> bool:
    if isinstance(exc, RateLimitError):
        return True
    for attr in ("status_code", "code", "status"):
        if getattr(exc, attr, None) in (429, "429"):
            return True
    return "429" in str(exc)


def _fallback(revenue_type: str, status: InsightStatus, language: Language) -> RevenueInsight:
    return RevenueInsight(
        revenue_type=revenue_type,
        insight=_FALLBACK_TEXT[status][language],
        status=status,
    )


# ---- Public API ----------------------------------------------------------------


def generate_insight(
    revenue_type: str,
    records: Iterable[FinancialRecord],
    language: Language = Language.NL,
    *,
    client: OpenAI | None = None,
) -> RevenueInsight:
    """Summarize the recent trend of one revenue type in at most two sentences.

    ``client`` defaults to a fresh ``OpenAI()`` per call.
    """

    if not os.getenv("OPENAI_API_KEY"):
        _logger.info("insights:no_credentials revenue_type=%s", revenue_type)
        return _fallback(revenue_type, InsightStatus.NO_CREDENTIALS, language)

    recent = prompting.summarize_recent(records)
    try:
        if client is None:
            client = _create_client()
        resp = client.responses.create(
            model=_model_name(),
            instructions=prompting.build_system_instructions(language),
            input=prompting.build_user_content(revenue_type, recent, language),
        )
        text = _extract_output_text(resp).strip()
    except Exception as e:  # noqa: BLE001 - any API failure degrades to a fallback
        status = InsightStatus.QUOTA_EXCEEDED if _is_quota_error(e) else InsightStatus.UNAVAILABLE
        _logger.warning(
            "insights:failed revenue_type=%s status=%s error=%s",
            revenue_type,
            status,
            e.__class__.__name__,
        )
        return _fallback(revenue_type, status, language)

    if not text:
        return RevenueInsight(revenue_type=revenue_type, insight=_EMPTY_TEXT[language])
    return RevenueInsight(revenue_type=revenue_type, insight=text)


def generate_insights(
    records: Sequence[FinancialRecord],
    language: Language = Language.NL,
    *,
    revenue_types: Sequence[str] | None = None,
    limit: int = _DEFAULT_CATEGORY_LIMIT,
    concurrency: int | None = None,
) -> dict[str, RevenueInsight]:
    """Generate insights for several revenue types concurrently.

    Selection defaults to every distinct type in ``records`` (first-seen
    order) except the ``Unknown`` sentinel; at most ``limit`` types are
    analyzed. Each type is analyzed over all of its records. Results are keyed
    by revenue type in selection order; one type failing never affects the
    others.
    """

    if revenue_types:
        selected = list(dict.fromkeys(revenue_types))
    else:
        selected = [
            t for t in dict.fromkeys(r.revenue_type for r in records) if t != UNKNOWN_CATEGORY
        ]
    selected = selected[:limit]
    if not selected:
        return {}

    by_type: dict[str, list[FinancialRecord]] = {t: [] for t in selected}
    for record in records:
        bucket = by_type.get(record.revenue_type)
        if bucket is not None:
            bucket.append(record)

    width = _resolve_concurrency(len(selected), concurrency)
    _logger.info("insights:start revenue_types=%d concurrency=%d", len(selected), width)

    outcomes = p_map_settled(
        selected,
        lambda t: generate_insight(t, by_type[t], language),
        concurrency=width,
    )

    out: dict[str, RevenueInsight] = {}
    for outcome in outcomes:
        if outcome.ok and outcome.value is not None:
            out[outcome.item] = outcome.value
        else:
            _logger.error(
                "insights:mapper_failed revenue_type=%s error=%s",
                outcome.item,
                outcome.error.__class__.__name__,
            )
            out[outcome.item] = _fallback(outcome.item, InsightStatus.UNAVAILABLE, language)
    return out


__all__ = ["generate_insight", "generate_insights"]
