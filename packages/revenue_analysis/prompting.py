"""Prompt construction for revenue-trend insights.

Builds:
- A compact ``YYYY-MM-DD: amount`` summary of the most recent points of one
  revenue type.
- Localized system instructions and user content for the Responses API.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import FinancialRecord, Language

RECENT_POINTS: int = 6


def summarize_recent(records: Iterable[FinancialRecord], *, points: int = RECENT_POINTS) -> str:
    """Return the last ``points`` records by date as ``"date: amount"`` pairs.

    Records are sorted ascending by date first; ties keep input order.
    """

    ordered = sorted(records, key=lambda r: r.date)
    recent = ordered[-points:] if points > 0 else []
    return ", ".join(f"{r.date.isoformat()}: {r.amount}" for r in recent)


def build_system_instructions(language: Language) -> str:
    if language is Language.NL:
        return (
            "Je bent een financieel analist. Antwoord zakelijk en feitelijk, "
            "in het Nederlands, zonder introductie."
        )
    return (
        "You are a financial analyst. Answer in a professional, factual tone, "
        "in English, without an introduction."
    )


def build_user_content(revenue_type: str, recent: str, language: Language) -> str:
    """Return the user prompt asking for a short trend summary."""

    if language is Language.NL:
        return (
            f"Analyseer deze omzetreeks voor '{revenue_type}': [{recent}].\n"
            "Geef een zakelijke, feitelijke samenvatting van de trend (groei/krimp) of anomalie.\n"
            "Focus op of de omzet stabiel is, groeit of daalt.\n"
            "Maximaal 2 zinnen. Maximaal 15 woorden. Geen introductie."
        )
    return (
        f"Analyze this revenue series for '{revenue_type}': [{recent}].\n"
        "Provide a professional, factual summary of the trend (growth/decline) or anomaly.\n"
        "Focus on whether revenue is stable, growing, or declining.\n"
        "Max 2 sentences. Max 15 words. No introduction."
    )


__all__ = [
    "RECENT_POINTS",
    "summarize_recent",
    "build_system_instructions",
    "build_user_content",
]
