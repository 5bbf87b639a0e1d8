from __future__ import annotations

import datetime as dt
from decimal import Decimal

from revenue_analysis.categorize import classify, match_rule
from revenue_analysis.models import (
    UNCLASSIFIED_SUBCATEGORY,
    UNKNOWN_CATEGORY,
    FinancialRecord,
    LookupRule,
)
from revenue_analysis.rules import DEFAULT_LOOKUP_RULES


def _rec(
    rid: str,
    description: str,
    original_category: str = "",
    amount: str = "100",
) -> FinancialRecord:
    return FinancialRecord(
        id=rid,
        date=dt.date(2024, 1, 1),
        revenue_type=original_category or UNKNOWN_CATEGORY,
        description=description,
        amount=Decimal(amount),
        original_category=original_category,
    )


def test_rule_matches_description_case_insensitively():
    rules = [LookupRule(main_category="Licenties", sub_category="SW", search_term="licentie")]
    result = classify([_rec("1", "Jaarlijkse LICENTIE")], rules)
    (rec,) = result.records
    assert rec.revenue_type == "Licenties"
    assert rec.sub_category == "SW"
    assert result.unmatched == ()


def test_rule_matches_original_category_text():
    rules = [LookupRule(main_category="Verkoop", search_term="8000")]
    (rec,) = classify([_rec("1", "Klant A", original_category="8000")], rules).records
    assert rec.revenue_type == "Verkoop"
    assert rec.sub_category == ""


def test_first_matching_rule_wins():
    rules = [
        LookupRule(main_category="First", search_term="project"),
        LookupRule(main_category="Second", search_term="project x"),
    ]
    (rec,) = classify([_rec("1", "Project X")], rules).records
    assert rec.revenue_type == "First"

    (rec,) = classify([_rec("1", "Project X")], list(reversed(rules))).records
    assert rec.revenue_type == "Second"


def test_unmatched_records_get_sentinels_and_audit_entries():
    records = [
        _rec("1", "Mystery payment"),
        _rec("2", "", original_category="Overig"),
        _rec("3", "Mystery payment"),
        _rec("4", ""),
    ]
    result = classify(records, [LookupRule(main_category="X", search_term="zzz")])
    assert all(r.revenue_type == UNKNOWN_CATEGORY for r in result.records)
    assert all(r.sub_category == UNCLASSIFIED_SUBCATEGORY for r in result.records)
    # Deduplicated, first-seen order; a record with no text adds nothing.
    assert result.unmatched == ("Mystery payment", "Overig")


def test_unmatched_prefers_description_over_original_category():
    result = classify([_rec("1", "Iets", original_category="Overig")], [])
    assert result.unmatched == ("Iets",)


def test_classify_preserves_order_and_other_fields():
    records = [_rec("a", "Maandelijks abonnement", amount="5"), _rec("b", "Hardware levering")]
    result = classify(records, DEFAULT_LOOKUP_RULES)
    assert [r.id for r in result.records] == ["a", "b"]
    assert [r.revenue_type for r in result.records] == [
        "Terugkerende inkomsten",
        "Productverkoop",
    ]
    assert result.records[0].amount == Decimal("5")
    assert result.records[0].description == "Maandelijks abonnement"


def test_classify_is_idempotent():
    records = [_rec("1", "Consultancy uren"), _rec("2", "Onbekende post")]
    once = classify(records, DEFAULT_LOOKUP_RULES)
    twice = classify(once.records, DEFAULT_LOOKUP_RULES)
    assert twice.records == once.records
    assert twice.unmatched == once.unmatched


def test_empty_rule_list_leaves_everything_unclassified():
    result = classify([_rec("1", "Abonnement")], [])
    assert result.records[0].revenue_type == UNKNOWN_CATEGORY
    assert result.unmatched == ("Abonnement",)


def test_match_rule_returns_none_without_match():
    assert match_rule(_rec("1", "niets"), DEFAULT_LOOKUP_RULES) is None
    rule = match_rule(_rec("1", "Softwarelicenties Q1"), DEFAULT_LOOKUP_RULES)
    assert rule is not None
    assert rule.main_category == "Licentie-inkomsten"
