from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from revenue_analysis.models import UNKNOWN_CATEGORY, ColumnRoles
from revenue_analysis.normalizers import (
    cell_text,
    normalize_row,
    normalize_rows,
    parse_amount,
    parse_date,
)

ROLES = ColumnRoles(date=0, amount=1, id=2, description=3, category=4)


# ---- Dates -------------------------------------------------------------------


def test_spreadsheet_serial_is_converted_to_calendar_date():
    assert parse_date(45000) == dt.date(2023, 3, 15)
    assert parse_date(45000.0) == dt.date(2023, 3, 15)
    assert parse_date(25569) == dt.date(1970, 1, 1)


def test_iso_text_dates_parse_directly():
    assert parse_date("2024-01-15") == dt.date(2024, 1, 15)
    assert parse_date("2024-01-15T10:30:00") == dt.date(2024, 1, 15)
    assert parse_date("2024/01/15") == dt.date(2024, 1, 15)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("31-12-2024", dt.date(2024, 12, 31)),
        ("31/12/2024", dt.date(2024, 12, 31)),
        ("05-02-2024", dt.date(2024, 2, 5)),
        ("1-2-24", dt.date(2024, 2, 1)),
    ],
)
def test_three_part_text_dates_are_day_month_year(text, expected):
    assert parse_date(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "not a date", "31-02-2024", "12/31/2024", "2024-13"])
def test_invalid_dates_yield_none(text):
    assert parse_date(text) is None


def test_datetime_cells_keep_their_date():
    assert parse_date(dt.datetime(2024, 3, 1, 13, 45)) == dt.date(2024, 3, 1)
    assert parse_date(dt.date(2024, 3, 1)) == dt.date(2024, 3, 1)


def test_non_date_types_yield_none():
    assert parse_date(None) is None
    assert parse_date(True) is None


# ---- Amounts -----------------------------------------------------------------


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1.234,56", Decimal("1234.56")),
        ("1,234.56", Decimal("1234.56")),
        ("12,5", Decimal("12.5")),
        ("1234.56", Decimal("1234.56")),
        ("-250", Decimal("-250")),
        ("  99.90 ", Decimal("99.90")),
        ("100 EUR", Decimal("100")),
        ("1.000.000,00", Decimal("1000000.00")),
    ],
)
def test_text_amounts_unify_decimal_separators(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "EUR 100", "-", "."])
def test_unparseable_amounts_are_zero(text):
    assert parse_amount(text) == Decimal(0)


def test_numeric_amounts_pass_through():
    assert parse_amount(5000) == Decimal(5000)
    assert parse_amount(1250.5) == Decimal("1250.5")
    assert parse_amount(Decimal("12.34")) == Decimal("12.34")
    assert parse_amount(float("nan")) == Decimal(0)
    assert parse_amount(None) == Decimal(0)


# ---- Cells -------------------------------------------------------------------


def test_cell_text_renders_whole_floats_without_fraction():
    assert cell_text(2024001.0) == "2024001"
    assert cell_text(12.5) == "12.5"
    assert cell_text(None) == ""
    assert cell_text(dt.date(2024, 1, 2)) == "2024-01-02"


# ---- Rows --------------------------------------------------------------------


def test_normalize_row_builds_record():
    rec = normalize_row(["2024-01-15", "1.250,00", "B-1", "Consultancy", "Dienstverlening"], ROLES, 0)
    assert rec is not None
    assert rec.id == "B-1"
    assert rec.date == dt.date(2024, 1, 15)
    assert rec.amount == Decimal("1250.00")
    assert rec.description == "Consultancy"
    assert rec.revenue_type == "Dienstverlening"
    assert rec.original_category == "Dienstverlening"
    assert rec.sub_category is None


def test_missing_category_uses_unknown_sentinel():
    rec = normalize_row(["2024-01-15", "10", "B-1", "Iets", ""], ROLES, 0)
    assert rec is not None
    assert rec.revenue_type == UNKNOWN_CATEGORY
    assert rec.original_category == ""


def test_missing_id_falls_back_to_row_position():
    roles = ColumnRoles(date=0, amount=1)
    rec = normalize_row(["2024-01-15", "10"], roles, 7)
    assert rec is not None
    assert rec.id == "row-7"
    assert rec.description == ""


def test_short_rows_read_missing_cells_as_empty():
    rec = normalize_row(["2024-01-15", "10"], ROLES, 3)
    assert rec is not None
    assert rec.id == "row-3"
    assert rec.revenue_type == UNKNOWN_CATEGORY


@pytest.mark.parametrize(
    "row",
    [
        ["geen datum", "10", "B-1", "x", "y"],
        ["2024-01-15", "0", "B-1", "x", "y"],
        ["2024-01-15", "0,00", "B-1", "x", "y"],
        ["2024-01-15", "n/a", "B-1", "x", "y"],
    ],
)
def test_rows_without_valid_date_or_nonzero_amount_are_discarded(row):
    assert normalize_row(row, ROLES, 0) is None


def test_normalize_rows_counts_submitted_and_retained():
    rows = [
        ["2024-01-15", "10", "A", "x", "y"],
        ["bad", "10", "B", "x", "y"],
        ["2024-01-16", "0", "C", "x", "y"],
        ["2024-01-17", "-5", "D", "x", "y"],
    ]
    result = normalize_rows(rows, ROLES)
    assert [r.id for r in result.records] == ["A", "D"]
    assert result.submitted == 4
    assert result.retained == 2
    assert result.discarded == 2


def test_synthetic_ids_use_position_among_all_data_rows():
    roles = ColumnRoles(date=0, amount=1)
    result = normalize_rows([["bad", "1"], ["2024-01-01", "1"]], roles)
    assert [r.id for r in result.records] == ["row-1"]
