from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook

from revenue_analysis.ingest.exports import (
    RULES_SHEET,
    TEMPLATE_HEADER,
    TEMPLATE_RULES_SHEET,
    TEMPLATE_SHEET,
    write_rules,
    write_template,
)
from revenue_analysis.ingest.readers import read_rows
from revenue_analysis.models import LookupRule
from revenue_analysis.rules import DEFAULT_LOOKUP_RULES, load_rules_file


# ---- Readers -----------------------------------------------------------------


@pytest.mark.parametrize("delimiter", [",", ";", "\t", "|"])
def test_csv_delimiter_is_sniffed(tmp_path: Path, delimiter: str):
    p = tmp_path / "in.csv"
    lines = [["Datum", "Bedrag", "Omschrijving"], ["2024-01-15", "100", "Abonnement"]]
    p.write_text("\n".join(delimiter.join(r) for r in lines) + "\n", encoding="utf-8")
    assert read_rows(p) == lines


def test_csv_with_bom_and_blank_lines(tmp_path: Path):
    p = tmp_path / "in.csv"
    p.write_text("Datum;Bedrag\n\n2024-01-15;1.250,00\n;\n", encoding="utf-8-sig")
    assert read_rows(p) == [["Datum", "Bedrag"], ["2024-01-15", "1.250,00"]]


def test_xlsx_reads_first_sheet_values(tmp_path: Path):
    p = tmp_path / "in.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.append(["Datum", "Bedrag", "Omschrijving"])
    ws.append([dt.datetime(2024, 1, 15), 5000, "SaaS abonnement"])
    ws.append([None, None, None])
    ws.append([45000, 12.5, "Training"])
    wb.create_sheet("Other").append(["ignored"])
    wb.save(p)

    rows = read_rows(p)
    assert rows[0] == ["Datum", "Bedrag", "Omschrijving"]
    assert rows[1] == [dt.datetime(2024, 1, 15), 5000, "SaaS abonnement"]
    assert rows[2] == [45000, 12.5, "Training"]
    assert len(rows) == 3


def test_unsupported_suffix_raises(tmp_path: Path):
    p = tmp_path / "in.json"
    p.write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError, match="Unsupported file type"):
        read_rows(p)


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        read_rows(tmp_path / "nope.csv")


# ---- Exports -----------------------------------------------------------------


def test_template_workbook_layout(tmp_path: Path):
    p = write_template(tmp_path / "template.xlsx", DEFAULT_LOOKUP_RULES)
    wb = load_workbook(p)
    assert wb.sheetnames == [TEMPLATE_SHEET, TEMPLATE_RULES_SHEET]

    data = wb[TEMPLATE_SHEET]
    rows = list(data.iter_rows(values_only=True))
    assert rows[0] == TEMPLATE_HEADER
    assert len(rows) == 5
    assert rows[1][6] == 5000
    assert data.column_dimensions["A"].width == 20

    ref = wb[TEMPLATE_RULES_SHEET]
    ref_rows = list(ref.iter_rows(values_only=True))
    assert ref_rows[0] == ("Hoofdsoort", "Subcategorie", "Zoekterm")
    assert len(ref_rows) == 1 + len(DEFAULT_LOOKUP_RULES)
    assert [ref.column_dimensions[c].width for c in "ABC"] == [30, 30, 40]


def test_rules_export_round_trips_through_rule_loader(tmp_path: Path):
    rules = [
        LookupRule(main_category="Licenties", sub_category="", search_term="licentie"),
        LookupRule(main_category="Diensten", sub_category="Uren", search_term="consultancy"),
    ]
    p = write_rules(tmp_path / "rules.xlsx", rules)

    wb = load_workbook(p)
    assert wb.sheetnames == [RULES_SHEET]
    assert [wb[RULES_SHEET].column_dimensions[c].width for c in "ABC"] == [30, 30, 30]
    assert load_rules_file(p) == rules


def test_template_data_sheet_is_readable_input(tmp_path: Path):
    from revenue_analysis.api import ingest_file

    p = write_template(tmp_path / "template.xlsx", DEFAULT_LOOKUP_RULES)
    result = ingest_file(p)
    assert result.submitted == 4
    assert result.retained == 4
    assert [r.id for r in result.records] == ["2024001", "2024002", "2024003", "2024004"]
