"""CLI for the ``revenue_analysis`` package.

This module exposes callable command handlers (``cmd_classify``,
``cmd_anomalies``, ...) and a Typer-based console interface around them.
Environment variables (notably ``OPENAI_API_KEY``) are loaded from a local
``.env`` using ``python-dotenv`` before any command runs. Business logic lives
in ``revenue_analysis.api`` and related modules; handlers only load input,
call the API and print tab-separated results.
"""

from __future__ import annotations

import csv
import datetime as dt
import sys
import zipfile
from collections.abc import Callable, Sequence
from os import PathLike
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from openpyxl.utils.exceptions import InvalidFileException

from .logging_setup import configure_logging
from .models import Language, LookupRule, PipelineResult
from .periods import DateRangeOption
from .schema import SchemaError

# ---- Input loading -----------------------------------------------------------


def _load(
    path: str | PathLike[str], rules_path: str | PathLike[str] | None
) -> tuple[Sequence[LookupRule], PipelineResult]:
    """Ingest ``path`` with the default rules, then apply ``rules_path`` if given."""

    from .api import ingest_file, replace_rules
    from .ingest.readers import read_rows
    from .rules import DEFAULT_LOOKUP_RULES

    result = ingest_file(path, DEFAULT_LOOKUP_RULES)
    if rules_path is None:
        return DEFAULT_LOOKUP_RULES, result
    return replace_rules(result, read_rows(rules_path), DEFAULT_LOOKUP_RULES)


def _guarded(fn: Callable[[], None]) -> int:
    """Run ``fn`` and map input failures to an ``Error: ...`` line and exit code 1."""

    try:
        fn()
    except SchemaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename or e}", file=sys.stderr)
        return 1
    except PermissionError as e:
        print(f"Error: Permission denied: {e.filename or e}", file=sys.stderr)
        return 1
    except (csv.Error, InvalidFileException, zipfile.BadZipFile, UnicodeDecodeError) as e:
        print(f"Error: Failed to read file: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


# ---- Command handlers --------------------------------------------------------


def cmd_classify(
    path: str | PathLike[str], *, rules_path: str | PathLike[str] | None = None
) -> int:
    """Print every classified record followed by a diagnostics line."""

    def _run() -> None:
        _rules, result = _load(path, rules_path)
        for r in result.records:
            print(
                f"{r.id}\t{r.date.isoformat()}\t{r.amount}\t"
                f"{r.revenue_type}\t{r.sub_category or ''}"
            )
        print(
            f"records={len(result.records)} submitted={result.submitted} "
            f"discarded={result.submitted - result.retained} unmatched={len(result.unmatched)}"
        )

    return _guarded(_run)


def cmd_unmatched(
    path: str | PathLike[str], *, rules_path: str | PathLike[str] | None = None
) -> int:
    def _run() -> None:
        _rules, result = _load(path, rules_path)
        for item in result.unmatched:
            print(item)

    return _guarded(_run)


def cmd_anomalies(
    path: str | PathLike[str],
    *,
    rules_path: str | PathLike[str] | None = None,
    period: DateRangeOption = DateRangeOption.MONTHS_6,
    start: dt.date | None = None,
    end: dt.date | None = None,
    revenue_types: Sequence[str] | None = None,
    language: Language = Language.NL,
    today: dt.date | None = None,
) -> int:
    """Print anomalies for the selected period, most recent first."""

    from .api import analyze

    def _run() -> None:
        _rules, result = _load(path, rules_path)
        anomalies = analyze(
            result.records,
            option=period,
            today=today,
            custom_start=start,
            custom_end=end,
            revenue_types=revenue_types,
            language=language,
        )
        for a in anomalies:
            print(
                f"{a.date.isoformat()}\t{a.id}\t{a.revenue_type}\t{a.amount}\t"
                f"{a.z_score:.2f}\t{a.severity}\t{a.description}"
            )

    return _guarded(_run)


def cmd_trends(
    path: str | PathLike[str], *, rules_path: str | PathLike[str] | None = None
) -> int:
    from .periods import aggregate_monthly

    def _run() -> None:
        _rules, result = _load(path, rules_path)
        for total in aggregate_monthly(result.records):
            print(f"{total.month}\t{total.revenue_type}\t{total.amount}")

    return _guarded(_run)


def cmd_insights(
    path: str | PathLike[str],
    *,
    rules_path: str | PathLike[str] | None = None,
    revenue_types: Sequence[str] | None = None,
    language: Language = Language.NL,
) -> int:
    """Print one insight per revenue type as ``type<TAB>status<TAB>text``."""

    from .insights import generate_insights

    def _run() -> None:
        _rules, result = _load(path, rules_path)
        insights = generate_insights(result.records, language, revenue_types=revenue_types)
        for revenue_type, insight in insights.items():
            print(f"{revenue_type}\t{insight.status}\t{insight.insight}")

    return _guarded(_run)


def cmd_template(out: str | PathLike[str]) -> int:
    from .ingest.exports import write_template
    from .rules import DEFAULT_LOOKUP_RULES

    def _run() -> None:
        print(f"Wrote {write_template(out, DEFAULT_LOOKUP_RULES)}")

    return _guarded(_run)


def cmd_export_rules(
    out: str | PathLike[str], *, rules_path: str | PathLike[str] | None = None
) -> int:
    """Write the active rule set (defaults, or ``rules_path`` when it parses)."""

    from .ingest.exports import write_rules
    from .rules import DEFAULT_LOOKUP_RULES, load_rules_file

    def _run() -> None:
        rules: Sequence[LookupRule] = DEFAULT_LOOKUP_RULES
        if rules_path is not None:
            rules = load_rules_file(rules_path) or DEFAULT_LOOKUP_RULES
        print(f"Wrote {write_rules(out, rules)}")

    return _guarded(_run)


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Revenue trend analysis: classify transactions from a CSV/XLSX export, "
        "flag anomalies and summarize trends. Loads OPENAI_API_KEY from a local .env."
    ),
)

FileArg = Annotated[Path, typer.Argument(help="CSV or XLSX transaction file.", dir_okay=False)]
OutArg = Annotated[Path, typer.Argument(help="Output .xlsx path.", dir_okay=False)]
RulesOpt = Annotated[
    Path | None,
    typer.Option("--rules", help="CSV/XLSX lookup-rule file replacing the default rules."),
]
TypesOpt = Annotated[
    list[str] | None,
    typer.Option("--type", help="Revenue type to include (repeatable; default: all)."),
]
LanguageOpt = Annotated[Language, typer.Option("--language", help="Output language.")]
DateOpt = Annotated[dt.datetime | None, typer.Option(formats=["%Y-%m-%d"], help="YYYY-MM-DD.")]


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


def _as_date(value: dt.datetime | None) -> dt.date | None:
    return value.date() if value is not None else None


@app.command("classify")
def classify_cmd(file: FileArg, rules: RulesOpt = None) -> None:
    """Classify records and print them with a diagnostics line."""

    _exit(cmd_classify(file, rules_path=rules))


@app.command("unmatched")
def unmatched_cmd(file: FileArg, rules: RulesOpt = None) -> None:
    """Print descriptions no lookup rule matched."""

    _exit(cmd_unmatched(file, rules_path=rules))


@app.command("anomalies")
def anomalies_cmd(
    file: FileArg,
    rules: RulesOpt = None,
    period: Annotated[
        DateRangeOption, typer.Option("--period", help="Analysis window.")
    ] = DateRangeOption.MONTHS_6,
    start: DateOpt = None,
    end: DateOpt = None,
    revenue_type: TypesOpt = None,
    language: LanguageOpt = Language.NL,
    today: DateOpt = None,
) -> None:
    """Print z-score anomalies within the selected period."""

    _exit(
        cmd_anomalies(
            file,
            rules_path=rules,
            period=period,
            start=_as_date(start),
            end=_as_date(end),
            revenue_types=revenue_type,
            language=language,
            today=_as_date(today),
        )
    )


@app.command("trends")
def trends_cmd(file: FileArg, rules: RulesOpt = None) -> None:
    """Print monthly totals per revenue type."""

    _exit(cmd_trends(file, rules_path=rules))


@app.command("insights")
def insights_cmd(
    file: FileArg,
    rules: RulesOpt = None,
    revenue_type: TypesOpt = None,
    language: LanguageOpt = Language.NL,
) -> None:
    """Print a short AI trend insight per revenue type."""

    _exit(cmd_insights(file, rules_path=rules, revenue_types=revenue_type, language=language))


@app.command("template")
def template_cmd(out: OutArg) -> None:
    """Write the input template workbook."""

    _exit(cmd_template(out))


@app.command("export-rules")
def export_rules_cmd(out: OutArg, rules: RulesOpt = None) -> None:
    """Write the active lookup rules as a workbook."""

    _exit(cmd_export_rules(out, rules_path=rules))


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    # override=False keeps variables already set in the environment
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
