"""CLI for the ``expense_insights`` package.

Each subcommand has a plain handler (``cmd_*``) that performs file I/O,
delegates to the pure library functions, prints results to stdout and returns
a process exit code. Diagnostics go to stderr. The Typer app at the bottom
wires handlers to commands; the root callback loads a local ``.env`` with
``python-dotenv`` and configures logging before any command runs.
"""

from __future__ import annotations

import csv
import json
import sys
from dataclasses import asdict
from decimal import Decimal
from io import StringIO
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv

from .config import load_settings, normalize_currency
from .logging_setup import configure_logging, get_logger

_logger = get_logger("expense_insights.cli")


# ---- Small module-level helpers ---------------------------------------------


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _dump_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=_json_default, ensure_ascii=False))


def _resolve_currency(currency: str | None) -> str:
    """Explicit ``--currency`` wins; otherwise the configured default."""

    if currency:
        return normalize_currency(currency)
    return load_settings().default_currency


def _read_text(text_path: str) -> str:
    if text_path == "-":
        return sys.stdin.read()
    return Path(text_path).read_text(encoding="utf-8")


_INPUT_ERRORS = (
    FileNotFoundError,
    PermissionError,
    IsADirectoryError,
    UnicodeDecodeError,
    ValueError,
    csv.Error,
)


def _report(err: Exception, path: str | Path | None = None) -> int:
    if isinstance(err, FileNotFoundError):
        print(f"Error: File not found: {path}", file=sys.stderr)
    elif isinstance(err, PermissionError):
        print(f"Error: Permission denied: {path}", file=sys.stderr)
    else:
        print(f"Error: {err}", file=sys.stderr)
    return 1


# ---- Command handlers --------------------------------------------------------


def cmd_detect(
    text_path: str,
    *,
    currency: str | None = None,
    output_format: str = "json",
    categories_path: str | Path | None = None,
) -> int:
    """Detect candidate transactions in an extracted-text file.

    ``text_path`` of ``-`` reads standard input. Output is a JSON list or CSV
    with columns ``date, amount, currency, description``. With a categories
    file, each row also carries a keyword-based ``suggested_category``.
    """

    from .categorize import suggest_categories
    from .detection import detect_transactions
    from .loaders import load_categories

    if output_format not in {"json", "csv"}:
        print(f"Error: unsupported format: {output_format!r}", file=sys.stderr)
        return 1
    path: str | Path = text_path
    try:
        default_currency = _resolve_currency(currency)
        text = _read_text(text_path)
        categories = []
        if categories_path is not None:
            path = categories_path
            categories = load_categories(categories_path)
    except _INPUT_ERRORS as e:
        return _report(e, path)

    candidates = detect_transactions(text, default_currency=default_currency)
    _logger.info("detect: path=%s candidates=%d", text_path, len(candidates))
    rows = [c.to_dict() for c in candidates]
    if categories_path is not None:
        for row, suggested in zip(rows, suggest_categories(candidates, categories), strict=True):
            row["suggested_category"] = suggested

    if output_format == "json":
        _dump_json(rows)
        return 0

    columns = ["date", "amount", "currency", "description"]
    if categories_path is not None:
        columns.append("suggested_category")
    with StringIO() as buf:
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(columns)
        for c, row in zip(candidates, rows, strict=True):
            row["amount"] = f"{c.amount:.2f}"
            writer.writerow(["" if row[k] is None else row[k] for k in columns])
        sys.stdout.write(buf.getvalue())
    return 0


def cmd_recurring(history_path: str | Path, *, only_recurring: bool = False) -> int:
    """Print the history with a ``recurring_suggestion`` flag per transaction."""

    from .loaders import load_transactions
    from .recurring import attach_recurring_suggestions, find_recurring_groups

    try:
        ledger = load_transactions(history_path)
    except _INPUT_ERRORS as e:
        return _report(e, history_path)

    views = [t.for_detection() for t in ledger]
    for group in find_recurring_groups(views):
        _logger.info(
            "recurring:group key=%r interval=%s members=%d median=%s",
            group.key,
            group.interval,
            len(group.members),
            group.median_amount,
        )

    annotated = [asdict(s) for s in attach_recurring_suggestions(views)]
    if only_recurring:
        annotated = [row for row in annotated if row["recurring_suggestion"]]
    _dump_json(annotated)
    return 0


def cmd_insights(
    history_path: str | Path,
    *,
    month: str,
    budgets_path: str | Path | None = None,
    currency: str | None = None,
) -> int:
    """Print the monthly insight payload as JSON."""

    from .insights import aggregate_insight_data
    from .loaders import load_budgets, load_transactions

    path: str | Path | None = history_path
    try:
        reporting_currency = _resolve_currency(currency)
        ledger = load_transactions(history_path)
        budgets = []
        if budgets_path is not None:
            path = budgets_path
            budgets = load_budgets(budgets_path)
        payload = aggregate_insight_data(
            ledger, month=month, currency=reporting_currency, budgets=budgets
        )
    except _INPUT_ERRORS as e:
        return _report(e, path)

    _dump_json(payload.to_dict())
    return 0


def cmd_export(
    history_path: str | Path,
    *,
    date_from: str | None = None,
    date_to: str | None = None,
    category: str | None = None,
    output: str | Path | None = None,
) -> int:
    """Write the filtered history as CSV to ``output`` (stdout when omitted)."""

    from .export import export_filename, render_transactions_csv
    from .loaders import load_transactions

    try:
        ledger = load_transactions(history_path)
    except _INPUT_ERRORS as e:
        return _report(e, history_path)

    text = render_transactions_csv(
        ledger, date_from=date_from, date_to=date_to, category=category
    )
    if output is None:
        sys.stdout.write(text)
        return 0

    target = Path(output)
    if target.is_dir():
        target = target / export_filename()
    try:
        target.write_text(text, encoding="utf-8")
    except OSError as e:
        return _report(e, target)
    _logger.info("export: wrote %s", target)
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Detect transactions in extracted receipt/statement text, flag recurring "
        "expenses, and summarize monthly spending. Loads a local .env first."
    ),
)


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    # Existing environment variables win over .env values.
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        level = load_settings().log_level
    except ValueError:
        level = None  # reported by the command that needs the currency
    configure_logging(level)


@app.command("detect")
def detect_cmd(
    text_path: Annotated[str, typer.Argument(help="Extracted text file, or '-' for stdin.")],
    currency: Annotated[
        str | None, typer.Option(help="Fallback currency code (default from env or MYR).")
    ] = None,
    output_format: Annotated[str, typer.Option("--format", help="json or csv.")] = "json",
    categories: Annotated[
        Path | None,
        typer.Option(help="Categories file (.csv or .json) for keyword-based suggestions."),
    ] = None,
) -> None:
    """Detect candidate transactions in extracted document text."""

    _exit(
        cmd_detect(
            text_path,
            currency=currency,
            output_format=output_format,
            categories_path=categories,
        )
    )


@app.command("recurring")
def recurring_cmd(
    history_path: Annotated[Path, typer.Argument(help="Transaction history (.csv or .json).")],
    only_recurring: Annotated[
        bool, typer.Option("--only-recurring", help="Print flagged transactions only.")
    ] = False,
) -> None:
    """Flag transactions that look like recurring expenses."""

    _exit(cmd_recurring(history_path, only_recurring=only_recurring))


@app.command("insights")
def insights_cmd(
    history_path: Annotated[Path, typer.Argument(help="Transaction history (.csv or .json).")],
    month: Annotated[str, typer.Option(help="Target month, YYYY-MM.")],
    budgets: Annotated[
        Path | None, typer.Option(help="Optional budgets file (.csv or .json).")
    ] = None,
    currency: Annotated[str | None, typer.Option(help="Reporting currency label.")] = None,
) -> None:
    """Summarize one month's spending by category against budgets."""

    _exit(cmd_insights(history_path, month=month, budgets_path=budgets, currency=currency))


@app.command("export")
def export_cmd(
    history_path: Annotated[Path, typer.Argument(help="Transaction history (.csv or .json).")],
    date_from: Annotated[str | None, typer.Option(help="Inclusive start date, YYYY-MM-DD.")] = None,
    date_to: Annotated[str | None, typer.Option(help="Inclusive end date, YYYY-MM-DD.")] = None,
    category: Annotated[str | None, typer.Option(help="Exact confirmed category.")] = None,
    output: Annotated[
        Path | None, typer.Option(help="Output file or directory (stdout when omitted).")
    ] = None,
) -> None:
    """Export transactions as CSV."""

    _exit(
        cmd_export(
            history_path,
            date_from=date_from,
            date_to=date_to,
            category=category,
            output=output,
        )
    )


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()


__all__ = ["app", "cmd_detect", "cmd_export", "cmd_insights", "cmd_recurring", "main"]
