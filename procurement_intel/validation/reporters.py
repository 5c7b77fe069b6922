"""Validation report rendering for operators.

Reports wrap the outcomes of one table's expectation suite with the row
count and gate status, rendered as a rich table, JSON or a one-line summary.
"""

import json
from datetime import datetime
from pathlib import Path

import pandas as pd
from rich.console import Console
from rich.table import Table

from procurement_intel.validation.expectations import (
    ExpectationOutcome,
    classify_outcomes,
    evaluate_suite,
)
from procurement_intel.validation.suites import SuiteConfig

type ReportFormat = str  # "table" | "json" | "summary"

console = Console()


def build_validation_report(
    table: str,
    df: pd.DataFrame,
    expectations: SuiteConfig | None = None,
    output_format: ReportFormat = "table",
    strict: bool = False,
) -> str:
    """Evaluate a table's suite and render the outcome in ``output_format``."""
    outcomes = evaluate_suite(table, df, suite=expectations)
    header = {
        "table": str(table),
        "rows": len(df),
        "status": classify_outcomes(outcomes, strict=strict),
        "generated_at": datetime.now().isoformat(timespec="seconds"),
    }

    match output_format:
        case "json":
            return _to_json(header, outcomes)
        case "summary":
            return _to_summary(header, outcomes)
        case "table" | _:
            return _to_table(header, outcomes)


def _to_json(header: dict, outcomes: list[ExpectationOutcome]) -> str:
    report = {
        **header,
        "total": len(outcomes),
        "passed": sum(1 for o in outcomes if o["success"]),
        "results": outcomes,
    }
    return json.dumps(report, indent=2, default=str)


def _to_summary(header: dict, outcomes: list[ExpectationOutcome]) -> str:
    passed = sum(1 for o in outcomes if o["success"])
    lines = [f"[{header['table']}] {header['rows']} rows, {passed}/{len(outcomes)} passed ({header['status']})"]
    lines.extend(
        f"  FAIL: {o['expectation']} {o['kwargs']} (unexpected: {o['unexpected_count']})"
        for o in outcomes
        if not o["success"]
    )
    return "\n".join(lines)


def _to_table(header: dict, outcomes: list[ExpectationOutcome]) -> str:
    report = Table(title=f"{header['table']} ({header['rows']:,} rows): {header['status']}")
    report.add_column("Expectation", style="cyan")
    report.add_column("Arguments")
    report.add_column("Status", style="bold")
    report.add_column("Unexpected", justify="right")

    for o in outcomes:
        report.add_row(
            str(o["expectation"]),
            str(o["kwargs"]),
            "[green]PASS[/green]" if o["success"] else "[red]FAIL[/red]",
            str(o["unexpected_count"]),
        )

    buf = Console(file=None, force_terminal=False, width=120)
    with buf.capture() as capture:
        buf.print(report)
    return capture.get()


def save_report(
    report: str,
    output_dir: Path,
    table: str,
    fmt: ReportFormat = "json",
) -> Path:
    """Persist a validation report to disk."""
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    suffix = "json" if fmt == "json" else "txt"

    path = output_dir / f"{table}_{timestamp}.{suffix}"
    path.write_text(report)
    console.print(f"  Report saved: {path}")
    return path
