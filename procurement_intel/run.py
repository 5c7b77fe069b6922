"""Command-line runner that stages exports, validates them and runs the procurement pipeline."""

import argparse
import logging
import sys
import tomllib
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from procurement_intel.config import PROJECT_ROOT, get_env_config, load_pipeline_config
from procurement_intel.domains import procurement
from procurement_intel.domains.procurement.audit import PipelineRunSummary
from procurement_intel.domains.procurement.models import Table as StoreTable
from procurement_intel.errors import ProcurementError
from procurement_intel.store import open_store
from procurement_intel.validation import build_validation_report, run_table_expectations, save_report

console = Console()

REPORT_FORMATS = ("table", "json", "summary")


def load_config() -> dict:
    config_path = PROJECT_ROOT / "procurement.yaml"
    if config_path.exists():
        import yaml
        with open(config_path) as f:
            return yaml.safe_load(f) or {}

    # Fall back to pyproject.toml metadata
    return get_env_config()


def validate_raw(store, report_dir: Path | None, report_format: str) -> bool:
    raw = store.read_all(StoreTable.RAW)
    result = procurement.validate(raw)
    expectations = run_table_expectations(StoreTable.RAW, raw)

    table = Table(title="Staging Validation")
    table.add_column("Check")
    table.add_column("Valid")
    table.add_column("Details")

    schema_ok = result["status"] == "ok"
    table.add_row(
        "pandera schema",
        "[green]✓[/green]" if schema_ok else "[red]✗[/red]",
        result.get("message", f"{result.get('row_count', 0)} rows"),
    )
    table.add_row(
        "expectations",
        "[green]✓[/green]" if expectations["status"] == "passed" else "[yellow]![/yellow]",
        "; ".join(expectations["failed_expectations"]) or "OK",
    )
    console.print(table)

    if report_dir is not None:
        report = build_validation_report(StoreTable.RAW, raw, output_format=report_format)
        save_report(report, report_dir, StoreTable.RAW, fmt="json" if report_format == "json" else "txt")

    return schema_ok


def print_summary(summary: PipelineRunSummary) -> None:
    table = Table(title=f"Pipeline Run {summary.run_id}")
    table.add_column("Metric")
    table.add_column("Rows", justify="right")

    table.add_row("Staging", f"{summary.staging_rows:,}")
    table.add_row("Clean", f"{summary.clean_rows:,}")
    table.add_row("Rejected", f"{summary.rejected_rows:,}")
    table.add_row("Fact", f"{summary.fact_rows:,}")
    unresolved_style = "yellow" if summary.unresolved_vendor_rows else "green"
    table.add_row("Unresolved vendors", f"[{unresolved_style}]{summary.unresolved_vendor_rows:,}[/{unresolved_style}]")
    table.add_row("Spend outliers", f"{summary.outlier_rows:,}")

    console.print(table)
    console.print(f"[green]{summary.description}[/green]")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run the procurement intelligence pipeline")
    parser.add_argument("--env", type=str, default=None, help="Configuration environment")
    parser.add_argument("--store", type=Path, default=None, help="Override the store root directory")
    parser.add_argument("--init", action="store_true", help="Provision the store and exit")
    parser.add_argument("--load", type=Path, default=None, help="Stage an ERP export before running")
    parser.add_argument("--validate", action="store_true", help="Only validate staged data, don't run")
    parser.add_argument("--report-dir", type=Path, default=None, help="Write validation reports here")
    parser.add_argument("--report-format", choices=REPORT_FORMATS, default="table")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    try:
        overrides = load_config()
        if args.store is not None:
            overrides = {**overrides, "store_root": str(args.store)}
        config = load_pipeline_config(args.env, overrides)
        store = open_store(config.store)

        if args.init:
            store.initialize()
            console.print(f"[green]Store initialized at {config.store.root}[/green]")
            return

        if args.load is not None:
            console.print(f"[bold]Staging export {args.load}...[/bold]")
            procurement.stage_raw_export(store, args.load)

        if args.validate:
            if not validate_raw(store, args.report_dir, args.report_format):
                sys.exit(1)
            return

        console.print(f"[bold]Running procurement pipeline ({config.env})...[/bold]")
        summary = procurement.run(store, config)
    except (ProcurementError, ValueError, tomllib.TOMLDecodeError) as exc:
        console.print(f"[red]Pipeline failed: {exc}[/red]")
        sys.exit(1)

    print_summary(summary)


if __name__ == "__main__":
    main()
