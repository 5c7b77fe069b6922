"""Table-level expectation runners using Great Expectations."""

import great_expectations as gx
import pandas as pd
from great_expectations.core import ExpectationValidationResult
from great_expectations.data_context import AbstractDataContext
from great_expectations.expectations import Expectation
from rich.console import Console

from procurement_intel.validation.context import get_data_context, get_table_batch
from procurement_intel.validation.suites import ExpectationConfig, SuiteConfig, build_suite_for_table

type ValidationStatus = str  # "passed" | "warning" | "failed"
type TableName = str
type ExpectationOutcome = dict[str, str | bool | int]

# Failures tolerated as a warning outside strict mode
WARNING_FAILURE_LIMIT = 2

console = Console()


def build_expectation(config: ExpectationConfig) -> Expectation:
    """Instantiate a GE expectation class from its snake_case suite entry."""
    class_name = "".join(part.capitalize() for part in str(config["expectation_type"]).split("_"))
    expectation_class = getattr(gx.expectations, class_name)
    return expectation_class(**config.get("kwargs", {}))


def _outcome(config: ExpectationConfig, result: ExpectationValidationResult) -> ExpectationOutcome:
    return {
        "expectation": result.expectation_config.type,
        "kwargs": str(config.get("kwargs", {})),
        "success": bool(result.success),
        "observed_value": str(result.result.get("observed_value", "")),
        "unexpected_count": result.result.get("unexpected_count", 0),
        "element_count": result.result.get("element_count", 0),
    }


def evaluate_suite(
    table: TableName,
    df: pd.DataFrame,
    suite: SuiteConfig | None = None,
    context: AbstractDataContext | None = None,
) -> list[ExpectationOutcome]:
    """Validate ``df`` against a suite and return one outcome per expectation.

    Expectations GE does not know are reported as failures rather than
    skipped, so a typo in a suite cannot silently widen a gate.
    """
    batch = get_table_batch(context or get_data_context(), table, df)
    suite = suite if suite is not None else build_suite_for_table(table)

    outcomes = []
    for config in suite:
        try:
            expectation = build_expectation(config)
        except AttributeError:
            console.print(f"  [yellow]Unknown expectation: {config['expectation_type']}[/yellow]")
            outcomes.append({
                "expectation": config["expectation_type"],
                "kwargs": str(config.get("kwargs", {})),
                "success": False,
                "observed_value": "not supported",
                "unexpected_count": -1,
                "element_count": len(df),
            })
            continue
        outcomes.append(_outcome(config, batch.validate(expectation)))

    return outcomes


def classify_outcomes(outcomes: list[ExpectationOutcome], strict: bool = False) -> ValidationStatus:
    match sum(1 for o in outcomes if not o["success"]):
        case 0:
            return "passed"
        case n if n <= WARNING_FAILURE_LIMIT and not strict:
            return "warning"
        case _:
            return "failed"


def run_table_expectations(
    table: TableName,
    df: pd.DataFrame,
    strict: bool = False,
    context: AbstractDataContext | None = None,
) -> dict[str, ValidationStatus | int | list[str]]:
    """Run the expectation suite for a given table against a DataFrame.

    Returns a summary dict with pass/fail status and details about
    any failed expectations.
    """
    outcomes = evaluate_suite(table, df, context=context)
    status = classify_outcomes(outcomes, strict=strict)
    passed = sum(1 for o in outcomes if o["success"])

    color = _status_color(status)
    console.print(f"  [{color}]{table}: {passed}/{len(outcomes)} expectations passed ({status})[/{color}]")

    return {
        "table": table,
        "status": status,
        "total": len(outcomes),
        "passed": passed,
        "failed_expectations": [
            f"{o['expectation']}({o['kwargs']}): {o['unexpected_count']} failures"
            for o in outcomes
            if not o["success"]
        ],
    }


def run_all_table_expectations(
    table_data: dict[TableName, pd.DataFrame],
    strict: bool = False,
) -> list[dict]:
    """Run expectations for several tables against one shared context."""
    context = get_data_context()
    results = [run_table_expectations(table, df, strict=strict, context=context) for table, df in table_data.items()]

    all_passed = all(r["status"] != "failed" for r in results)
    console.print(
        f"\n  [{'green' if all_passed else 'red'}]"
        f"Output gate: {'PASSED' if all_passed else 'FAILED'}[/]"
    )
    return results


def _status_color(status: ValidationStatus) -> str:
    match status:
        case "passed":
            return "green"
        case "warning":
            return "yellow"
        case "failed":
            return "red"
        case _:
            return "white"
