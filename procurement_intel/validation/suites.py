"""Expectation suite definitions per procurement table.

Each table has a set of expectations that define its data quality
contract. Derived-table suites gate publishing of a pipeline run; the
staging suite is informational since raw exports are expected to carry
defects that the quality gate will reject.
"""

from procurement_intel.domains.procurement.models import (
    CONTRACT_STATUSES,
    QUALITY_FLAG_VALID,
    REJECT_REASON,
    RISK_LEVELS,
    Table,
)

type ExpectationConfig = dict[str, str | dict]
type SuiteConfig = list[ExpectationConfig]
type TableName = str


_TABLE_SUITES: dict[TableName, SuiteConfig] = {
    Table.RAW: [
        {
            "expectation_type": "expect_column_to_exist",
            "kwargs": {"column": "purchase_id"},
        },
        {
            "expectation_type": "expect_column_values_to_not_be_null",
            "kwargs": {"column": "purchase_id"},
        },
        {
            "expectation_type": "expect_column_values_to_be_unique",
            "kwargs": {"column": "purchase_id"},
        },
        {
            "expectation_type": "expect_column_values_to_not_be_null",
            "kwargs": {"column": "vendor_name"},
        },
        {
            "expectation_type": "expect_column_values_to_be_between",
            "kwargs": {"column": "spend_amount", "min_value": 0, "strict_min": True},
        },
        {
            "expectation_type": "expect_column_values_to_be_between",
            "kwargs": {"column": "quality_score", "min_value": 1, "max_value": 10},
        },
        {
            "expectation_type": "expect_column_values_to_be_between",
            "kwargs": {"column": "vendor_score", "min_value": 1, "max_value": 100},
        },
    ],
    Table.CLEAN_GATE: [
        {
            "expectation_type": "expect_column_values_to_not_be_null",
            "kwargs": {"column": "purchase_id"},
        },
        {
            "expectation_type": "expect_column_values_to_be_unique",
            "kwargs": {"column": "purchase_id"},
        },
        {
            "expectation_type": "expect_column_values_to_be_in_set",
            "kwargs": {"column": "quality_flag", "value_set": [QUALITY_FLAG_VALID]},
        },
        {
            "expectation_type": "expect_column_values_to_be_between",
            "kwargs": {"column": "spend_amount", "min_value": 0, "strict_min": True},
        },
    ],
    Table.REJECTS: [
        {
            "expectation_type": "expect_column_values_to_be_in_set",
            "kwargs": {"column": "reject_reason", "value_set": [REJECT_REASON]},
        },
        {
            "expectation_type": "expect_column_values_to_not_be_null",
            "kwargs": {"column": "failed_rules"},
        },
    ],
    Table.FACT: [
        {
            "expectation_type": "expect_column_to_exist",
            "kwargs": {"column": "purchase_id"},
        },
        {
            "expectation_type": "expect_column_values_to_not_be_null",
            "kwargs": {"column": "purchase_id"},
        },
        {
            "expectation_type": "expect_column_values_to_be_unique",
            "kwargs": {"column": "purchase_id"},
        },
        {
            "expectation_type": "expect_column_values_to_match_regex",
            "kwargs": {"column": "purchase_month", "regex": r"^\d{4}-\d{2}$"},
        },
        {
            "expectation_type": "expect_column_values_to_be_in_set",
            "kwargs": {"column": "contract_status", "value_set": CONTRACT_STATUSES},
        },
        {
            "expectation_type": "expect_column_values_to_be_in_set",
            "kwargs": {"column": "risk_level", "value_set": RISK_LEVELS},
        },
        {
            "expectation_type": "expect_column_values_to_be_between",
            "kwargs": {"column": "spend_amount", "min_value": 0, "strict_min": True},
        },
    ],
}


def build_suite_for_table(table: TableName) -> SuiteConfig:
    """Return the expectation suite for a table, or a sensible default."""
    if table in _TABLE_SUITES:
        return _TABLE_SUITES[table]

    # Default suite: just check that the table has rows
    return [
        {
            "expectation_type": "expect_table_row_count_to_be_between",
            "kwargs": {"min_value": 1},
        },
    ]
