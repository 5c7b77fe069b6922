"""Data validation using Great Expectations for pipeline quality checks."""

from procurement_intel.validation.expectations import evaluate_suite, run_all_table_expectations, run_table_expectations
from procurement_intel.validation.context import get_data_context
from procurement_intel.validation.suites import build_suite_for_table
from procurement_intel.validation.reporters import build_validation_report, save_report
