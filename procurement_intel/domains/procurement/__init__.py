"""Procurement domain pipeline: vendor normalization, quality gate and spend facts."""

import logging
from datetime import datetime

import pandas as pd

from procurement_intel.config import PipelineConfig
from procurement_intel.domains.procurement.audit import PipelineRunSummary, RunAuditor
from procurement_intel.domains.procurement.ingest import load_procurement_data, stage_raw_export
from procurement_intel.domains.procurement.models import (
    CLEAN_GATE_SCHEMA,
    FACT_SCHEMA,
    RAW_TRANSACTION_SCHEMA,
    REJECT_SCHEMA,
    VENDOR_MAP_SCHEMA,
    Table,
)
from procurement_intel.domains.procurement.quality_gate import split_clean_and_rejects
from procurement_intel.domains.procurement.spend import build_spend_facts
from procurement_intel.domains.procurement.statistics import compute_spend_statistics
from procurement_intel.domains.procurement.vendors import refresh_vendor_map
from procurement_intel.errors import ProcurementValidationError
from procurement_intel.utils.types import new_pipeline_context
from procurement_intel.utils.validators import (
    validate_dataframe,
    validate_referential_integrity,
    validate_unique,
)
from procurement_intel.validation.expectations import run_all_table_expectations

logger = logging.getLogger(__name__)

DOMAIN = "procurement"

_OUTPUT_SCHEMAS = {
    Table.VENDOR_MAP: VENDOR_MAP_SCHEMA,
    Table.CLEAN_GATE: CLEAN_GATE_SCHEMA,
    Table.REJECTS: REJECT_SCHEMA,
    Table.FACT: FACT_SCHEMA,
}


def validate(raw: pd.DataFrame) -> dict:
    """Check staged rows against the staging schema and report key collisions."""
    result = validate_dataframe(raw, RAW_TRANSACTION_SCHEMA)

    match result:
        case {"valid": True}:
            duplicates = validate_unique(raw.dropna(subset=["purchase_id"]), ["purchase_id"])
            if not duplicates["valid"]:
                logger.warning(f"Staging data: {duplicates['errors'][0]}")
            return {"status": "ok", "row_count": len(raw)}
        case {"valid": False, "errors": errs}:
            return {"status": "error", "message": "; ".join(errs[:5])}


def derive_tables(
    raw: pd.DataFrame,
    existing_vendor_map: pd.DataFrame,
    config: PipelineConfig,
    load_timestamp: datetime,
) -> dict[Table, pd.DataFrame]:
    """Compute every derived table from the full staging set."""
    vendor_map = refresh_vendor_map(raw, existing_vendor_map, config.vendor_map_strategy, load_timestamp)
    gate = split_clean_and_rejects(raw, load_timestamp)
    stats = compute_spend_statistics(gate.clean["spend_amount"], ddof=config.stddev_ddof)
    facts = build_spend_facts(gate.clean, vendor_map, stats, load_timestamp)

    return {
        Table.VENDOR_MAP: vendor_map,
        Table.CLEAN_GATE: gate.clean,
        Table.REJECTS: gate.rejects,
        Table.FACT: facts,
    }


def check_outputs(raw: pd.DataFrame, tables: dict[Table, pd.DataFrame], config: PipelineConfig) -> None:
    """Raise ``ProcurementValidationError`` when any derived table breaks its contract."""
    errors = []
    for table, schema in _OUTPUT_SCHEMAS.items():
        result = validate_dataframe(tables[table], schema)
        errors.extend(f"{table}: {err}" for err in result["errors"])

    coverage = validate_referential_integrity(raw, tables[Table.VENDOR_MAP], "vendor_name", "raw_vendor_name")
    errors.extend(f"{Table.VENDOR_MAP}: {err}" for err in coverage["errors"])

    if len(tables[Table.CLEAN_GATE]) + len(tables[Table.REJECTS]) != len(raw):
        errors.append("quality gate outputs do not partition the staging rows")

    if config.run_expectations and not errors:
        gated = {table: tables[table] for table in (Table.CLEAN_GATE, Table.REJECTS, Table.FACT)}
        for result in run_all_table_expectations(gated, strict=config.strict_validation):
            if result["status"] == "failed":
                errors.extend(f"{result['table']}: {failure}" for failure in result["failed_expectations"])

    if errors:
        raise ProcurementValidationError("; ".join(errors[:10]))


def run(store, config: PipelineConfig) -> PipelineRunSummary:
    """Execute one full-refresh pipeline run against ``store``.

    Derived tables are published together or not at all; the outcome is
    recorded in the project log either way.
    """
    context = new_pipeline_context(DOMAIN)
    auditor = RunAuditor(store)

    with store.run_lock():
        staging_rows = 0
        try:
            raw = store.read_all(Table.RAW)
            staging_rows = len(raw)
            logger.info(f"Run {context.run_id}: {staging_rows} staging rows")

            with store.transaction():
                existing_map = store.read_all(Table.VENDOR_MAP)
                tables = derive_tables(raw, existing_map, config, context.start_time)
                check_outputs(raw, tables, config)
                for table, rows in tables.items():
                    store.replace_all(table, rows)
        except Exception as exc:
            try:
                auditor.record_failure(context, exc, staging_rows=staging_rows)
            except Exception as audit_exc:
                logger.error(f"Run {context.run_id}: failure not recorded in project log: {audit_exc}")
            raise

        facts = tables[Table.FACT]
        return auditor.record_success(
            context,
            staging_rows=staging_rows,
            clean_rows=len(tables[Table.CLEAN_GATE]),
            rejected_rows=len(tables[Table.REJECTS]),
            fact_rows=len(facts),
            unresolved_vendor_rows=int(facts["clean_vendor_name"].isna().sum()),
            outlier_rows=int(facts["outlier_flag"].sum()),
        )
