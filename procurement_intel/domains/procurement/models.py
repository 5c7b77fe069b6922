"""Table names, column contracts and pandera schemas for procurement data."""

from enum import StrEnum

from pandera.pandas import Check, Column, DataFrameSchema

from procurement_intel.utils.types import ColumnTypes


class Table(StrEnum):
    RAW = "stg_procurement_raw"
    VENDOR_MAP = "vendor_normalization_map"
    CLEAN_GATE = "procurement_clean_gate"
    REJECTS = "procurement_rejects"
    FACT = "fact_procurement_spend"
    PROJECT_LOG = "project_log"


# Tables rebuilt in full by every pipeline run
DERIVED_TABLES = (Table.VENDOR_MAP, Table.CLEAN_GATE, Table.REJECTS, Table.FACT)

QUALITY_FLAG_VALID = "VALID"
REJECT_REASON = "FAILED DATA QUALITY RULES"
CONTRACT_STATUSES = ["Contract", "Non-Contract"]
RISK_LEVELS = ["HIGH", "MEDIUM", "LOW"]
LOG_ACTION_TYPES = ["SETUP", "PIPELINE_RUN", "PIPELINE_FAILED"]

RAW_COLUMNS: ColumnTypes = {
    "purchase_id": "object",
    "vendor_name": "object",
    "category": "object",
    "sub_category": "object",
    "spend_amount": "float64",
    "purchase_date": "datetime64[ns]",
    "region": "object",
    "payment_terms": "object",
    "delivery_time_days": "Int64",
    "quality_score": "Int64",
    "vendor_score": "Int64",
}

REQUIRED_RAW_COLUMNS = ["purchase_id", "vendor_name", "spend_amount", "purchase_date"]

VENDOR_MAP_COLUMNS: ColumnTypes = {
    "raw_vendor_name": "object",
    "clean_vendor_name": "object",
    "rule_applied": "object",
    "created_at": "datetime64[ns]",
}

CLEAN_GATE_COLUMNS: ColumnTypes = {
    **RAW_COLUMNS,
    "quality_flag": "object",
    "load_timestamp": "datetime64[ns]",
}

REJECT_COLUMNS: ColumnTypes = {
    "source_row": "Int64",
    "purchase_id": "object",
    "reject_reason": "object",
    "failed_rules": "object",
    "reject_time": "datetime64[ns]",
}

FACT_COLUMNS: ColumnTypes = {
    "purchase_id": "object",
    "clean_vendor_name": "object",
    "category": "object",
    "sub_category": "object",
    "spend_amount": "float64",
    "purchase_date": "datetime64[ns]",
    "purchase_month": "object",
    "region": "object",
    "payment_terms": "object",
    "delivery_time_days": "Int64",
    "quality_score": "Int64",
    "vendor_score": "Int64",
    "contract_status": "object",
    "risk_level": "object",
    "outlier_flag": "bool",
    "load_timestamp": "datetime64[ns]",
}

PROJECT_LOG_COLUMNS: ColumnTypes = {
    "log_id": "Int64",
    "run_id": "object",
    "action_type": "object",
    "action_description": "object",
    "action_time": "datetime64[ns]",
    "status": "object",
    "staging_rows": "Int64",
    "clean_rows": "Int64",
    "rejected_rows": "Int64",
    "fact_rows": "Int64",
    "unresolved_vendor_rows": "Int64",
    "outlier_rows": "Int64",
}

TABLE_COLUMNS: dict[Table, ColumnTypes] = {
    Table.RAW: RAW_COLUMNS,
    Table.VENDOR_MAP: VENDOR_MAP_COLUMNS,
    Table.CLEAN_GATE: CLEAN_GATE_COLUMNS,
    Table.REJECTS: REJECT_COLUMNS,
    Table.FACT: FACT_COLUMNS,
    Table.PROJECT_LOG: PROJECT_LOG_COLUMNS,
}


# Raw staging rows are validated for shape and type only; business rules
# belong to the quality gate.
RAW_TRANSACTION_SCHEMA = DataFrameSchema(
    columns={
        "purchase_id": Column(str, nullable=True),
        "vendor_name": Column(str, nullable=True),
        "category": Column(str, nullable=True),
        "sub_category": Column(str, nullable=True),
        "spend_amount": Column(float, nullable=True),
        "purchase_date": Column("datetime64[ns]", nullable=True),
        "region": Column(str, nullable=True),
        "payment_terms": Column(str, nullable=True),
        "delivery_time_days": Column("Int64", nullable=True),
        "quality_score": Column("Int64", nullable=True),
        "vendor_score": Column("Int64", nullable=True),
    },
    name=Table.RAW.value,
    coerce=True,
    strict=False,
)

VENDOR_MAP_SCHEMA = DataFrameSchema(
    columns={
        "raw_vendor_name": Column(str, nullable=False, unique=True),
        "clean_vendor_name": Column(str, nullable=False),
        "rule_applied": Column(str, nullable=True),
        "created_at": Column("datetime64[ns]", nullable=False),
    },
    name=Table.VENDOR_MAP.value,
    coerce=True,
    strict=False,
)

CLEAN_GATE_SCHEMA = DataFrameSchema(
    columns={
        "purchase_id": Column(str, nullable=False, unique=True),
        "vendor_name": Column(str, nullable=False),
        "spend_amount": Column(float, checks=Check.greater_than(0), nullable=False),
        "purchase_date": Column("datetime64[ns]", nullable=False),
        "quality_score": Column("Int64", checks=Check.in_range(1, 10), nullable=True),
        "vendor_score": Column("Int64", checks=Check.in_range(1, 100), nullable=True),
        "quality_flag": Column(str, checks=Check.isin([QUALITY_FLAG_VALID]), nullable=False),
        "load_timestamp": Column("datetime64[ns]", nullable=False),
    },
    name=Table.CLEAN_GATE.value,
    coerce=True,
    strict=False,
)

REJECT_SCHEMA = DataFrameSchema(
    columns={
        "source_row": Column("Int64", checks=Check.ge(0), nullable=False, unique=True),
        "purchase_id": Column(str, nullable=True),
        "reject_reason": Column(str, checks=Check.isin([REJECT_REASON]), nullable=False),
        "failed_rules": Column(str, checks=Check.str_length(min_value=1), nullable=False),
        "reject_time": Column("datetime64[ns]", nullable=False),
    },
    name=Table.REJECTS.value,
    coerce=True,
    strict=False,
)

FACT_SCHEMA = DataFrameSchema(
    columns={
        "purchase_id": Column(str, nullable=False, unique=True),
        "clean_vendor_name": Column(str, nullable=True),
        "spend_amount": Column(float, checks=Check.greater_than(0), nullable=False),
        "purchase_date": Column("datetime64[ns]", nullable=False),
        "purchase_month": Column(str, checks=Check.str_matches(r"^\d{4}-\d{2}$"), nullable=False),
        "contract_status": Column(str, checks=Check.isin(CONTRACT_STATUSES), nullable=False),
        "risk_level": Column(str, checks=Check.isin(RISK_LEVELS), nullable=False),
        "outlier_flag": Column(bool, nullable=False),
        "load_timestamp": Column("datetime64[ns]", nullable=False),
    },
    name=Table.FACT.value,
    coerce=True,
    strict=False,
)

PROJECT_LOG_SCHEMA = DataFrameSchema(
    columns={
        "log_id": Column("Int64", checks=Check.ge(1), nullable=False, unique=True),
        "action_type": Column(str, checks=Check.isin(LOG_ACTION_TYPES), nullable=False),
        "action_description": Column(str, nullable=False),
        "action_time": Column("datetime64[ns]", nullable=False),
    },
    name=Table.PROJECT_LOG.value,
    coerce=True,
    strict=False,
)

TABLE_SCHEMAS: dict[Table, DataFrameSchema] = {
    Table.RAW: RAW_TRANSACTION_SCHEMA,
    Table.VENDOR_MAP: VENDOR_MAP_SCHEMA,
    Table.CLEAN_GATE: CLEAN_GATE_SCHEMA,
    Table.REJECTS: REJECT_SCHEMA,
    Table.FACT: FACT_SCHEMA,
    Table.PROJECT_LOG: PROJECT_LOG_SCHEMA,
}
