"""Map ERP export columns onto the staging contract and type them."""

import logging

import pandas as pd

from procurement_intel.domains.procurement.models import RAW_COLUMNS, REQUIRED_RAW_COLUMNS
from procurement_intel.errors import ProcurementIngestError
from procurement_intel.utils.transforms import coerce_columns, normalize_columns

logger = logging.getLogger(__name__)

# ERP export headers (after snake_casing) that differ from staging names
ERP_COLUMN_MAP = {
    "spend_amount_inr": "spend_amount",
    "vendor": "vendor_name",
    "supplier_name": "vendor_name",
    "po_number": "purchase_id",
    "subcategory": "sub_category",
    "delivery_days": "delivery_time_days",
}

SPEND_DECIMALS = 2


def normalize_procurement_records(df: pd.DataFrame) -> pd.DataFrame:
    """Rename, complete and type raw export rows into staging columns."""
    normalized = normalize_columns(df, ERP_COLUMN_MAP)

    missing_required = [col for col in REQUIRED_RAW_COLUMNS if col not in normalized.columns]
    if missing_required:
        logger.warning(f"Export is missing required columns {missing_required}; affected rows will be rejected")

    unknown = sorted(set(normalized.columns) - set(RAW_COLUMNS))
    if unknown:
        logger.warning(f"Dropping unmapped export columns: {unknown}")

    try:
        typed = coerce_columns(normalized, RAW_COLUMNS)
    except (ValueError, TypeError) as exc:
        raise ProcurementIngestError(f"Export contains values that do not fit the staging types: {exc}") from exc

    typed["spend_amount"] = typed["spend_amount"].round(SPEND_DECIMALS)
    return typed.reset_index(drop=True)
