"""Ingest raw procurement exports into the staging table."""

import logging
from pathlib import Path

import pandas as pd
from rich.console import Console

from procurement_intel.domains.procurement.models import Table
from procurement_intel.domains.procurement.transform import normalize_procurement_records
from procurement_intel.errors import ProcurementIngestError
from procurement_intel.utils.io import read_csv_file, read_csv_files

type ProcurementFrame = pd.DataFrame

logger = logging.getLogger(__name__)
console = Console()

VALIDATE_SAMPLE_ROWS = 500


def load_procurement_data(path: Path | str, validate_only: bool = False) -> ProcurementFrame:
    """Read an ERP export file, or every CSV in a directory, into staging columns."""
    path = Path(path)

    if not path.exists():
        raise ProcurementIngestError(f"Export not found: {path}")

    try:
        raw = read_csv_files(path) if path.is_dir() else read_csv_file(path)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise ProcurementIngestError(f"Cannot read export {path}: {exc}") from exc

    if validate_only:
        raw = raw.head(VALIDATE_SAMPLE_ROWS)

    staged = normalize_procurement_records(raw)
    console.print(f"  Loaded {len(staged):,} raw procurement records from {path.name}")
    return staged


def stage_raw_export(store, path: Path | str) -> int:
    """Replace the staging table with the contents of an export."""
    staged = load_procurement_data(path)
    store.replace_all(Table.RAW, staged)
    logger.info(f"Staged {len(staged)} rows into {Table.RAW}")
    return len(staged)
