"""Shared utilities for the procurement pipeline."""

from procurement_intel.utils.io import read_csv_files, read_table_file, write_output
from procurement_intel.utils.transforms import coerce_columns, empty_frame, merge_datasets, normalize_columns
from procurement_intel.utils.validators import conform_dataframe, validate_dataframe
from procurement_intel.utils.types import ColumnTypes, PipelineContext, PipelineStatus
