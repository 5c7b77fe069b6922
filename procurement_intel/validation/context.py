"""Great Expectations DataContext management.

Uses the in-memory/ephemeral DataContext pattern for pipeline validation
without requiring a full GE project directory.
"""

import great_expectations as gx
import pandas as pd
from great_expectations.data_context import AbstractDataContext
from great_expectations.datasource.fluent.interfaces import Batch

DATASOURCE_NAME = "procurement_datasource"
BATCH_DEFINITION_NAME = "whole_table"


def get_data_context() -> AbstractDataContext:
    """Return an ephemeral (in-memory) Great Expectations DataContext.

    Validation results are reported, not persisted, so no project directory
    is needed.
    """
    return gx.get_context(mode="ephemeral")


def get_table_batch(context: AbstractDataContext, table: str, df: pd.DataFrame) -> Batch:
    """Register ``df`` as a whole-dataframe asset named after the table.

    The datasource is replaced on every call, so one context can validate
    the same table more than once.
    """
    datasource = context.data_sources.add_or_update_pandas(name=DATASOURCE_NAME)
    asset = datasource.add_dataframe_asset(name=str(table))
    batch_definition = asset.add_batch_definition_whole_dataframe(BATCH_DEFINITION_NAME)

    return batch_definition.get_batch(batch_parameters={"dataframe": df})
