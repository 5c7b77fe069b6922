"""Shared fixtures for procurement pipeline tests."""

from datetime import datetime

import pandas as pd
import pytest

from procurement_intel.config import apply_overrides, load_pipeline_config
from procurement_intel.domains.procurement.models import Table
from procurement_intel.store import FileStore, MemoryStore
from tests.factories import LOAD_TIMESTAMP, make_raw, valid_row


@pytest.fixture
def load_timestamp() -> datetime:
    return LOAD_TIMESTAMP


@pytest.fixture
def raw_transactions() -> pd.DataFrame:
    """Mixed staging rows: five accepted, three rejected."""
    return make_raw([
        valid_row("PO-001"),
        valid_row("PO-002", vendor_name="acme pvt ltd", spend_amount=250.5, vendor_score=40, quality_score=9),
        valid_row("PO-003", vendor_name="Globex Inc", vendor_score=60, quality_score=8, purchase_date="2024-04-02"),
        valid_row("PO-004", vendor_name="Initech Ltd.", quality_score=None, vendor_score=None),
        valid_row("PO-005", vendor_name="Umbrella Pvt.", vendor_score=90, quality_score=9),
        valid_row("PO-006", spend_amount=0.0),
        valid_row(None, vendor_name="Globex Inc"),
        valid_row("PO-008", quality_score=11, vendor_score=0),
    ])


@pytest.fixture
def config():
    """Development config with the Great Expectations gate switched off."""
    return apply_overrides(load_pipeline_config("development"), {"run_expectations": False})


@pytest.fixture
def memory_store(raw_transactions) -> MemoryStore:
    store = MemoryStore()
    store.replace_all(Table.RAW, raw_transactions)
    return store


@pytest.fixture
def file_store(tmp_path) -> FileStore:
    store = FileStore(tmp_path / "store", fmt="csv", retain_snapshots=2)
    store.initialize()
    return store
