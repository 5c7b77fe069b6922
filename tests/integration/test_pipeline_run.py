"""End-to-end pipeline runs against memory and file stores."""

import pandas as pd
import pytest

from procurement_intel.config import apply_overrides
from procurement_intel.domains import procurement
from procurement_intel.domains.procurement.models import Table
from procurement_intel.errors import ProcurementStoreError, RunLockError
from procurement_intel.store import FileStore, MemoryStore
from tests.factories import make_raw, valid_row


def _without_timestamps(facts: pd.DataFrame) -> pd.DataFrame:
    return facts.drop(columns=["load_timestamp"]).reset_index(drop=True)


def test_run_publishes_all_derived_tables(memory_store, config) -> None:
    """A run fills every derived table and reports the counts."""
    summary = procurement.run(memory_store, config)

    assert (summary.staging_rows, summary.clean_rows, summary.rejected_rows, summary.fact_rows) == (8, 5, 3, 5)
    assert summary.unresolved_vendor_rows == 0
    assert summary.outlier_rows == 0
    assert summary.description == "Staging Rows: 8 | Fact Rows: 5"
    assert len(memory_store.read_all(Table.VENDOR_MAP)) == 5
    assert len(memory_store.read_all(Table.CLEAN_GATE)) == 5
    assert len(memory_store.read_all(Table.REJECTS)) == 3
    assert len(memory_store.read_all(Table.FACT)) == 5


def test_run_appends_one_log_entry(memory_store, config) -> None:
    """Each run appends a PIPELINE_RUN entry without reading prior history."""
    memory_store.initialize()

    procurement.run(memory_store, config)
    procurement.run(memory_store, config)

    log = memory_store.read_all(Table.PROJECT_LOG)
    assert log["action_type"].tolist() == ["SETUP", "PIPELINE_RUN", "PIPELINE_RUN"]
    assert log["log_id"].tolist() == [1, 2, 3]


def test_run_is_idempotent_apart_from_load_timestamps(memory_store, config) -> None:
    """Re-running on unchanged staging data reproduces the fact table."""
    procurement.run(memory_store, config)
    first = memory_store.read_all(Table.FACT)
    procurement.run(memory_store, config)
    second = memory_store.read_all(Table.FACT)

    pd.testing.assert_frame_equal(_without_timestamps(first), _without_timestamps(second))


def test_empty_staging_produces_empty_tables(config) -> None:
    """An empty raw set runs cleanly and reports zero counts."""
    store = MemoryStore()

    summary = procurement.run(store, config)

    assert (summary.staging_rows, summary.clean_rows, summary.rejected_rows, summary.fact_rows) == (0, 0, 0, 0)
    assert store.read_all(Table.FACT).empty
    assert store.read_all(Table.PROJECT_LOG)["action_description"].tolist() == ["Staging Rows: 0 | Fact Rows: 0"]


def test_outlier_spend_is_counted(config) -> None:
    """Spend far above the rest is flagged and counted in the summary."""
    store = MemoryStore()
    rows = [valid_row(f"PO-{i}", spend_amount=100.0) for i in range(9)]
    rows.append(valid_row("PO-BIG", spend_amount=50000.0))
    store.replace_all(Table.RAW, make_raw(rows))

    summary = procurement.run(store, config)

    facts = store.read_all(Table.FACT).set_index("purchase_id")
    assert summary.outlier_rows == 1
    assert bool(facts.loc["PO-BIG", "outlier_flag"]) is True


def test_merge_strategy_keeps_manual_vendor_curation(memory_store, config) -> None:
    """Curated vendor names survive a run and flow into facts."""
    merge_config = apply_overrides(config, {"vendor_map_strategy": "merge"})
    procurement.run(memory_store, merge_config)
    vendor_map = memory_store.read_all(Table.VENDOR_MAP)
    curated = vendor_map["raw_vendor_name"] == "Globex Inc"
    vendor_map.loc[curated, ["clean_vendor_name", "rule_applied"]] = ["GLOBEX CORPORATION", "MANUAL"]
    memory_store.replace_all(Table.VENDOR_MAP, vendor_map)

    procurement.run(memory_store, merge_config)

    facts = memory_store.read_all(Table.FACT).set_index("purchase_id")
    assert facts.loc["PO-003", "clean_vendor_name"] == "GLOBEX CORPORATION"


def test_failed_run_is_logged_and_leaves_tables_unchanged(memory_store, config, monkeypatch) -> None:
    """A failure mid-run records PIPELINE_FAILED and publishes nothing."""
    procurement.run(memory_store, config)
    before = memory_store.read_all(Table.FACT)

    def broken_facts(*args, **kwargs):
        raise ProcurementStoreError("fact store unavailable")

    monkeypatch.setattr(procurement, "build_spend_facts", broken_facts)
    with pytest.raises(ProcurementStoreError):
        procurement.run(memory_store, config)

    log = memory_store.read_all(Table.PROJECT_LOG)
    assert log["action_type"].tolist() == ["PIPELINE_RUN", "PIPELINE_FAILED"]
    assert log["action_description"].iloc[-1] == "ProcurementStoreError: fact store unavailable"
    pd.testing.assert_frame_equal(memory_store.read_all(Table.FACT), before)


def test_concurrent_run_is_refused(memory_store, config) -> None:
    """A run cannot start while another holds the store."""
    with memory_store.run_lock():
        with pytest.raises(RunLockError):
            procurement.run(memory_store, config)


def test_file_store_run_publishes_one_snapshot(tmp_path, raw_transactions, config) -> None:
    """On disk, a run's derived tables appear together in one snapshot."""
    store = FileStore(tmp_path / "store")
    store.initialize()
    store.replace_all(Table.RAW, raw_transactions)

    procurement.run(store, config)

    snapshot = store.snapshots_dir / store.current_snapshot()
    assert sorted(p.name for p in snapshot.iterdir()) == sorted(f"{t.value}.csv" for t in (
        Table.VENDOR_MAP,
        Table.CLEAN_GATE,
        Table.REJECTS,
        Table.FACT,
    ))
    facts = store.read_all(Table.FACT)
    assert facts["purchase_month"].tolist() == ["2024-03", "2024-03", "2024-04", "2024-03", "2024-03"]
    assert facts["outlier_flag"].dtype == bool
    assert store.read_all(Table.PROJECT_LOG)["action_type"].tolist() == ["SETUP", "PIPELINE_RUN"]


def test_validate_reports_schema_status(raw_transactions) -> None:
    """Staging validation passes for well-typed rows."""
    result = procurement.validate(raw_transactions)

    assert result == {"status": "ok", "row_count": 8}


def test_file_store_run_accepts_vendors_named_like_null_markers(tmp_path, config) -> None:
    """A vendor called NA is a real vendor, not a missing one."""
    store = FileStore(tmp_path / "store")
    store.initialize()
    store.replace_all(Table.RAW, make_raw([
        valid_row("PO-1", vendor_name="NA", region="NA"),
        valid_row("PO-2", vendor_name="None Ltd"),
    ]))

    summary = procurement.run(store, config)

    facts = store.read_all(Table.FACT).set_index("purchase_id")
    assert (summary.clean_rows, summary.rejected_rows) == (2, 0)
    assert facts.loc["PO-1", "clean_vendor_name"] == "NA"
    assert facts.loc["PO-1", "region"] == "NA"
    assert facts.loc["PO-2", "clean_vendor_name"] == "NONE"


def test_failed_run_keeps_original_error_when_log_is_unavailable(memory_store, config, monkeypatch) -> None:
    """If the failure cannot be logged, the run's own error still surfaces."""

    def broken_facts(*args, **kwargs):
        raise ValueError("bad spend data")

    def broken_append(table, row):
        raise ProcurementStoreError("project log unavailable")

    monkeypatch.setattr(procurement, "build_spend_facts", broken_facts)
    monkeypatch.setattr(memory_store, "append", broken_append)

    with pytest.raises(ValueError, match="bad spend data"):
        procurement.run(memory_store, config)
