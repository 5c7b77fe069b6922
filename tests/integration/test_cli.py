"""Command-line runs of the procurement pipeline."""

import pytest

from procurement_intel.domains.procurement.models import Table
from procurement_intel.run import main
from procurement_intel.store import FileStore

EXPORT = (
    "Purchase_ID,Vendor_Name,Category,Sub_Category,Spend_Amount_INR,Purchase_Date,"
    "Region,Payment_Terms,Delivery_Time_Days,Quality_Score,Vendor_Score\n"
    "PO-1,Acme Pvt Ltd,IT,Laptops,1500,2024-03-15,North,Net 30,7,8,80\n"
    "PO-2,Globex Inc,IT,Monitors,250,2024-03-16,South,Net 45,4,9,60\n"
    "PO-3,Initech Ltd.,Office,Chairs,0,2024-04-01,East,Net 30,3,7,90\n"
)


def test_init_provisions_store(tmp_path) -> None:
    """--init creates the store layout and the SETUP entry."""
    main(["--store", str(tmp_path), "--init"])

    store = FileStore(tmp_path)
    assert store.read_all(Table.PROJECT_LOG)["action_type"].tolist() == ["SETUP"]


@pytest.mark.expectations
def test_load_and_run(tmp_path) -> None:
    """Loading an export and running publishes facts for accepted rows."""
    export = tmp_path / "export.csv"
    export.write_text(EXPORT)
    store_root = tmp_path / "store"

    main(["--store", str(store_root), "--init"])
    main(["--store", str(store_root), "--load", str(export)])

    store = FileStore(store_root)
    assert store.read_all(Table.FACT)["purchase_id"].tolist() == ["PO-1", "PO-2"]
    assert store.read_all(Table.REJECTS)["failed_rules"].tolist() == ["SPEND_NOT_POSITIVE"]


def test_missing_export_exits_with_error(tmp_path) -> None:
    """Ingestion failures exit with status 1."""
    with pytest.raises(SystemExit) as excinfo:
        main(["--store", str(tmp_path), "--load", str(tmp_path / "missing.csv")])

    assert excinfo.value.code == 1
