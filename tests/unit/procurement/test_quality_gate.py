"""Unit tests for the clean/reject quality gate."""

import pandas as pd
import pytest

from procurement_intel.domains.procurement.models import QUALITY_FLAG_VALID, REJECT_REASON
from procurement_intel.domains.procurement.quality_gate import (
    DUPLICATE_RULE,
    ROW_RULES,
    evaluate_rules,
    split_clean_and_rejects,
)
from tests.factories import LOAD_TIMESTAMP, make_raw, valid_row


def _failed_rules(overrides: dict) -> str:
    gate = split_clean_and_rejects(make_raw([valid_row("PO-1", **overrides)]), LOAD_TIMESTAMP)
    assert gate.clean.empty
    return gate.rejects["failed_rules"].iloc[0]


def test_split_partitions_every_raw_row(raw_transactions) -> None:
    """Accepted and rejected rows cover the input exactly once."""
    gate = split_clean_and_rejects(raw_transactions, LOAD_TIMESTAMP)

    accepted = set(gate.clean.index)
    rejected = set(gate.rejects["source_row"])

    assert accepted | rejected == set(range(len(raw_transactions)))
    assert accepted & rejected == set()
    assert len(gate.clean) == 5
    assert len(gate.rejects) == 3


def test_zero_spend_is_rejected_with_generic_reason() -> None:
    """A row with zero spend is rejected even when everything else is valid."""
    gate = split_clean_and_rejects(make_raw([valid_row("PO-1", spend_amount=0.0)]), LOAD_TIMESTAMP)

    assert gate.clean.empty
    assert gate.rejects["reject_reason"].tolist() == [REJECT_REASON]
    assert gate.rejects["failed_rules"].tolist() == ["SPEND_NOT_POSITIVE"]
    assert gate.rejects["reject_time"].iloc[0] == pd.Timestamp(LOAD_TIMESTAMP)


@pytest.mark.parametrize(
    ("overrides", "rule"),
    [
        ({"vendor_name": None}, "VENDOR_NAME_MISSING"),
        ({"spend_amount": -5.0}, "SPEND_NOT_POSITIVE"),
        ({"spend_amount": None}, "SPEND_NOT_POSITIVE"),
        ({"purchase_date": None}, "PURCHASE_DATE_MISSING"),
        ({"quality_score": 0}, "QUALITY_SCORE_OUT_OF_RANGE"),
        ({"quality_score": 11}, "QUALITY_SCORE_OUT_OF_RANGE"),
        ({"vendor_score": 101}, "VENDOR_SCORE_OUT_OF_RANGE"),
    ],
)
def test_single_rule_failures_are_named(overrides: dict, rule: str) -> None:
    """Each failing clause is reported by name."""
    assert _failed_rules(overrides) == rule


def test_missing_purchase_id_is_rejected_without_identity() -> None:
    """Rows without a key are rejected and still tracked by source row."""
    gate = split_clean_and_rejects(make_raw([valid_row(None)]), LOAD_TIMESTAMP)

    assert gate.rejects["source_row"].tolist() == [0]
    assert gate.rejects["purchase_id"].isna().all()
    assert gate.rejects["failed_rules"].tolist() == ["PURCHASE_ID_MISSING"]


def test_all_failing_rules_are_listed_in_rule_order() -> None:
    """Several failures on one row are joined in rule order."""
    failed = _failed_rules({"vendor_name": None, "spend_amount": 0.0, "vendor_score": 500})

    assert failed == "VENDOR_NAME_MISSING,SPEND_NOT_POSITIVE,VENDOR_SCORE_OUT_OF_RANGE"


def test_absent_scores_are_accepted() -> None:
    """Missing optional scores satisfy their range rules."""
    raw = make_raw([valid_row("PO-1", quality_score=None, vendor_score=None)])

    gate = split_clean_and_rejects(raw, LOAD_TIMESTAMP)

    assert len(gate.clean) == 1
    assert gate.rejects.empty


@pytest.mark.parametrize("score", [1, 10])
def test_quality_score_range_is_inclusive(score: int) -> None:
    """Boundary quality scores pass."""
    gate = split_clean_and_rejects(make_raw([valid_row("PO-1", quality_score=score)]), LOAD_TIMESTAMP)

    assert len(gate.clean) == 1


def test_duplicate_purchase_id_keeps_first_eligible_row() -> None:
    """Only the first valid occurrence of a key is accepted."""
    raw = make_raw([
        valid_row("PO-1", spend_amount=0.0),
        valid_row("PO-1", spend_amount=10.0),
        valid_row("PO-1", spend_amount=20.0),
    ])

    gate = split_clean_and_rejects(raw, LOAD_TIMESTAMP)

    assert gate.clean["spend_amount"].tolist() == [10.0]
    assert gate.rejects["source_row"].tolist() == [0, 2]
    assert gate.rejects["failed_rules"].tolist() == ["SPEND_NOT_POSITIVE", DUPLICATE_RULE]


def test_clean_rows_are_flagged_and_timestamped(raw_transactions) -> None:
    """Accepted rows carry the quality flag and load timestamp."""
    gate = split_clean_and_rejects(raw_transactions, LOAD_TIMESTAMP)

    assert set(gate.clean["quality_flag"]) == {QUALITY_FLAG_VALID}
    assert (gate.clean["load_timestamp"] == pd.Timestamp(LOAD_TIMESTAMP)).all()


def test_evaluate_rules_reports_every_rule() -> None:
    """The rule frame has one boolean column per rule plus the duplicate check."""
    passes = evaluate_rules(make_raw([valid_row("PO-1")]))

    assert list(passes.columns) == [*ROW_RULES, DUPLICATE_RULE]
    assert passes.iloc[0].all()


def test_empty_input_yields_empty_outputs() -> None:
    """An empty staging set produces empty clean and reject sets."""
    gate = split_clean_and_rejects(make_raw([]), LOAD_TIMESTAMP)

    assert gate.clean.empty
    assert gate.rejects.empty
