from __future__ import annotations

import pytest

from chronogarden.world.ledger import InsufficientResourceError, ResourceLedger


def test_credit_and_debit_track_balances():
    ledger = ResourceLedger(balances={"Water": 10.0})
    assert ledger.credit("Water", 5) == 15.0
    assert ledger.debit("Water", 12) == 3.0
    assert ledger.get("Coins") == 0.0


def test_debit_beyond_balance_raises_and_keeps_balance():
    ledger = ResourceLedger(balances={"Seeds": 1.0})
    with pytest.raises(InsufficientResourceError) as excinfo:
        ledger.debit("Seeds", 2)
    assert excinfo.value.resource_id == "Seeds"
    assert ledger.get("Seeds") == 1.0


def test_non_positive_amounts_are_rejected():
    ledger = ResourceLedger()
    with pytest.raises(ValueError):
        ledger.credit("Water", 0)
    with pytest.raises(ValueError):
        ledger.debit("Water", -1)


def test_debit_many_is_all_or_nothing():
    ledger = ResourceLedger(balances={"Seeds": 5.0, "Water": 3.0})
    before = ledger.signature()
    with pytest.raises(InsufficientResourceError) as excinfo:
        ledger.debit_many({"Seeds": 1, "Water": 8})
    assert excinfo.value.resource_id == "Water"
    assert ledger.signature() == before

    ledger.debit_many({"Seeds": 1, "Water": 3})
    assert ledger.as_dict() == {"Seeds": 4.0, "Water": 0.0}


def test_shortfall_lists_only_missing_amounts():
    ledger = ResourceLedger(balances={"Coins": 40.0, "Energy": 50.0})
    assert ledger.shortfall({"Coins": 50, "Energy": 10}) == {"Coins": 10.0}
    assert ledger.can_afford({"Coins": 40}) is True


def test_adjust_floors_at_zero():
    ledger = ResourceLedger(balances={"Sunlight": 4.0})
    assert ledger.adjust("Sunlight", -10) == 0.0
    assert ledger.adjust("Sunlight", 2.5) == 2.5


def test_non_finite_amounts_are_rejected():
    ledger = ResourceLedger(balances={"Seeds": 10.0})
    with pytest.raises(ValueError):
        ledger.credit("Seeds", float("nan"))
    with pytest.raises(ValueError):
        ledger.debit("Seeds", float("nan"))
    with pytest.raises(ValueError):
        ledger.credit("Seeds", float("inf"))
    with pytest.raises(ValueError):
        ledger.adjust("Seeds", float("nan"))
    assert ledger.get("Seeds") == 10.0
