import importlib

import pytest


strikes = importlib.import_module('storage.strikes')


def test_missing_id_reads_as_zero_without_creating_entry():
    ledger = strikes.StrikeLedger()
    assert ledger.get(42) == 0
    assert 42 not in ledger


def test_ensure_creates_zero_entry_once():
    ledger = strikes.StrikeLedger()
    assert ledger.ensure(1) == 0
    ledger.strike(1, limit=3)
    assert ledger.ensure(1) == 1
    assert len(ledger) == 1


def test_strike_is_capped_at_limit():
    ledger = strikes.StrikeLedger()
    counts = [ledger.strike(7, limit=2) for _ in range(4)]
    assert counts == [1, 2, 2, 2]


def test_prune_drops_ids_not_seen():
    ledger = strikes.StrikeLedger({1: 1, 2: 0, 3: 3})
    stale = ledger.prune([2, 4])
    assert sorted(stale) == [1, 3]
    assert ledger.as_dict() == {2: 0}


def test_active_counts_only_positive_entries():
    ledger = strikes.StrikeLedger({1: 0, 2: 1, 3: 4})
    assert ledger.active() == 2


@pytest.mark.parametrize('entry,expected', [
    (3, 3),
    (-1, 0),
    ({'count': 2}, 0),
    ('4', 4),
    (None, 0),
    (True, 0),
])
def test_normalize_strike_count(entry, expected):
    assert strikes.normalize_strike_count(entry) == expected
