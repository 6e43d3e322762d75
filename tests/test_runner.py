import importlib

import pytest


pytestmark = pytest.mark.asyncio

runner = importlib.import_module('core.runner')
models = importlib.import_module('core.models')
strikes = importlib.import_module('storage.strikes')

Item = models.Item
Status = models.Status

GB = 1_000_000_000
HOUR = 3_600_000
THRESHOLDS = models.Thresholds(size_bytes=50 * GB, time_ms=HOUR, strikes=2)


class Snapshots:
    def __init__(self, *snapshots):
        self.snapshots = list(snapshots)

    async def __call__(self):
        return self.snapshots.pop(0) if self.snapshots else []


class Sink:
    def __init__(self):
        self.batches = []

    def __call__(self, outcomes):
        self.batches.append(list(outcomes))


async def _delete_ok(item_id):
    return True


def _state(prune=True, ledger=None):
    return runner.RunnerState(check_interval_ms=0, ledger=ledger or strikes.StrikeLedger(), prune_stale_strikes=prune)


async def test_run_once_fetches_processes_and_renders():
    state = _state()
    sink = Sink()
    lines = []
    slow = Item(id=1, name='slow', size=GB, eta=2 * HOUR)
    outcomes = await runner.run_once(
        state, THRESHOLDS, fetch_cb=Snapshots([slow]), delete_cb=_delete_ok, sink=sink, log_fn=lines.append
    )
    assert [o.status for o in outcomes] == [Status.STRIKED]
    assert sink.batches == [outcomes]
    assert state.runs == 1
    assert state.ledger.get(1) == 1
    assert lines[0] == 'Run 1 summary:'
    assert any('striked=1' in ln for ln in lines)


async def test_stale_entries_are_pruned_after_non_empty_snapshot():
    # Stale-entry policy: ids missing from a non-empty snapshot are dropped
    state = _state(ledger=strikes.StrikeLedger({1: 1, 2: 1}))
    still_there = Item(id=2, name='b', size=GB, eta=2 * HOUR)
    await runner.run_once(state, THRESHOLDS, fetch_cb=Snapshots([still_there]), delete_cb=_delete_ok, sink=Sink(), log_fn=lambda m: None)
    assert state.ledger.as_dict() == {2: 2}


async def test_empty_snapshot_never_prunes():
    state = _state(ledger=strikes.StrikeLedger({1: 1}))
    await runner.run_once(state, THRESHOLDS, fetch_cb=Snapshots([]), delete_cb=_delete_ok, sink=Sink(), log_fn=lambda m: None)
    assert state.ledger.as_dict() == {1: 1}


async def test_pruning_can_be_disabled():
    state = _state(prune=False, ledger=strikes.StrikeLedger({1: 1}))
    other = Item(id=2, name='b', size=GB, eta=1000)
    await runner.run_once(state, THRESHOLDS, fetch_cb=Snapshots([other]), delete_cb=_delete_ok, sink=Sink(), log_fn=lambda m: None)
    assert state.ledger.as_dict() == {1: 1, 2: 0}


async def test_removed_item_that_disappears_is_forgotten():
    state = _state()
    slow = Item(id=1, name='slow', size=GB, eta=2 * HOUR)
    other = Item(id=2, name='other', size=GB, eta=1000)
    snaps = Snapshots([slow, other], [slow, other], [other])
    sink = Sink()
    for _ in range(3):
        await runner.run_once(state, THRESHOLDS, fetch_cb=snaps, delete_cb=_delete_ok, sink=sink, log_fn=lambda m: None)
    assert [o.status for o in sink.batches[1]] == [Status.REMOVED, Status.NORMAL]
    assert 1 not in state.ledger


async def test_run_forever_survives_errors_and_stops_after_max_runs(caplog):
    calls = {'n': 0}

    async def flaky_fetch():
        calls['n'] += 1
        if calls['n'] == 1:
            raise RuntimeError('boom')
        return []

    state = _state()
    await runner.run_forever(
        state, THRESHOLDS, fetch_cb=flaky_fetch, delete_cb=_delete_ok, sink=Sink(), log_fn=lambda m: None, max_runs=2
    )
    assert state.runs == 2
    assert any('Unhandled error during run: boom' in r.message for r in caplog.records)


async def test_summarize_counts_ledger():
    state = _state(ledger=strikes.StrikeLedger({1: 0, 2: 2}))
    metrics = runner.Metrics()
    metrics['removed'] = 1
    metrics['processed'] = 4
    summary = runner.summarize(state, metrics)
    assert summary['items_with_strikes'] == 1
    assert summary['ledger_size'] == 2
    assert summary['statuses']['removed'] == 1
    assert summary['processed'] == 4
    assert summary['next_run']


async def test_metrics_dict_access():
    m = runner.Metrics()
    m['pending'] = m.get('pending') + 2
    m['custom'] = 5
    assert m['pending'] == 2
    assert m.get('custom') == 5
    assert m.get('missing', 7) == 7
