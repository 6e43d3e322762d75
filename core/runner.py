from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from core.engine import DeletionRequester, process
from core.models import Item, Outcome, Status, Thresholds
from storage.strikes import StrikeLedger


@dataclass
class RunnerState:
    check_interval_ms: int
    ledger: StrikeLedger
    prune_stale_strikes: bool = True
    runs: int = 0


class Metrics:
    def __init__(self) -> None:
        self.processed = 0
        self.strike_increased = 0
        self.deletion_failed = 0
        self.pruned = 0
        self.by_status: Dict[str, int] = {s.value.lower(): 0 for s in Status}
        self.extra: Dict[str, int] = {}

    # dict-like access used by the engine
    def get(self, key: str, default: int = 0) -> int:
        if key in ('processed', 'strike_increased', 'deletion_failed', 'pruned'):
            return getattr(self, key)
        if key in self.by_status:
            return self.by_status[key]
        return self.extra.get(key, default)

    def __getitem__(self, key: str) -> int:
        return self.get(key, 0)

    def __setitem__(self, key: str, value: int) -> None:
        if key in ('processed', 'strike_increased', 'deletion_failed', 'pruned'):
            setattr(self, key, value)
        elif key in self.by_status:
            self.by_status[key] = value
        else:
            self.extra[key] = value


def summarize(state: RunnerState, metrics: Metrics) -> Dict[str, Any]:
    next_run_ts = time.time() + state.check_interval_ms / 1000.0
    next_run_str = time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(next_run_ts))
    return {
        'run': state.runs,
        'processed': metrics.processed,
        'statuses': dict(metrics.by_status),
        'strike_increased': metrics.strike_increased,
        'deletion_failed': metrics.deletion_failed,
        'pruned': metrics.pruned,
        'items_with_strikes': state.ledger.active(),
        'ledger_size': len(state.ledger),
        'next_run': next_run_str,
    }


def log_summary(summary: Dict[str, Any], log_fn: Callable[[str], None]) -> None:
    st = summary['statuses']
    log_fn(f"Run {summary['run']} summary:")
    log_fn(
        f"  processed={summary['processed']} removed={st['removed']} striked={st['striked']} "
        f"normal={st['normal']} pending={st['pending']} ignored={st['ignored']}"
    )
    log_fn(
        f"  strikes: increased={summary['strike_increased']} items_with_strikes={summary['items_with_strikes']} "
        f"tracked={summary['ledger_size']} pruned={summary['pruned']}"
    )
    if summary['deletion_failed']:
        log_fn(f"  failed_removals={summary['deletion_failed']}")
    log_fn(f"Next run: {summary['next_run']}")


def prune_ledger(state: RunnerState, items: Sequence[Item], metrics: Metrics) -> List[int]:
    # An empty snapshot may be a failed fetch, so it never prunes
    if not state.prune_stale_strikes or not items:
        return []
    stale = state.ledger.prune(item.id for item in items)
    metrics.pruned += len(stale)
    if stale:
        logging.debug(f'Dropped strikes for {len(stale)} item(s) no longer in the queue: {stale}')
    return stale


async def run_once(
    state: RunnerState,
    thresholds: Thresholds,
    *,
    fetch_cb: Callable[[], Awaitable[List[Item]]],
    delete_cb: DeletionRequester,
    sink: Callable[[Sequence[Outcome]], Any],
    event_bus: Optional[Any] = None,
    log_fn: Callable[[str], None] = logging.info,
) -> List[Outcome]:
    state.runs += 1
    metrics = Metrics()
    items = await fetch_cb()
    outcomes = await process(items, state.ledger, thresholds, delete_cb, metrics=metrics, event_bus=event_bus)
    sink(outcomes)
    prune_ledger(state, items, metrics)
    log_summary(summarize(state, metrics), log_fn)
    return outcomes


async def run_forever(
    state: RunnerState,
    thresholds: Thresholds,
    *,
    fetch_cb: Callable[[], Awaitable[List[Item]]],
    delete_cb: DeletionRequester,
    sink: Callable[[Sequence[Outcome]], Any],
    event_bus: Optional[Any] = None,
    log_fn: Callable[[str], None] = logging.info,
    max_runs: Optional[int] = None,
) -> None:
    while True:
        try:
            await run_once(
                state,
                thresholds,
                fetch_cb=fetch_cb,
                delete_cb=delete_cb,
                sink=sink,
                event_bus=event_bus,
                log_fn=log_fn,
            )
        except Exception as e:
            logging.error(f'Unhandled error during run: {e}')
        if max_runs is not None and state.runs >= max_runs:
            return
        await asyncio.sleep(state.check_interval_ms / 1000.0)
