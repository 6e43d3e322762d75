from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from core.models import Item, Outcome, Status, Thresholds
from core.parser import format_gigabytes, format_ms_as_eta
from core.rules import Decision, evaluate_rules
from storage.strikes import StrikeLedger

NAME_WIDTH = 32

DeletionRequester = Callable[[int], Awaitable[Any]]


def build_outcome(item: Item, strikes: int, thresholds: Thresholds, status: Status) -> Outcome:
    return Outcome(
        id=item.id,
        strikes=f'{strikes}/{thresholds.strikes}',
        status=status,
        name=item.name[:NAME_WIDTH],
        eta=format_ms_as_eta(item.eta),
        size=format_gigabytes(item.size),
    )


def process_queue_item(item: Item, ledger: StrikeLedger, thresholds: Thresholds) -> Tuple[Outcome, Decision]:
    strikes = ledger.ensure(item.id)
    decision = evaluate_rules(item, strikes, thresholds)
    if decision.struck:
        ledger.strike(item.id, thresholds.strikes)
    return build_outcome(item, decision.strikes, thresholds, decision.status), decision


def _count(metrics: Any, key: str) -> None:
    if metrics is None:
        return
    metrics[key] = metrics.get(key, 0) + 1


async def process(
    items: Sequence[Item],
    ledger: StrikeLedger,
    thresholds: Thresholds,
    deletion_requester: DeletionRequester,
    *,
    metrics: Any = None,
    event_bus: Optional[Any] = None,
) -> List[Outcome]:
    """Evaluate one queue snapshot against the ledger.

    Items are handled strictly in snapshot order and the returned outcomes
    keep that order. An id repeated within the snapshot is evaluated once,
    so the outcome list can be shorter than the snapshot. Removal requests
    are awaited inline; a failed request leaves the ledger as it is, so the
    item is removed again next run.
    """
    outcomes: List[Outcome] = []
    seen = set()
    for item in items:
        if item.id in seen:
            logging.debug(f'Queue item id={item.id} appears more than once in this snapshot; skipping duplicate')
            continue
        seen.add(item.id)

        outcome, decision = process_queue_item(item, ledger, thresholds)
        _count(metrics, 'processed')
        _count(metrics, decision.status.value.lower())
        if decision.struck:
            _count(metrics, 'strike_increased')

        if event_bus is not None:
            event_bus.decision(
                decision.status.value.lower(),
                id=item.id,
                name=item.name,
                strikes=outcome.strikes,
                eta=outcome.eta,
                size=outcome.size,
            )

        if decision.remove:
            try:
                ok = await deletion_requester(item.id)
            except Exception as e:
                logging.error(f'Removal of id={item.id} raised unexpectedly: {e}')
                ok = False
            if ok is False:
                _count(metrics, 'deletion_failed')
        outcomes.append(outcome)
    return outcomes
