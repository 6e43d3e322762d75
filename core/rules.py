from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from core.models import Item, Status, Thresholds


@dataclass(frozen=True)
class Decision:
    status: Status
    strikes: int
    struck: bool = False
    remove: bool = False


def pending_rule(item: Item, thresholds: Thresholds) -> Optional[Status]:
    # No ETA: still queued or being processed, unless aggressive mode counts it
    if item.eta == 0 and not thresholds.aggressive:
        return Status.PENDING
    return None


def ignored_rule(item: Item, thresholds: Thresholds) -> Optional[Status]:
    if item.size >= thresholds.size_bytes:
        return Status.IGNORED
    return None


# Order matters: Pending is reported even when the item is also oversized.
BYPASS_RULES: Tuple[Callable[[Item, Thresholds], Optional[Status]], ...] = (
    pending_rule,
    ignored_rule,
)


def evaluate_bypass(item: Item, thresholds: Thresholds) -> Optional[Status]:
    for rule in BYPASS_RULES:
        status = rule(item, thresholds)
        if status is not None:
            return status
    return None


def is_strike_eligible(item: Item, thresholds: Thresholds) -> bool:
    if item.eta == 0:
        return thresholds.aggressive
    return item.eta >= thresholds.time_ms


def evaluate_rules(item: Item, strikes: int, thresholds: Thresholds) -> Decision:
    """Decide what happens to ``item`` given its current strike count.

    Bypass rules short-circuit everything. Otherwise an eligible item gains
    one strike (capped at ``thresholds.strikes``) and any item at or above
    the cap is marked for removal in the same pass, so the run that records
    the final strike is also the run that removes it.
    """
    bypass = evaluate_bypass(item, thresholds)
    if bypass is not None:
        return Decision(status=bypass, strikes=strikes)

    struck = False
    if is_strike_eligible(item, thresholds):
        if strikes < thresholds.strikes:
            strikes += 1
            struck = True
        status = Status.STRIKED
    else:
        status = Status.NORMAL

    if strikes >= thresholds.strikes:
        return Decision(status=Status.REMOVED, strikes=strikes, struck=struck, remove=True)
    return Decision(status=status, strikes=strikes, struck=struck)
