from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional


def normalize_strike_count(entry: Any) -> int:
    if isinstance(entry, bool):
        return 0
    if isinstance(entry, int):
        return max(0, entry)
    try:
        return max(0, int(entry))
    except (TypeError, ValueError):
        return 0


class StrikeLedger:
    """Strike counts keyed by queue item id.

    The ledger lives as long as the monitoring process. Counts only go up
    through :meth:`strike`; entries disappear only through :meth:`prune`.
    """

    def __init__(self, counts: Optional[Mapping[int, int]] = None) -> None:
        self._counts: Dict[int, int] = {}
        for item_id, count in (counts or {}).items():
            self._counts[int(item_id)] = normalize_strike_count(count)

    def get(self, item_id: int) -> int:
        return self._counts.get(item_id, 0)

    def ensure(self, item_id: int) -> int:
        return self._counts.setdefault(item_id, 0)

    def strike(self, item_id: int, limit: int) -> int:
        current = self._counts.get(item_id, 0)
        if current < limit:
            current += 1
        self._counts[item_id] = current
        return current

    def prune(self, seen_ids: Iterable[int]) -> List[int]:
        seen = set(seen_ids)
        stale = [i for i in self._counts if i not in seen]
        for i in stale:
            del self._counts[i]
        return stale

    def active(self) -> int:
        return sum(1 for c in self._counts.values() if c > 0)

    def as_dict(self) -> Dict[int, int]:
        return dict(self._counts)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._counts

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:
        return f'StrikeLedger({self._counts!r})'
