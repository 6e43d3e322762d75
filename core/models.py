from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from core.parser import parse_bytesize, parse_duration_to_ms


class Status(str, Enum):
    PENDING = 'Pending'
    IGNORED = 'Ignored'
    NORMAL = 'Normal'
    STRIKED = 'Striked'
    REMOVED = 'Removed'

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Item:
    """One queue entry as observed on a single run.

    ``eta`` is the remaining time in milliseconds; 0 means the platform
    reported no estimate (queued, being processed, or stalled forever).
    """
    id: int
    name: str
    size: int
    eta: int


@dataclass(frozen=True)
class Thresholds:
    size_bytes: int
    time_ms: int
    strikes: int
    aggressive: bool = False

    @classmethod
    def from_strings(cls, size: str, time: str, strikes: Any, aggressive: bool = False) -> 'Thresholds':
        try:
            max_strikes = max(0, int(strikes))
        except (TypeError, ValueError):
            max_strikes = 0
        return cls(
            size_bytes=parse_bytesize(size),
            time_ms=parse_duration_to_ms(time),
            strikes=max_strikes,
            aggressive=bool(aggressive),
        )


@dataclass(frozen=True)
class Outcome:
    id: int
    strikes: str
    status: Status
    name: str
    eta: str
    size: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'strikes': self.strikes,
            'status': str(self.status),
            'name': self.name,
            'eta': self.eta,
            'size': self.size,
        }
