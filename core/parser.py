from __future__ import annotations

import re
from typing import Any, Dict, List, Tuple

# Conversions are total: bad input yields 0 (or "Infinite" for rendering),
# so one malformed queue field never aborts the rest of a run.

_SIZE_RE = re.compile(r'^\s*([0-9]*\.?[0-9]+)\s*([a-zA-Z]*)\s*$')
_INTERVAL_RE = re.compile(r'^\s*([0-9]*\.?[0-9]+)\s*([a-zA-Z]*)\s*$')

SIZE_UNITS: Dict[str, int] = {
    '': 1,
    'b': 1,
    'k': 1000,
    'kb': 1000,
    'm': 1000 ** 2,
    'mb': 1000 ** 2,
    'g': 1000 ** 3,
    'gb': 1000 ** 3,
    't': 1000 ** 4,
    'tb': 1000 ** 4,
    'p': 1000 ** 5,
    'pb': 1000 ** 5,
    'kib': 1024,
    'mib': 1024 ** 2,
    'gib': 1024 ** 3,
    'tib': 1024 ** 4,
    'pib': 1024 ** 5,
    'ki': 1024,
    'mi': 1024 ** 2,
    'gi': 1024 ** 3,
    'ti': 1024 ** 4,
    'pi': 1024 ** 5,
}

INTERVAL_UNITS: Dict[str, int] = {
    '': 1,
    'ms': 1,
    's': 1000,
    'sec': 1000,
    'secs': 1000,
    'm': 60 * 1000,
    'min': 60 * 1000,
    'mins': 60 * 1000,
    'h': 3600 * 1000,
    'hr': 3600 * 1000,
    'hrs': 3600 * 1000,
    'd': 86400 * 1000,
    'day': 86400 * 1000,
    'days': 86400 * 1000,
}

# (seconds, singular, plural) in descending order, humantime-style
_ETA_UNITS: List[Tuple[int, str, str]] = [
    (31_557_600, 'year', 'years'),
    (2_630_016, 'month', 'months'),
    (86_400, 'day', 'days'),
    (3_600, 'h', 'h'),
    (60, 'm', 'm'),
    (1, 's', 's'),
]


def _field(part: str) -> int:
    return int(part) if part.isascii() and part.isdigit() else 0


def parse_duration_to_ms(value: Any) -> int:
    """Convert a ``[days.]hours:minutes:seconds`` string to milliseconds.

    ``"12:34:56"`` and ``"1.02:03:04"`` are accepted. A field that is not a
    number counts as 0 on its own; any other field count yields 0.
    """
    if value is None:
        return 0
    parts = re.split(r'[:.]', str(value).strip())
    if len(parts) < 3 or len(parts) > 4:
        return 0
    nums = [_field(p) for p in parts]
    if len(nums) == 3:
        days = 0
        hours, minutes, seconds = nums
    else:
        days, hours, minutes, seconds = nums
    return ((days * 24 + hours) * 3600 + minutes * 60 + seconds) * 1000


def format_ms_as_eta(ms: Any) -> str:
    try:
        ms = int(ms)
    except (TypeError, ValueError):
        return 'Infinite'
    if ms <= 0:
        return 'Infinite'
    secs, millis = divmod(ms, 1000)
    parts: List[str] = []
    for unit_secs, singular, plural in _ETA_UNITS:
        count, secs = divmod(secs, unit_secs)
        if count:
            parts.append(f'{count}{singular if count == 1 else plural}')
    if millis:
        parts.append(f'{millis}ms')
    return ' '.join(parts)


def parse_bytesize(value: Any) -> int:
    """Convert ``"1 TB"``, ``"512 MB"``, ``"1.5 GB"`` or ``"4GiB"`` to bytes."""
    if value is None:
        return 0
    m = _SIZE_RE.match(str(value))
    if not m:
        return 0
    factor = SIZE_UNITS.get(m.group(2).lower())
    if factor is None:
        return 0
    try:
        return int(float(m.group(1)) * factor)
    except ValueError:
        return 0


def parse_interval_to_ms(value: Any) -> int:
    # "10m", "30s", "1.5h", "500ms" or a bare millisecond count
    if value is None:
        return 0
    m = _INTERVAL_RE.match(str(value))
    if not m:
        return 0
    factor = INTERVAL_UNITS.get(m.group(2).lower())
    if factor is None:
        return 0
    try:
        return int(float(m.group(1)) * factor)
    except ValueError:
        return 0


def format_gigabytes(size: Any) -> str:
    try:
        return f'{int(size) / 1_000_000_000:.2f} GB'
    except (TypeError, ValueError):
        return '0.00 GB'
