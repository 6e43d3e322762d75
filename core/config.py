from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml

from core.models import Thresholds
from core.parser import parse_bytesize, parse_duration_to_ms, parse_interval_to_ms

SUPPORTED_PLATFORMS = ('radarr', 'sonarr')

DEFAULT_PLATFORM = 'radarr'
DEFAULT_BASEURL = 'http://127.0.0.1:7878'
DEFAULT_TIME_THRESHOLD = '02:00:00'
DEFAULT_SIZE_THRESHOLD = '25 GB'
DEFAULT_STRIKE_THRESHOLD = 3
DEFAULT_CHECK_INTERVAL = '10m'
DEFAULT_CHECK_INTERVAL_MS = 10 * 60 * 1000
DEFAULT_REQUEST_TIMEOUT = 10
DEFAULT_QUEUE_PAGE_SIZE = 500


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ['true', '1', 'yes']


def get_env_var(key: str, default: Any = None, cast_to: Callable[[Any], Any] = str, env: Optional[Mapping[str, str]] = None) -> Any:
    source = os.environ if env is None else env
    value = source.get(key, default)
    if value is None:
        return default
    try:
        return cast_to(value)
    except (TypeError, ValueError):
        return default


def load_yaml(path: str) -> Dict[str, Any]:
    if not path or not os.path.exists(path):
        return {}
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logging.warning(f'Config file {path} could not be read; using environment only ({e})')
        return {}
    return data if isinstance(data, dict) else {}


class ConfigAccessor:
    def __init__(self, cfg: Dict[str, Any]) -> None:
        self.cfg = cfg if isinstance(cfg, dict) else {}

    def general(self, key: str, default: Any = None) -> Any:
        gen = self.cfg.get('general') if isinstance(self.cfg.get('general'), dict) else {}
        return gen.get(key, default)


@dataclass(frozen=True)
class Settings:
    platform: str
    baseurl: str
    apikey: str
    time_threshold: str
    size_threshold: str
    strike_threshold: int
    aggressive_strikes: bool
    check_interval: str
    check_interval_ms: int
    prune_stale_strikes: bool = True
    dry_run: bool = False
    explain_decisions: bool = False
    structured_logs: bool = False
    debug_logging: bool = False
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    queue_page_size: int = DEFAULT_QUEUE_PAGE_SIZE

    def thresholds(self) -> Thresholds:
        return Thresholds.from_strings(
            self.size_threshold,
            self.time_threshold,
            self.strike_threshold,
            self.aggressive_strikes,
        )


def sanitize_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(cfg, dict):
        return {}
    out = dict(cfg)
    gen = dict(out.get('general')) if isinstance(out.get('general'), dict) else {}

    def _nz(v, cast, default):
        try:
            return cast(v)
        except (TypeError, ValueError):
            return default

    if 'strike_threshold' in gen:
        gen['strike_threshold'] = max(0, _nz(gen['strike_threshold'], int, DEFAULT_STRIKE_THRESHOLD))
    if 'request_timeout' in gen:
        gen['request_timeout'] = max(1, _nz(gen['request_timeout'], int, DEFAULT_REQUEST_TIMEOUT))
    if 'queue_page_size' in gen:
        gen['queue_page_size'] = max(1, _nz(gen['queue_page_size'], int, DEFAULT_QUEUE_PAGE_SIZE))
    tt = gen.get('time_threshold')
    if isinstance(tt, int) and not isinstance(tt, bool):
        # YAML 1.1 reads an unquoted 02:00:00 as sexagesimal seconds
        gen['time_threshold'] = f'{tt // 3600:02d}:{tt % 3600 // 60:02d}:{tt % 60:02d}'
    for key in ('platform', 'baseurl', 'time_threshold', 'size_threshold', 'check_interval'):
        if key in gen and gen[key] is not None:
            gen[key] = str(gen[key])
    if 'platform' in gen:
        gen['platform'] = gen['platform'].strip().lower()
    for key in ('aggressive_strikes', 'prune_stale_strikes', 'dry_run', 'explain_decisions', 'structured_logs', 'debug_logging'):
        if key in gen:
            gen[key] = _as_bool(gen[key])
    out['general'] = gen
    return out


def load_settings(env: Optional[Mapping[str, str]] = None, cfg: Optional[Dict[str, Any]] = None) -> Settings:
    """Resolve settings from the environment, overridden by YAML ``general:``.

    When ``cfg`` is None the YAML file named by ``CONFIG_PATH`` is loaded.
    The API key is only ever read from the environment.
    """
    if cfg is None:
        cfg = load_yaml(get_env_var('CONFIG_PATH', '/app/config.yaml', env=env))
    ac = ConfigAccessor(sanitize_config(cfg))

    def _get(yaml_key: str, env_key: str, default: Any, cast_to: Callable[[Any], Any] = str) -> Any:
        val = ac.general(yaml_key, None)
        if val is not None:
            return val
        return get_env_var(env_key, default, cast_to=cast_to, env=env)

    strike_threshold = max(0, int(_get('strike_threshold', 'STRIKE_THRESHOLD', DEFAULT_STRIKE_THRESHOLD, int)))
    check_interval = str(_get('check_interval', 'CHECK_INTERVAL', DEFAULT_CHECK_INTERVAL))
    check_interval_ms = parse_interval_to_ms(check_interval)
    if check_interval_ms <= 0:
        logging.warning(f'CHECK_INTERVAL "{check_interval}" is not a valid interval; using {DEFAULT_CHECK_INTERVAL}')
        check_interval_ms = DEFAULT_CHECK_INTERVAL_MS

    return Settings(
        platform=str(_get('platform', 'PLATFORM', DEFAULT_PLATFORM)).strip().lower(),
        baseurl=str(_get('baseurl', 'BASEURL', DEFAULT_BASEURL)).rstrip('/'),
        apikey=get_env_var('APIKEY', '', env=env),
        time_threshold=str(_get('time_threshold', 'TIME_THRESHOLD', DEFAULT_TIME_THRESHOLD)),
        size_threshold=str(_get('size_threshold', 'SIZE_THRESHOLD', DEFAULT_SIZE_THRESHOLD)),
        strike_threshold=strike_threshold,
        aggressive_strikes=bool(_get('aggressive_strikes', 'AGGRESSIVE_STRIKES', False, _as_bool)),
        check_interval=check_interval,
        check_interval_ms=check_interval_ms,
        prune_stale_strikes=bool(_get('prune_stale_strikes', 'PRUNE_STALE_STRIKES', True, _as_bool)),
        dry_run=bool(_get('dry_run', 'DRY_RUN', False, _as_bool)),
        explain_decisions=bool(_get('explain_decisions', 'EXPLAIN_DECISIONS', False, _as_bool)),
        structured_logs=bool(_get('structured_logs', 'STRUCTURED_LOGS', False, _as_bool)),
        debug_logging=bool(_get('debug_logging', 'DEBUG_LOGGING', False, _as_bool)),
        request_timeout=max(1, int(_get('request_timeout', 'REQUEST_TIMEOUT', DEFAULT_REQUEST_TIMEOUT, int))),
        queue_page_size=max(1, int(_get('queue_page_size', 'QUEUE_PAGE_SIZE', DEFAULT_QUEUE_PAGE_SIZE, int))),
    )


def validate_config(settings: Settings) -> List[str]:
    problems: List[str] = []
    if settings.platform not in SUPPORTED_PLATFORMS:
        problems.append(f'PLATFORM "{settings.platform}" is not one of {", ".join(SUPPORTED_PLATFORMS)}; item names will show as Unknown.')
    if not settings.apikey:
        problems.append('APIKEY is not set; requests to the API will be rejected.')
    if parse_duration_to_ms(settings.time_threshold) == 0:
        problems.append(f'TIME_THRESHOLD "{settings.time_threshold}" is not an HH:MM:SS value; every item with an ETA will be striked.')
    if parse_bytesize(settings.size_threshold) == 0:
        problems.append(f'SIZE_THRESHOLD "{settings.size_threshold}" is not a size; every item will be ignored.')
    for p in problems:
        logging.warning(p)
    return problems
