import asyncio
import logging
import sys
from functools import partial
from typing import Optional

import aiohttp

from core.config import Settings, load_settings, validate_config
from core.events import EventBus
from core.runner import RunnerState, run_forever
from integrations.health import HealthCheckError, check_health, platform_label
from integrations.queue import delete_queue_item, fetch_queue
from integrations.render import render_table
from storage.strikes import StrikeLedger

LOG_FORMAT = '%(asctime)s [%(levelname)s]: %(message)s'
EVENT_LOGGER_NAME = 'queue_striker.events'


def setup_logging(debug_logging: bool = False) -> logging.Logger:
    level = logging.DEBUG if debug_logging else logging.INFO
    logging.basicConfig(
        format=LOG_FORMAT,
        level=level,
        handlers=[logging.StreamHandler()],
        force=True,
    )
    # Dedicated non-propagating logger for decision events to avoid duplicate lines
    event_log = logging.getLogger(EVENT_LOGGER_NAME)
    event_log.setLevel(level)
    event_log.propagate = False
    for h in list(event_log.handlers):
        event_log.removeHandler(h)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    event_log.addHandler(handler)
    return event_log


def build_event_bus(settings: Settings, logger: Optional[logging.Logger] = None) -> EventBus:
    return EventBus(
        structured_logs=settings.structured_logs,
        explain_decisions=settings.explain_decisions,
        logger=logger or logging.getLogger(EVENT_LOGGER_NAME),
    )


async def monitor(settings: Settings, *, ledger: Optional[StrikeLedger] = None, max_runs: Optional[int] = None) -> int:
    event_log = logging.getLogger(EVENT_LOGGER_NAME)
    state = RunnerState(
        check_interval_ms=settings.check_interval_ms,
        ledger=ledger if ledger is not None else StrikeLedger(),
        prune_stale_strikes=settings.prune_stale_strikes,
    )
    thresholds = settings.thresholds()
    async with aiohttp.ClientSession() as session:
        try:
            await check_health(
                session, settings.baseurl, settings.apikey, settings.platform, request_timeout=settings.request_timeout
            )
        except HealthCheckError as e:
            logging.critical(f'{e} {e.hint or ""}'.strip())
            return 1

        logging.info(
            f'Monitoring {platform_label(settings.platform)} queue at {settings.baseurl} every {settings.check_interval} '
            f'(strikes={thresholds.strikes} time={settings.time_threshold} size={settings.size_threshold} '
            f'aggressive={thresholds.aggressive} dry_run={settings.dry_run})'
        )
        await run_forever(
            state,
            thresholds,
            fetch_cb=partial(
                fetch_queue,
                session,
                settings.baseurl,
                settings.apikey,
                settings.platform,
                page_size=settings.queue_page_size,
                request_timeout=settings.request_timeout,
            ),
            delete_cb=partial(
                delete_queue_item,
                session,
                settings.baseurl,
                settings.apikey,
                request_timeout=settings.request_timeout,
                dry_run=settings.dry_run,
            ),
            sink=render_table,
            event_bus=build_event_bus(settings, event_log),
            max_runs=max_runs,
        )
    return 0


def main(max_runs: Optional[int] = None) -> int:
    settings = load_settings()
    setup_logging(settings.debug_logging)
    validate_config(settings)
    return asyncio.run(monitor(settings, max_runs=max_runs))


if __name__ == '__main__':
    sys.exit(main())
