from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import aiohttp

from core.models import Item
from core.parser import parse_duration_to_ms
from integrations.services import RequestError, api_url, send_api_request

UNKNOWN_NAME = 'Unknown'

# Platform tag -> nested record holding the display title
NAME_SOURCES: Dict[str, str] = {
    'radarr': 'movie',
    'sonarr': 'series',
}


def queue_url(base_url: str) -> str:
    return api_url(base_url, 'queue')


def extract_name(record: Dict[str, Any], platform: str) -> str:
    field = NAME_SOURCES.get(str(platform or '').lower())
    if field is None:
        return UNKNOWN_NAME
    nested = record.get(field)
    if not isinstance(nested, dict):
        return UNKNOWN_NAME
    title = nested.get('title')
    if title is None or title == '':
        return UNKNOWN_NAME
    return str(title)


def _as_bytes(value: Any) -> int:
    try:
        size = int(float(value))
    except (TypeError, ValueError):
        return 0
    return max(0, size)


def normalize_record(record: Any, platform: str) -> Optional[Item]:
    if not isinstance(record, dict):
        return None
    item_id = record.get('id')
    if isinstance(item_id, bool) or not isinstance(item_id, int):
        logging.debug(f'Skipping queue record without an integer id: {item_id!r}')
        return None
    timeleft = record.get('timeleft')
    if timeleft is None:
        timeleft = '0'
    return Item(
        id=item_id,
        name=extract_name(record, platform),
        size=_as_bytes(record.get('size')),
        eta=parse_duration_to_ms(timeleft),
    )


def _queue_warning(cause: str, error: Any) -> None:
    logging.warning(f'Unable to process queue, will attempt again next run. {cause} ({error})')


def _page_records(data: Any) -> Optional[List[Any]]:
    records = data.get('records') if isinstance(data, dict) else None
    return records if isinstance(records, list) else None


def _total_records(data: Any) -> Optional[int]:
    total = data.get('totalRecords') if isinstance(data, dict) else None
    if isinstance(total, bool) or not isinstance(total, int):
        return None
    return total


async def fetch_queue(
    session: aiohttp.ClientSession,
    base_url: str,
    api_key: str,
    platform: str,
    *,
    page_size: int = 500,
    request_timeout: int = 10,
) -> List[Item]:
    """Fetch the whole platform queue as canonical items.

    The first page reports ``totalRecords``; the remaining pages are then
    requested in order. Any failure, on any page, yields an empty list so a
    partial snapshot is never mistaken for the full queue.
    """
    url = queue_url(base_url)
    page_size = max(1, int(page_size))
    records: List[Any] = []
    pages = 1
    page = 1
    try:
        while page <= pages:
            data = await send_api_request(
                session,
                url,
                api_key,
                params={'page': page, 'pageSize': page_size},
                request_timeout=request_timeout,
            )
            page_records = _page_records(data)
            if page_records is None:
                _queue_warning('The API has responded with an invalid response.', f'missing records on page {page}')
                return []
            records.extend(page_records)
            if page == 1:
                total = _total_records(data)
                if total is not None:
                    pages = max(1, (total + page_size - 1) // page_size)
                    if pages > 1:
                        logging.debug(f'Queue holds {total} record(s); fetching {pages} page(s) (pageSize={page_size})')
            page += 1
    except RequestError as e:
        if e.invalid_response:
            _queue_warning('The API has responded with an invalid response.', e)
        else:
            _queue_warning('The connection to the API was unsuccessful.', e)
        return []

    items: List[Item] = []
    for record in records:
        item = normalize_record(record, platform)
        if item is not None:
            items.append(item)
    logging.debug(f'Fetched {len(items)} queue item(s) from {url}')
    return items


async def delete_queue_item(
    session: aiohttp.ClientSession,
    base_url: str,
    api_key: str,
    item_id: int,
    *,
    request_timeout: int = 10,
    dry_run: bool = False,
) -> bool:
    url = api_url(base_url, f'queue/{item_id}')
    if dry_run:
        logging.info(f'[DRY RUN] Would remove and blocklist queue item id={item_id}')
        return True
    try:
        await send_api_request(
            session, url, api_key, params={'blocklist': 'true'}, method='delete', request_timeout=request_timeout
        )
    except RequestError as e:
        logging.warning(f'Failed to remove item id={item_id}, will attempt again next run. The API has refused this request. ({e})')
        return False
    logging.info(f'Removed and blocklisted queue item id={item_id}')
    return True
