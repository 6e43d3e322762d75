from __future__ import annotations

import logging
from typing import Optional

import aiohttp

from integrations.services import RequestError, api_url, send_api_request


class HealthCheckError(Exception):
    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint


def platform_label(platform: str) -> str:
    return str(platform or '').capitalize() or 'Platform'


async def check_health(
    session: aiohttp.ClientSession,
    base_url: str,
    api_key: str,
    platform: str,
    *,
    request_timeout: int = 10,
) -> None:
    """Confirm the platform API is reachable and accepts the API key.

    Raises :class:`HealthCheckError`; the caller treats it as fatal.
    """
    label = platform_label(platform)
    try:
        await send_api_request(
            session, api_url(base_url, 'health'), api_key, request_timeout=request_timeout, expect_status=200
        )
    except RequestError as e:
        if e.invalid_response:
            # Only the status code matters here
            logging.debug(f'{label} API health check returned an unreadable body: {e}')
            return
        if e.status is not None:
            raise HealthCheckError(
                'The provided APIKEY is not valid.',
                hint=f'Obtain the {label} API key in Settings > General > API Key',
            ) from e
        raise HealthCheckError(
            f'A connection to the {label} API could not be established.',
            hint=str(e),
        ) from e
    logging.debug(f'{label} API health check passed')
