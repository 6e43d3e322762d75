from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import aiohttp


class RequestError(Exception):
    def __init__(self, message: str, status: Optional[int] = None, *, invalid_response: bool = False) -> None:
        super().__init__(message)
        self.status = status
        self.invalid_response = invalid_response


def api_url(base_url: str, path: str) -> str:
    return f"{str(base_url).rstrip('/')}/api/v3/{path.lstrip('/')}"


async def send_api_request(
    session: aiohttp.ClientSession,
    url: str,
    api_key: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    method: str = 'get',
    request_timeout: int = 10,
    expect_status: Optional[int] = None,
) -> Any:
    """Perform one request and return the decoded body.

    Raises :class:`RequestError` on transport, HTTP or decode failure. There
    is no retry here; callers degrade and try again on the next run.
    """
    headers = {'X-Api-Key': api_key}
    timeout = aiohttp.ClientTimeout(total=request_timeout)
    try:
        async with session.request(method, url, headers=headers, params=params, timeout=timeout) as response:
            if response.status >= 400 or (expect_status is not None and response.status != expect_status):
                raise RequestError(f'HTTP {response.status} from {url}', status=response.status)
            content_type = response.headers.get('Content-Type', '')
            if response.status == 204 or 'application/json' not in content_type:
                return {'status': response.status}
            try:
                return await response.json()
            except (aiohttp.ContentTypeError, ValueError) as e:
                raise RequestError(f'Invalid JSON from {url}: {e}', status=response.status, invalid_response=True) from e
    except RequestError:
        raise
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise RequestError(f'{type(e).__name__}: {e}') from e
