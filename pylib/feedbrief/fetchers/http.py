'''HTTP retrieval of feed documents using httpx.'''

import asyncio

import httpx

from feedbrief.errors import FeedFetchError

DEFAULT_TIMEOUT = 10.0


async def fetch_document(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bytes:
    '''
    Fetch URL and return the raw body. The whole request, body included, is
    bounded by timeout seconds.

    Raises FeedFetchError on non-2xx responses, network errors and timeouts.
    '''

    async def _get() -> bytes:
        async with httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        ) as client:
            resp = await client.get(url, headers={'Cache-Control': 'no-cache'})
            resp.raise_for_status()
            return resp.content

    try:
        return await asyncio.wait_for(_get(), timeout)
    except httpx.HTTPStatusError as e:
        raise FeedFetchError(
            f'Failed to fetch RSS feed: {e.response.status_code} {e.response.reason_phrase}'
        ) from e
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        raise FeedFetchError(f'Timed out after {timeout}s fetching {url}') from e
    except httpx.HTTPError as e:
        raise FeedFetchError(f'Failed to fetch RSS feed: {url} ({e})') from e
