'''
Feed fetcher: retrieve, parse and cache the full item list of one feed, then
hand back a page of it. Failures degrade to an empty result.
'''

import httpx
import structlog

from feedbrief.cache import TTLCache
from feedbrief.fetchers.http import DEFAULT_TIMEOUT, fetch_document
from feedbrief.fetchers.rss import parse_feed_async
from feedbrief.models import PipelineResult, RawFeedItem

FEED_KEY_PREFIX = 'rss_feed_'


def feed_cache_key(feed_url: str) -> str:
    return f'{FEED_KEY_PREFIX}{feed_url}'


def paginate(items: list, limit: int | None, offset: int) -> PipelineResult:
    '''Slice [offset, offset+limit). limit=None takes everything from offset on.'''
    total = len(items)
    if limit is None:
        return PipelineResult(items=list(items[offset:]), has_more=False, total=total)
    return PipelineResult(
        items=list(items[offset : offset + limit]),
        has_more=offset + limit < total,
        total=total,
    )


class FeedFetcher:
    '''Fetches one feed through the shared cache.'''

    def __init__(
        self,
        cache: TTLCache,
        refresh_interval: float,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.cache = cache
        self.refresh_interval = refresh_interval
        self.timeout = timeout
        self.transport = transport

    async def load_items(self, feed_url: str) -> list[RawFeedItem]:
        '''Full unpaginated item list, from cache when fresh. Errors propagate.'''
        log = structlog.get_logger()
        key = feed_cache_key(feed_url)
        cached = self.cache.get(key)
        if cached is not None:
            log.info('using cached RSS feed data', url=feed_url, items=len(cached))
            return cached

        log.info('fetching fresh RSS feed data', url=feed_url)
        document = await fetch_document(feed_url, timeout=self.timeout, transport=self.transport)
        items = await parse_feed_async(document)
        self.cache.set(key, items, self.refresh_interval)
        return items

    async def fetch(self, feed_url: str, limit: int | None = None, offset: int = 0) -> PipelineResult:
        '''
        Return a page of raw items with has_more/total over the full feed.
        Any fetch or parse failure is logged and yields an empty result.
        '''
        log = structlog.get_logger()
        try:
            items = await self.load_items(feed_url)
        except Exception:
            log.exception('error fetching RSS feed', url=feed_url)
            return PipelineResult.empty()

        page = paginate(items, limit, offset)
        log.info('returning feed items', url=feed_url, count=len(page.items), offset=offset, limit=limit)
        return page
