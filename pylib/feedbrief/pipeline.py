'''
Batch pipeline: fetch the feed, then summarize items in fixed-size chunks.

Items inside a chunk are summarized concurrently; chunks run one after
another with a fixed pause between them to stay under the LLM provider's
rate limit.
'''

import asyncio
import time
from collections.abc import Awaitable, Callable

import structlog

from feedbrief.fetchers.feed import FeedFetcher
from feedbrief.models import PipelineResult, RawFeedItem, SummarizedItem
from feedbrief.summarizer import Summarizer

UNAVAILABLE_SUMMARY = 'Summary unavailable at this time.'
NO_SUMMARY = 'No summary available'


def chunked(items: list, size: int) -> list[list]:
    '''Consecutive chunks of size; the last may be shorter.'''
    if size < 1:
        raise ValueError(f'batch size must be positive, got {size}')
    return [items[i : i + size] for i in range(0, len(items), size)]


class BatchPipeline:
    def __init__(
        self,
        fetcher: FeedFetcher,
        summarizer: Summarizer,
        *,
        batch_size: int = 3,
        batch_delay: float = 1.0,
        item_timeout: float | None = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        '''
        batch_size: items summarized concurrently per chunk
        batch_delay: seconds to wait between chunks
        item_timeout: per-item bound on a summarization call; None disables it
        sleep: awaited for the inter-chunk delay (swappable in tests)
        '''
        self.fetcher = fetcher
        self.summarizer = summarizer
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.item_timeout = item_timeout
        self._sleep = sleep

    async def summarize_item(self, item: RawFeedItem) -> SummarizedItem:
        '''Summarize one item. Any failure, timeout included, yields the placeholder summary.'''
        text = item.source_text
        if not text:
            return SummarizedItem(item=item, summary=NO_SUMMARY)
        try:
            summary = await asyncio.wait_for(self.summarizer.summarize(text), self.item_timeout)
        except asyncio.TimeoutError:
            structlog.get_logger().error('summarization timed out', title=item.title, timeout=self.item_timeout)
            summary = UNAVAILABLE_SUMMARY
        except Exception:
            structlog.get_logger().exception('error processing item', title=item.title)
            summary = UNAVAILABLE_SUMMARY
        return SummarizedItem(item=item, summary=summary)

    async def process(self, items: list[RawFeedItem], batch_size: int | None = None) -> list[SummarizedItem]:
        '''
        Summarize items chunk by chunk. Output order matches input order.
        '''
        log = structlog.get_logger()
        size = self.batch_size if batch_size is None else batch_size
        batches = chunked(list(items), size)
        log.info('processing items in batches', items=len(items), batches=len(batches), batch_size=size)

        results: list[SummarizedItem] = []
        for number, batch in enumerate(batches, start=1):
            log.info('processing batch', batch=number, batches=len(batches), size=len(batch))
            started = time.monotonic()
            # gather returns results in argument order regardless of completion order
            results.extend(await asyncio.gather(*(self.summarize_item(it) for it in batch)))
            log.info('completed batch', batch=number, batches=len(batches), seconds=round(time.monotonic() - started, 2))

            if number < len(batches):
                log.debug('waiting before next batch', delay=self.batch_delay)
                await self._sleep(self.batch_delay)

        log.info('completed all batches', batches=len(batches), items=len(results))
        return results

    async def get_summarized_news(self, feed_url: str, limit: int | None = None, offset: int = 0) -> PipelineResult:
        '''
        Fetch a page of the feed and summarize it. has_more and total come from
        the fetch step unchanged.
        '''
        log = structlog.get_logger()
        log.info('getting summarized news', url=feed_url, limit=limit, offset=offset)
        started = time.monotonic()

        feed = await self.fetcher.fetch(feed_url, limit=limit, offset=offset)
        if not feed.items:
            log.warning('no news items found', url=feed_url)
            return PipelineResult.empty()

        items = await self.process(feed.items)
        log.info('completed news processing', url=feed_url, seconds=round(time.monotonic() - started, 2))
        return PipelineResult(items=items, has_more=feed.has_more, total=feed.total)
