'''
Composition root: one cache shared by the fetcher and summarizer, the batch
pipeline on top, and the query layer over its output.

`handle_request` is the contract a transport (HTTP route, CLI) calls. It maps
client errors to 400 and anything unexpected to 500 without leaking details.
'''

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx
import structlog

from feedbrief.cache import TTLCache
from feedbrief.config import Settings
from feedbrief.errors import ValidationError
from feedbrief.fetchers.feed import FeedFetcher
from feedbrief.llm import Generator, make_generator
from feedbrief.models import PipelineResult, QueryParams
from feedbrief.pipeline import BatchPipeline
from feedbrief.query import parse_query, query, validate_params
from feedbrief.summarizer import Summarizer

UNEXPECTED_ERROR_MESSAGE = 'An unexpected error occurred while fetching news.'


class NewsService:
    def __init__(
        self,
        settings: Settings,
        *,
        generate: Generator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.cache = TTLCache(enabled=settings.cache_enabled, default_ttl=settings.cache_ttl, clock=clock)
        self.fetcher = FeedFetcher(
            self.cache,
            refresh_interval=settings.refresh_interval,
            timeout=settings.fetch_timeout,
            transport=transport,
        )
        self.summarizer = Summarizer(
            self.cache,
            generate or make_generator(settings.llm),
            min_length=settings.min_length_for_summarization,
            fallback_length=settings.fallback_summary_length,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            attempts=settings.summary_attempts,
        )
        self.pipeline = BatchPipeline(
            self.fetcher,
            self.summarizer,
            batch_size=settings.batch_size,
            batch_delay=settings.batch_delay,
            item_timeout=settings.summary_timeout,
            sleep=sleep,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> NewsService:
        '''Construct after logging any configuration problems.'''
        log = structlog.get_logger()
        for problem in settings.validate():
            log.error('configuration validation failed', problem=problem)
        return cls(settings, **kwargs)

    async def get_news(self, params: QueryParams, feed_url: str | None = None) -> PipelineResult:
        '''
        Fetch, summarize and query one page. Raises ValidationError for a bad
        offset/limit before any fetching happens.
        '''
        offset, limit = validate_params(params.offset, params.limit)
        url = feed_url or self.settings.feed_url
        if self.settings.single_pagination:
            # Whole feed, paginated once by the query layer
            result = await self.pipeline.get_summarized_news(url, limit=None, offset=0)
        else:
            result = await self.pipeline.get_summarized_news(url, limit=limit, offset=offset)
        if not result.items:
            return PipelineResult.empty()
        return query(result, params)

    async def handle_request(self, raw: Mapping[str, Any]) -> tuple[int, dict[str, Any]]:
        '''Transport contract: (status code, JSON-able body).'''
        log = structlog.get_logger()
        try:
            params = parse_query(raw)
            result = await self.get_news(params)
        except ValidationError as e:
            log.info('rejected request', error=str(e))
            return 400, {'error': str(e)}
        except Exception:
            log.exception('unexpected error handling news request')
            return 500, {'error': UNEXPECTED_ERROR_MESSAGE}
        return 200, result.to_dict()

    async def refresh(self) -> None:
        '''Drop expired cache entries, then warm the feed and the first page of summaries.'''
        log = structlog.get_logger()
        removed = self.cache.sweep()
        log.info('swept cache', removed=removed, remaining=self.cache.size())
        limit = None if self.settings.single_pagination else self.settings.item_limit
        result = await self.pipeline.get_summarized_news(self.settings.feed_url, limit=limit, offset=0)
        log.info('refreshed feed', url=self.settings.feed_url, items=len(result.items), total=result.total)

    def clear_cache(self) -> None:
        self.cache.clear()

    async def aclose(self) -> None:
        self.clear_cache()
