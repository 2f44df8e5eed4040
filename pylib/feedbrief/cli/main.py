'''CLI for the feed summarizer: one-off queries and a cache-warming refresh loop.'''

import asyncio
import json

import fire
import structlog
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from feedbrief.config import Settings
from feedbrief.scheduler import IntervalScheduler
from feedbrief.service import NewsService


def _configure_plain_tracebacks() -> None:
    '''Use standard Python tracebacks instead of Rich's fancy format.'''
    from structlog.contextvars import merge_contextvars
    from structlog.dev import ConsoleRenderer, plain_traceback, set_exc_info
    from structlog.processors import StackInfoRenderer, TimeStamper, add_log_level

    structlog.configure(
        processors=[
            merge_contextvars,
            add_log_level,
            StackInfoRenderer(),
            set_exc_info,
            TimeStamper(fmt='%Y-%m-%d %H:%M:%S', utc=False),
            ConsoleRenderer(exception_formatter=plain_traceback),
        ],
    )


def _load_settings(env_file: str = '', feed_url: str = '') -> Settings:
    settings = Settings.from_env(env_file or None)
    if feed_url:
        settings.feed_url = feed_url
    return settings


def main() -> None:
    '''feedbrief: summarized RSS news with search, sorting and pagination.'''
    _configure_plain_tracebacks()
    fire.Fire({
        'news': news,
        'serve': serve,
    })


def news(
    offset: int = 0,
    limit: int = 5,
    search: str = '',
    sort_order: str = 'newest',
    categories: str = '',
    sources: str = '',
    feed_url: str = '',
    env_file: str = '',
    as_json: bool = False,
) -> None:
    '''
    Fetch, summarize and print one page of news.
    offset, limit: page window (offset >= 0, limit > 0)
    search: case-insensitive substring filter on title and summary
    sort_order: newest | oldest
    categories, sources: comma-separated; passed through, not filtered
    feed_url: overrides RSS_FEED_URL
    env_file: path to a .env file (default: ./.env if present)
    as_json: print the response body as JSON instead of a table
    '''
    settings = _load_settings(env_file, feed_url)
    raw = {
        'offset': offset,
        'limit': limit,
        'search': search,
        'sortOrder': sort_order,
        'categories': categories,
        'sources': sources,
    }
    status, body = asyncio.run(_handle_once(settings, raw))

    console = Console()
    if as_json or status != 200:
        console.print_json(json.dumps(body))
        if status != 200:
            raise SystemExit(1)
        return

    table = Table(title=f'{body["total"]} items (has more: {body["hasMore"]})')
    table.add_column('Date', no_wrap=True)
    table.add_column('Title')
    table.add_column('Summary')
    for item in body['items']:
        table.add_row(item['date'], f'[link={item["url"]}]{item["title"]}[/link]', item['summary'])
    console.print(table)


async def _handle_once(settings: Settings, raw: dict) -> tuple[int, dict]:
    service = NewsService.from_settings(settings)
    try:
        return await service.handle_request(raw)
    finally:
        await service.aclose()


def serve(
    feed_url: str = '',
    env_file: str = '',
    interval: float = 0,
) -> None:
    '''
    Keep the feed and its summaries warm: refresh every interval seconds
    (default: RSS_REFRESH_INTERVAL), sweeping expired cache entries each time.
    '''
    console = Console()
    settings = _load_settings(env_file, feed_url)
    interval = interval or settings.refresh_interval
    console.print(Panel(f'Refreshing {settings.feed_url} every {interval}s', title='feedbrief'))
    asyncio.run(_serve(settings, interval))


async def _serve(settings: Settings, interval: float) -> None:
    service = NewsService.from_settings(settings)
    scheduler = IntervalScheduler(interval_seconds=interval)
    scheduler.schedule(service.refresh)
    await scheduler.start()
    try:
        while True:
            await asyncio.sleep(3600)
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        await scheduler.stop()
        await service.aclose()
