'''RSS/Atom parsing using feedparser.'''

import asyncio
from typing import Any

import feedparser
import structlog

from feedbrief.errors import FeedParseError
from feedbrief.models import RawFeedItem

logger = structlog.get_logger()


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _entry_content(entry: dict[str, Any]) -> str | None:
    '''First content block of an Atom entry (or content:encoded in RSS).'''
    content = entry.get('content')
    if isinstance(content, list):
        for block in content:
            if isinstance(block, dict) and _text(block.get('value')):
                return block['value']
    return None


def entry_to_item(entry: dict[str, Any]) -> RawFeedItem:
    '''Map a feedparser entry to a RawFeedItem, keeping fields as received.'''
    return RawFeedItem(
        title=_text(entry.get('title')),
        description=_text(entry.get('summary')) or _text(entry.get('description')),
        content=_entry_content(entry),
        link=_text(entry.get('link')),
        pub_date=_text(entry.get('published')) or _text(entry.get('updated')),
    )


def parse_feed(document: bytes | str) -> list[RawFeedItem]:
    '''
    Parse a feed document into items, in document order.

    feedparser tolerates a lot of breakage and flags it with `bozo`. A flagged
    document that still produced entries is used; one with no entries raises FeedParseError.
    '''
    feed = feedparser.parse(document)
    entries = getattr(feed, 'entries', None)
    if not isinstance(entries, list):
        raise FeedParseError('Feed has no entries list')
    if getattr(feed, 'bozo', 0):
        exc = getattr(feed, 'bozo_exception', None)
        if not entries:
            msg = 'Invalid RSS/Atom feed'
            if exc:
                msg += f' ({exc})'
            raise FeedParseError(msg)
        logger.warning('feed is malformed but has entries', entries=len(entries), error=str(exc))
    return [entry_to_item(e) for e in entries]


async def parse_feed_async(document: bytes | str) -> list[RawFeedItem]:
    '''parse_feed off the event loop; feedparser is sync.'''
    return await asyncio.to_thread(parse_feed, document)
