'''Feed retrieval: HTTP fetch, RSS/Atom parsing, cached fetcher.'''

from feedbrief.fetchers.feed import FeedFetcher, feed_cache_key, paginate
from feedbrief.fetchers.http import fetch_document
from feedbrief.fetchers.rss import entry_to_item, parse_feed, parse_feed_async

__all__ = [
    'FeedFetcher',
    'entry_to_item',
    'feed_cache_key',
    'fetch_document',
    'paginate',
    'parse_feed',
    'parse_feed_async',
]
