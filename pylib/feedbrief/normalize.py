'''Map summarized feed items to the stable, externally visible item shape.'''

from collections.abc import Mapping
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import structlog

from feedbrief.models import NormalizedItem, SummarizedItem

DEFAULT_TITLE = 'Untitled'
DEFAULT_SUMMARY = 'No summary available'
DEFAULT_URL = '#'
DEFAULT_DATE = 'Unknown date'

DISPLAY_DATE_FORMAT = '%b %d, %Y'
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def generate_id(value: str) -> int:
    '''
    Stable unsigned 32-bit id from a string (31-multiplier string hash,
    absolute value). Collisions are possible but rare.
    '''
    h = 0
    for ch in value:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def parse_date(value: Any) -> datetime | None:
    '''
    Parse RFC 822 (RSS), ISO 8601 (Atom) or display-format ("Mar 3, 2025")
    dates. Naive results are taken as UTC. Returns None when nothing matches.
    '''
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        dt = _parse_date_str(value.strip())
        if dt is None:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_date_str(s: str) -> datetime | None:
    try:
        return parsedate_to_datetime(s)
    except (TypeError, ValueError, IndexError):
        pass
    try:
        return datetime.fromisoformat(s.replace('Z', '+00:00'))
    except ValueError:
        pass
    try:
        return datetime.strptime(s, DISPLAY_DATE_FORMAT)
    except ValueError:
        return None


def format_date(value: Any, fallback: str = DEFAULT_DATE) -> str:
    '''Readable date like "Mar 3, 2025", or fallback when value is not a date.'''
    dt = parse_date(value)
    if dt is None:
        if value:
            structlog.get_logger().warning('failed to format date', value=value)
        return fallback
    return f'{dt:%b} {dt.day}, {dt.year}'


def sort_key(date: str) -> datetime:
    '''Date used for ordering; unparseable dates sort as the Unix epoch.'''
    return parse_date(date) or EPOCH


def _clean(value: Any, fallback: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def normalize_item(item: SummarizedItem | Mapping[str, Any], defaults: Mapping[str, str] | None = None) -> NormalizedItem:
    '''
    Build a NormalizedItem with every display field non-empty. Pure: the same
    input always produces the same output.

    item may be a SummarizedItem or a mapping with title/summary/link/pub_date
    (pubDate is accepted too). defaults overrides the built-in fallbacks.
    '''
    defaults = defaults or {}
    if isinstance(item, SummarizedItem):
        title, summary, link, pub_date = item.title, item.summary, item.link, item.pub_date
    else:
        title = item.get('title')
        summary = item.get('summary')
        link = item.get('link')
        pub_date = item.get('pub_date', item.get('pubDate'))

    url = _clean(link, defaults.get('url', DEFAULT_URL))
    return NormalizedItem(
        id=generate_id(url),
        title=_clean(title, defaults.get('title', DEFAULT_TITLE)),
        summary=_clean(summary, defaults.get('summary', DEFAULT_SUMMARY)),
        date=format_date(pub_date, defaults.get('date', DEFAULT_DATE)),
        url=url,
    )
