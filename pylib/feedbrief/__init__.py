'''
feedbrief: fetch one RSS/Atom feed, summarize each item with an LLM, and serve
the results with search, sorting and pagination.

Pipeline: fetch (cached) → summarize in rate-limited batches (cached) → normalize → search → sort → paginate
'''

from feedbrief.cache import TTLCache
from feedbrief.config import Settings
from feedbrief.models import NormalizedItem, PipelineResult, QueryParams, RawFeedItem, SummarizedItem
from feedbrief.service import NewsService

__all__ = [
    'NewsService',
    'NormalizedItem',
    'PipelineResult',
    'QueryParams',
    'RawFeedItem',
    'Settings',
    'SummarizedItem',
    'TTLCache',
]
