'''
Query layer: search, sort and paginate summarized items.

Steps run in a fixed order: normalize, filter by search term, sort by date,
slice the page. total counts the filtered items before slicing.
'''

from collections.abc import Mapping
from typing import Any

from feedbrief.errors import ValidationError
from feedbrief.models import NormalizedItem, PipelineResult, QueryParams
from feedbrief.normalize import normalize_item, sort_key

SORT_NEWEST = 'newest'
SORT_OLDEST = 'oldest'
DEFAULT_LIMIT = 5

INVALID_PARAMS_MESSAGE = 'Invalid parameters. Offset and limit must be positive numbers.'


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(INVALID_PARAMS_MESSAGE)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(INVALID_PARAMS_MESSAGE)


def validate_params(offset: Any, limit: Any) -> tuple[int, int]:
    '''offset must be an integer >= 0 and limit an integer > 0, else ValidationError.'''
    offset, limit = _as_int(offset), _as_int(limit)
    if offset < 0 or limit <= 0:
        raise ValidationError(INVALID_PARAMS_MESSAGE)
    return offset, limit


def _split_list(raw: Any) -> list[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        return [p.strip() for p in raw.split(',') if p.strip()]
    return [str(p) for p in raw]


def _param(raw: Mapping[str, Any], name: str, default: int) -> Any:
    '''Default only when the parameter is absent or blank; 0 is a real value.'''
    value = raw.get(name)
    return default if value is None or value == '' else value


def parse_query(raw: Mapping[str, Any]) -> QueryParams:
    '''Build validated QueryParams from transport-level parameters (camelCase names).'''
    offset, limit = validate_params(_param(raw, 'offset', 0), _param(raw, 'limit', DEFAULT_LIMIT))
    return QueryParams(
        offset=offset,
        limit=limit,
        search=str(raw.get('search') or ''),
        sort_order=str(raw.get('sortOrder') or SORT_NEWEST),
        categories=_split_list(raw.get('categories')),
        sources=_split_list(raw.get('sources')),
    )


def filter_by_search(items: list[NormalizedItem], search: str) -> list[NormalizedItem]:
    '''Case-insensitive substring match on title or summary. Empty search keeps everything.'''
    if not search:
        return list(items)
    needle = search.lower()
    return [it for it in items if needle in it.title.lower() or needle in it.summary.lower()]


def sort_by_date(items: list[NormalizedItem], sort_order: str) -> list[NormalizedItem]:
    '''Stable sort; any order other than newest/oldest leaves items as they are.'''
    if sort_order == SORT_OLDEST:
        return sorted(items, key=lambda it: sort_key(it.date))
    if sort_order == SORT_NEWEST:
        return sorted(items, key=lambda it: sort_key(it.date), reverse=True)
    return list(items)


def query(result: PipelineResult, params: QueryParams) -> PipelineResult:
    '''
    Apply search, sort and pagination to a pipeline result. Returns a
    PipelineResult of NormalizedItem. categories and sources are not applied here.
    '''
    offset, limit = validate_params(params.offset, params.limit)
    items = [normalize_item(it) for it in result.items]
    items = filter_by_search(items, params.search)
    items = sort_by_date(items, params.sort_order)
    total = len(items)
    return PipelineResult(
        items=items[offset : offset + limit],
        has_more=offset + limit < total,
        total=total,
    )
