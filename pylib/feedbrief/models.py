'''Records passed between the fetcher, the pipeline and the query layer.'''

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class RawFeedItem:
    '''
    One feed entry as received. Every field may be missing; fallbacks are
    applied during normalization, not here.
    '''

    title: str | None = None
    description: str | None = None
    content: str | None = None
    link: str | None = None
    pub_date: str | None = None

    @property
    def source_text(self) -> str:
        '''Text handed to the summarizer: description, else content.'''
        return self.description or self.content or ''


@dataclass
class SummarizedItem:
    '''A raw feed item plus its generated summary.'''

    item: RawFeedItem
    summary: str

    @property
    def title(self) -> str | None:
        return self.item.title

    @property
    def link(self) -> str | None:
        return self.item.link

    @property
    def pub_date(self) -> str | None:
        return self.item.pub_date


@dataclass(frozen=True)
class NormalizedItem:
    '''Externally visible item shape. All fields are non-empty.'''

    id: int
    title: str
    summary: str
    date: str
    url: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PipelineResult:
    '''
    A page of items. `total` counts items before pagination at the layer that
    produced the result; `has_more` is `offset + limit < total` at that layer.
    '''

    items: list = field(default_factory=list)
    has_more: bool = False
    total: int = 0

    @classmethod
    def empty(cls) -> PipelineResult:
        return cls(items=[], has_more=False, total=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            'items': [i.to_dict() if hasattr(i, 'to_dict') else i for i in self.items],
            'hasMore': self.has_more,
            'total': self.total,
        }


@dataclass
class QueryParams:
    '''Query surface parameters. categories/sources are carried for the surrounding layer.'''

    offset: int = 0
    limit: int = 5
    search: str = ''
    sort_order: str = 'newest'
    categories: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
