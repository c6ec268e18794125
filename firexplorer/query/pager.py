"""Cursor and offset pagination over the data-access contract."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from firexplorer.firestore.source import DataSource
from firexplorer.model.document import Document
from firexplorer.query.translator import IdLookup, QueryPlan, ServerQuery, SubstringQuery

DEFAULT_PAGE_SIZE = 100


class PageDirection(str, Enum):
    NEXT = "next"
    PREV = "prev"


@dataclass(slots=True)
class CursorPaging:
    start: str | None = None
    cursor: str | None = None
    history: list[str | None] = field(default_factory=list)

    @property
    def page(self) -> int:
        return len(self.history) + 1

    @property
    def has_next(self) -> bool:
        return self.cursor is not None

    @property
    def has_previous(self) -> bool:
        return bool(self.history)


@dataclass(slots=True)
class OffsetPaging:
    index: int = 0
    has_next: bool = False

    @property
    def page(self) -> int:
        return self.index + 1

    @property
    def history(self) -> list[int]:
        return list(range(self.index))

    @property
    def cursor(self) -> int | None:
        return self.index + 1 if self.has_next else None

    @property
    def has_previous(self) -> bool:
        return self.index > 0


Paging = CursorPaging | OffsetPaging


@dataclass(slots=True)
class PageLoad:
    documents: list[Document]
    paging: Paging


def initial_paging(plan: QueryPlan) -> Paging:
    return OffsetPaging() if plan.offset_paging else CursorPaging()


def can_move(paging: Paging, direction: PageDirection | None) -> bool:
    if direction is PageDirection.NEXT:
        return paging.has_next
    if direction is PageDirection.PREV:
        return paging.has_previous
    return True


async def load_page(
    source: DataSource,
    collection: str,
    plan: QueryPlan,
    paging: Paging,
    direction: PageDirection | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PageLoad:
    """Fetch the page reached by moving ``direction`` from ``paging``.

    ``paging`` is never mutated; the returned load carries the state to adopt
    once the caller decides to commit it. A ``None`` direction loads page 1.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    if isinstance(plan, IdLookup):
        document = await source.get_document(collection, plan.document_id)
        return PageLoad(documents=[document] if document is not None else [], paging=CursorPaging())

    if isinstance(plan, SubstringQuery):
        index = paging.index if isinstance(paging, OffsetPaging) and direction is not None else 0
        if direction is PageDirection.NEXT:
            index += 1
        elif direction is PageDirection.PREV:
            index = max(0, index - 1)
        return await _load_offset_page(source, collection, plan, index, page_size)

    if isinstance(paging, CursorPaging) and direction is PageDirection.NEXT:
        start = paging.cursor
        history = [*paging.history, paging.start]
    elif isinstance(paging, CursorPaging) and direction is PageDirection.PREV and paging.history:
        start = paging.history[-1]
        history = paging.history[:-1]
    else:
        start = None
        history = []

    search_filter = plan.search_filter if isinstance(plan, ServerQuery) else None
    result = await source.query_documents(collection, search_filter, start, page_size)
    documents = result.documents[:page_size]
    # The outgoing cursor is the last document shown, whatever the source returned.
    cursor = documents[-1].id if len(documents) == page_size else None
    return PageLoad(documents=documents, paging=CursorPaging(start=start, cursor=cursor, history=history))


async def _load_offset_page(
    source: DataSource,
    collection: str,
    plan: SubstringQuery,
    index: int,
    page_size: int,
) -> PageLoad:
    # The backend cannot filter by containment, so every page re-reads the collection.
    result = await source.query_documents(collection)
    matched = [document for document in result.documents if plan.matches(document.fields)]
    start = index * page_size
    end = start + page_size
    return PageLoad(
        documents=matched[start:end],
        paging=OffsetPaging(index=index, has_next=end < len(matched)),
    )
