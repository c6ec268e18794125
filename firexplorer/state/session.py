"""In-memory browsing state for an opened collection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from firexplorer.model.document import ID_FIELD, Document, ViewMode
from firexplorer.model.search import SearchSpec
from firexplorer.query.pager import CursorPaging, Paging


@dataclass(slots=True)
class CollectionSession:
    collection_id: str
    documents: list[Document] = field(default_factory=list)
    view_mode: ViewMode = ViewMode.TABLE
    search: SearchSpec | None = None
    paging: Paging = field(default_factory=CursorPaging)
    known_fields: set[str] = field(default_factory=lambda: {ID_FIELD})

    @property
    def page(self) -> int:
        return self.paging.page

    @property
    def history(self) -> list:
        return self.paging.history

    @property
    def cursor(self) -> str | int | None:
        return self.paging.cursor

    @property
    def has_next(self) -> bool:
        return self.paging.has_next

    @property
    def has_previous(self) -> bool:
        return self.paging.has_previous

    def merge_fields(self, documents: Iterable[Document]) -> None:
        # Append-only: fields missing from later pages stay searchable.
        for document in documents:
            self.known_fields.update(document.fields)

    def search_fields(self) -> list[str]:
        return sorted(self.known_fields)
