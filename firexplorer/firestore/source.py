"""Data-access contract consumed by the browsing engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from firexplorer.model.document import Document
from firexplorer.model.search import SearchFilter


class BackendError(RuntimeError):
    """Raised when the document store rejects or fails a request."""


@dataclass(slots=True)
class QueryResult:
    documents: list[Document] = field(default_factory=list)
    last_cursor: str | None = None


class DataSource(Protocol):
    async def list_collections(self) -> list[str]: ...

    async def get_document(self, collection: str, document_id: str) -> Document | None: ...

    async def query_documents(
        self,
        collection: str,
        search_filter: SearchFilter | None = None,
        start_after: str | None = None,
        limit: int | None = None,
    ) -> QueryResult: ...

    async def set_document(
        self,
        collection: str,
        document_id: str | None,
        fields: dict[str, Any],
    ) -> str: ...

    async def delete_document(self, collection: str, document_id: str) -> None: ...
