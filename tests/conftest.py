from __future__ import annotations

import copy
from typing import Any

import pytest

from firexplorer.firestore.source import BackendError, QueryResult
from firexplorer.model.document import Document
from firexplorer.model.search import SearchFilter


class MemorySource:
    """In-memory stand-in for the Firestore data source."""

    def __init__(self, collections: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        self.collections = collections or {}
        self.calls: list[tuple] = []
        self.failure: str | None = None
        self._generated = 0

    def fail_with(self, message: str) -> None:
        self.failure = message

    def _check(self) -> None:
        if self.failure is not None:
            raise BackendError(self.failure)

    def _ordered(self, collection: str) -> list[Document]:
        documents = self.collections.get(collection, {})
        return [Document(id=key, fields=copy.deepcopy(documents[key])) for key in sorted(documents)]

    async def list_collections(self) -> list[str]:
        self.calls.append(("list_collections",))
        self._check()
        return sorted(self.collections)

    async def get_document(self, collection: str, document_id: str) -> Document | None:
        self.calls.append(("get_document", collection, document_id))
        self._check()
        fields = self.collections.get(collection, {}).get(document_id)
        if fields is None:
            return None
        return Document(id=document_id, fields=copy.deepcopy(fields))

    async def query_documents(
        self,
        collection: str,
        search_filter: SearchFilter | None = None,
        start_after: str | None = None,
        limit: int | None = None,
    ) -> QueryResult:
        self.calls.append(("query_documents", collection, search_filter, start_after, limit))
        self._check()
        documents = self._ordered(collection)
        if search_filter is not None:
            documents = [doc for doc in documents if _matches(doc, search_filter)]
        if start_after is not None:
            documents = [doc for doc in documents if doc.id > start_after]
        if limit is not None:
            documents = documents[:limit]
        return QueryResult(documents=documents, last_cursor=documents[-1].id if documents else None)

    async def set_document(self, collection: str, document_id: str | None, fields: dict[str, Any]) -> str:
        self.calls.append(("set_document", collection, document_id, fields))
        self._check()
        if document_id is None:
            self._generated += 1
            document_id = f"generated-{self._generated:04d}"
        self.collections.setdefault(collection, {})[document_id] = copy.deepcopy(fields)
        return document_id

    async def delete_document(self, collection: str, document_id: str) -> None:
        self.calls.append(("delete_document", collection, document_id))
        self._check()
        self.collections.get(collection, {}).pop(document_id, None)

    def fetch_count(self) -> int:
        return sum(1 for call in self.calls if call[0] in ("query_documents", "get_document"))


def _matches(document: Document, search_filter: SearchFilter) -> bool:
    if search_filter.field not in document.fields:
        return False
    value = document.fields[search_filter.field]
    if search_filter.operator == "==":
        return value == search_filter.value
    if search_filter.operator == "!=":
        return value != search_filter.value
    raise AssertionError(f"unexpected operator {search_filter.operator}")


def make_users(count: int) -> dict[str, dict[str, Any]]:
    return {f"user-{index:04d}": {"name": f"User {index}", "age": index % 50} for index in range(count)}


@pytest.fixture
def source() -> MemorySource:
    return MemorySource(
        {
            "users": make_users(150),
            "people": {
                "a": {"name": "Anna", "city": "Oslo"},
                "b": {"name": "Bob", "age": 42},
                "c": {"name": "Diana", "tags": ["x"]},
                "d": {"name": 7},
            },
            "empty": {},
        }
    )
