"""Cloud Firestore implementation of the data-access contract."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any, Iterator

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from google.oauth2 import service_account

from firexplorer.firestore.source import BackendError, QueryResult
from firexplorer.model.document import Document
from firexplorer.model.search import SearchFilter

logger = logging.getLogger(__name__)


class FirestoreConnectError(RuntimeError):
    """Raised when a service account cannot be turned into a client."""


@dataclass(slots=True)
class FirestoreProject:
    project_id: str
    credentials_path: Path
    source: FirestoreDataSource


def connect(path: str | Path) -> FirestoreProject:
    credentials_path = Path(path)
    if not credentials_path.exists():
        raise FirestoreConnectError(f"File not found: {credentials_path}")

    try:
        credentials = service_account.Credentials.from_service_account_file(str(credentials_path))
    except (ValueError, OSError) as exc:
        raise FirestoreConnectError(f"Invalid service account file: {credentials_path}") from exc

    project_id = credentials.project_id
    if not project_id:
        raise FirestoreConnectError(f"Service account has no project_id: {credentials_path}")

    client = firestore.AsyncClient(project=project_id, credentials=credentials)
    logger.info("Connected to Firestore project %s", project_id)
    return FirestoreProject(
        project_id=project_id,
        credentials_path=credentials_path,
        source=FirestoreDataSource(client),
    )


@contextmanager
def _backend_errors(action: str) -> Iterator[None]:
    try:
        yield
    except (google_exceptions.GoogleAPIError, ValueError) as exc:
        logger.warning("Firestore %s failed: %s", action, exc)
        raise BackendError(str(exc)) from exc


class FirestoreDataSource:
    def __init__(self, client: Any) -> None:
        self._client = client

    async def list_collections(self) -> list[str]:
        with _backend_errors("list collections"):
            return [collection.id async for collection in self._client.collections()]

    async def get_document(self, collection: str, document_id: str) -> Document | None:
        with _backend_errors(f"get {collection}/{document_id}"):
            snapshot = await self._client.collection(collection).document(document_id).get()
        if not snapshot.exists:
            return None
        return _to_document(snapshot)

    async def query_documents(
        self,
        collection: str,
        search_filter: SearchFilter | None = None,
        start_after: str | None = None,
        limit: int | None = None,
    ) -> QueryResult:
        with _backend_errors(f"query {collection}"):
            reference = self._client.collection(collection)
            query = reference
            if search_filter is not None:
                query = query.where(
                    filter=FieldFilter(search_filter.field, search_filter.operator, search_filter.value)
                )
            if start_after:
                anchor = await reference.document(start_after).get()
                # A deleted anchor restarts the listing from the beginning.
                if anchor.exists:
                    query = query.start_after(anchor)
            if limit is not None:
                query = query.limit(limit)
            snapshots = await query.get()

        documents = [_to_document(snapshot) for snapshot in snapshots]
        last_cursor = documents[-1].id if documents else None
        return QueryResult(documents=documents, last_cursor=last_cursor)

    async def set_document(
        self,
        collection: str,
        document_id: str | None,
        fields: dict[str, Any],
    ) -> str:
        with _backend_errors(f"set {collection}/{document_id or '<new>'}"):
            reference = self._client.collection(collection)
            document_ref = reference.document(document_id) if document_id else reference.document()
            await document_ref.set(fields)
        return document_ref.id

    async def delete_document(self, collection: str, document_id: str) -> None:
        with _backend_errors(f"delete {collection}/{document_id}"):
            await self._client.collection(collection).document(document_id).delete()


def _to_document(snapshot: Any) -> Document:
    return Document(id=snapshot.id, fields=snapshot.to_dict() or {})
