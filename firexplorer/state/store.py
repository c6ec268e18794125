"""Collection sessions and the transitions the UI drives them through."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Iterable

from firexplorer.firestore.source import BackendError, DataSource
from firexplorer.model.document import Document, ViewMode
from firexplorer.model.search import SearchSpec
from firexplorer.query.pager import (
    DEFAULT_PAGE_SIZE,
    PageDirection,
    can_move,
    initial_paging,
    load_page,
)
from firexplorer.query.translator import translate
from firexplorer.state.draft import DraftEditor, DraftRow, DraftValidationError
from firexplorer.state.session import CollectionSession

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when an operation names a collection with no open session."""


class CommitStatus(str, Enum):
    SAVED = "saved"
    DELETED = "deleted"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class CommitResult:
    status: CommitStatus
    message: str = ""
    document_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in (CommitStatus.SAVED, CommitStatus.DELETED)


class SessionStore:
    def __init__(self, source: DataSource, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.source = source
        self.page_size = page_size
        self._sessions: dict[str, CollectionSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._active_id: str | None = None
        self._editor: DraftEditor | None = None
        self._edit_collection: str | None = None

    def __contains__(self, collection_id: str) -> bool:
        return collection_id in self._sessions

    async def list_collections(self) -> list[str]:
        return await self.source.list_collections()

    def get(self, collection_id: str) -> CollectionSession:
        try:
            return self._sessions[collection_id]
        except KeyError:
            raise SessionNotFoundError(collection_id) from None

    def active_session(self) -> CollectionSession | None:
        if self._active_id is None:
            return None
        return self._sessions.get(self._active_id)

    def activate(self, collection_id: str) -> CollectionSession:
        session = self.get(collection_id)
        self._active_id = collection_id
        return session

    async def open_session(self, collection_id: str) -> CollectionSession:
        session = self._sessions.get(collection_id)
        if session is not None:
            return self.activate(collection_id)

        session = CollectionSession(collection_id=collection_id)
        self._sessions[collection_id] = session
        self._locks[collection_id] = asyncio.Lock()
        self._active_id = collection_id
        logger.info("Opened session for %s", collection_id)
        await self._transition(session, session.search, None)
        return session

    def close_session(self, collection_id: str) -> CollectionSession | None:
        self._sessions.pop(collection_id, None)
        self._locks.pop(collection_id, None)
        if self._active_id == collection_id:
            remaining = list(self._sessions)
            self._active_id = remaining[-1] if remaining else None
        logger.info("Closed session for %s", collection_id)
        return self.active_session()

    def set_view_mode(self, collection_id: str, mode: ViewMode | str) -> None:
        self.get(collection_id).view_mode = ViewMode(mode)

    async def set_search(self, collection_id: str, spec: SearchSpec | None) -> CollectionSession:
        session = self.get(collection_id)
        if spec is not None and not spec.is_active:
            spec = None
        await self._transition(session, spec, None)
        return session

    async def paginate(self, collection_id: str, direction: PageDirection | str) -> CollectionSession:
        session = self.get(collection_id)
        await self._transition(session, None, PageDirection(direction))
        return session

    async def refresh(self, collection_id: str) -> CollectionSession:
        """Reload page 1 of the collection with the search cleared."""
        session = self.get(collection_id)
        await self._transition(session, None, None)
        return session

    async def _transition(
        self,
        session: CollectionSession,
        search: SearchSpec | None,
        direction: PageDirection | None,
    ) -> None:
        lock = self._locks[session.collection_id]
        async with lock:
            if direction is not None:
                # Page moves keep whatever search is active once the lock is held.
                search = session.search
                if not can_move(session.paging, direction):
                    return

            plan = translate(search)
            paging = session.paging if direction is not None else initial_paging(plan)
            try:
                loaded = await load_page(
                    self.source,
                    session.collection_id,
                    plan,
                    paging,
                    direction,
                    self.page_size,
                )
            except BackendError as exc:
                logger.warning("Fetching %s failed: %s", session.collection_id, exc)
                raise

            if self._sessions.get(session.collection_id) is not session:
                # Closed while the request was in flight.
                return
            session.search = search
            session.documents = loaded.documents
            session.paging = loaded.paging
            session.merge_fields(loaded.documents)

    def begin_edit(self, collection_id: str, document: Document | None = None) -> DraftEditor:
        self.get(collection_id)
        self._editor = DraftEditor(document)
        self._edit_collection = collection_id
        return self._editor

    @property
    def editor(self) -> DraftEditor | None:
        return self._editor

    def edit_rows_changed(self, rows: Iterable[DraftRow]) -> bool:
        return self._require_editor().rows_changed(rows)

    def edit_text_changed(self, text: str) -> bool:
        return self._require_editor().text_changed(text)

    async def commit_edit(self) -> CommitResult:
        editor = self._require_editor()
        try:
            fields = editor.validated_fields()
        except DraftValidationError as exc:
            return CommitResult(status=CommitStatus.INVALID, message=str(exc))

        try:
            document_id = await self.source.set_document(self._edit_collection, editor.document_id, fields)
        except BackendError as exc:
            logger.warning("Saving document in %s failed: %s", self._edit_collection, exc)
            return CommitResult(status=CommitStatus.FAILED, message=str(exc))

        logger.info("Saved %s/%s", self._edit_collection, document_id)
        self.end_edit()
        return CommitResult(status=CommitStatus.SAVED, document_id=document_id)

    async def delete_edited(self) -> CommitResult:
        editor = self._require_editor()
        if editor.document_id is None or editor.is_new:
            return CommitResult(status=CommitStatus.INVALID, message="Only saved documents can be deleted.")
        try:
            await self.source.delete_document(self._edit_collection, editor.document_id)
        except BackendError as exc:
            logger.warning("Deleting %s/%s failed: %s", self._edit_collection, editor.document_id, exc)
            return CommitResult(status=CommitStatus.FAILED, message=str(exc))

        document_id = editor.document_id
        logger.info("Deleted %s/%s", self._edit_collection, document_id)
        self.end_edit()
        return CommitResult(status=CommitStatus.DELETED, document_id=document_id)

    def end_edit(self) -> None:
        self._editor = None
        self._edit_collection = None

    def _require_editor(self) -> DraftEditor:
        if self._editor is None:
            raise RuntimeError("No document is being edited.")
        return self._editor
