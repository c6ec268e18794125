"""Main application window for browsing and editing Firestore collections."""

from __future__ import annotations

from pathlib import Path
from typing import Awaitable, Callable, TypeVar

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QActionGroup
from PySide6.QtWidgets import (
    QComboBox,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSplitter,
    QTabWidget,
    QToolBar,
    QVBoxLayout,
    QWidget,
)
from qasync import asyncSlot

from firexplorer.config import Settings
from firexplorer.firestore.client import FirestoreConnectError, FirestoreProject, connect
from firexplorer.firestore.source import BackendError
from firexplorer.model.document import Document, ViewMode
from firexplorer.model.search import Operator, SearchSpec
from firexplorer.query.pager import PageDirection
from firexplorer.state.session import CollectionSession
from firexplorer.state.store import CommitResult, CommitStatus, SessionStore
from firexplorer.ui.document_dialog import DocumentDialog
from firexplorer.viewer.views import CollectionView

T = TypeVar("T")


class MainWindow(QMainWindow):
    def __init__(self, settings: Settings) -> None:
        super().__init__()
        self.setWindowTitle("Firestore Explorer")
        self.resize(1400, 900)

        self._settings = settings
        self._pending = 0
        self._project: FirestoreProject | None = None
        self._store: SessionStore | None = None
        self._views: dict[str, CollectionView] = {}

        self.collection_list = QListWidget()
        self.collection_list.itemClicked.connect(self._on_collection_clicked)

        self.tabs = QTabWidget()
        self.tabs.setTabsClosable(True)
        self.tabs.setMovable(False)
        self.tabs.currentChanged.connect(self._on_tab_changed)
        self.tabs.tabCloseRequested.connect(self._on_tab_close_requested)

        self.search_field = QComboBox()
        self.search_field.setMinimumWidth(160)
        self.search_operator = QComboBox()
        for operator in Operator:
            self.search_operator.addItem(operator.value, operator)
        self.search_value = QLineEdit()
        self.search_value.setPlaceholderText("Value")
        self.search_value.returnPressed.connect(self.execute_search)
        self.search_button = QPushButton("Search")
        self.search_button.clicked.connect(self.execute_search)
        self.clear_button = QPushButton("Clear")
        self.clear_button.clicked.connect(self.clear_search)

        search_bar = QHBoxLayout()
        search_bar.addWidget(self.search_field)
        search_bar.addWidget(self.search_operator)
        search_bar.addWidget(self.search_value, 1)
        search_bar.addWidget(self.search_button)
        search_bar.addWidget(self.clear_button)

        self.page_label = QLabel("Page 1")

        content = QWidget()
        content_layout = QVBoxLayout(content)
        content_layout.addLayout(search_bar)
        content_layout.addWidget(self.tabs, 1)

        splitter = QSplitter()
        splitter.addWidget(self.collection_list)
        splitter.addWidget(content)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 5)
        self.setCentralWidget(splitter)

        self._build_toolbar()
        self._update_controls()
        self.statusBar().showMessage("Open a service account to begin")

    def _build_toolbar(self) -> None:
        toolbar = QToolBar("Main Toolbar")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        self._open_action = QAction("Open Service Account", self)
        self._open_action.triggered.connect(self.open_project)
        toolbar.addAction(self._open_action)

        self._refresh_action = QAction("Refresh", self)
        self._refresh_action.setShortcut("F5")
        self._refresh_action.triggered.connect(self.refresh_active)
        toolbar.addAction(self._refresh_action)

        self._add_action = QAction("Add Document", self)
        self._add_action.triggered.connect(lambda: self.edit_document(None))
        toolbar.addAction(self._add_action)

        toolbar.addSeparator()

        self._prev_action = QAction("Previous", self)
        self._prev_action.triggered.connect(lambda: self.change_page(PageDirection.PREV))
        toolbar.addAction(self._prev_action)

        toolbar.addWidget(self.page_label)

        self._next_action = QAction("Next", self)
        self._next_action.triggered.connect(lambda: self.change_page(PageDirection.NEXT))
        toolbar.addAction(self._next_action)

        toolbar.addSeparator()

        mode_group = QActionGroup(self)
        mode_group.setExclusive(True)
        self._mode_actions: dict[ViewMode, QAction] = {}
        for mode in ViewMode:
            action = QAction(mode.value.capitalize(), self)
            action.setCheckable(True)
            action.triggered.connect(lambda checked=False, mode=mode: self._set_view_mode(mode))
            mode_group.addAction(action)
            toolbar.addAction(action)
            self._mode_actions[mode] = action
        self._mode_actions[ViewMode.TABLE].setChecked(True)

    def open_project(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(
            self,
            "Open Service Account",
            str(Path.home()),
            "JSON Files (*.json)",
        )
        if file_path:
            self.load_project(file_path)

    @asyncSlot()
    async def load_project(self, path: str | Path) -> None:
        try:
            project = connect(path)
        except FirestoreConnectError as exc:
            QMessageBox.critical(self, "Load Failed", str(exc))
            return

        self._close_all_tabs()
        self._project = project
        self._store = SessionStore(project.source, page_size=self._settings.page_size)
        self.setWindowTitle(f"Firestore Explorer - {project.project_id}")

        collections = await self._run(self._store.list_collections(), "Loading collections failed")
        self.collection_list.clear()
        for collection_id in collections or []:
            self.collection_list.addItem(QListWidgetItem(collection_id))
        self.statusBar().showMessage(f"Project: {project.project_id}")

    @asyncSlot()
    async def open_collection(self, collection_id: str) -> None:
        if self._store is None:
            return
        store = self._store
        await self._run(store.open_session(collection_id), f"Error fetching documents for {collection_id}")
        if store is not self._store or collection_id not in store:
            return
        if collection_id not in self._views:
            view = CollectionView()
            view.document_activated.connect(self.edit_document)
            self._views[collection_id] = view
            self.tabs.addTab(view, collection_id)
        self.tabs.setCurrentWidget(self._views[collection_id])
        self._render_active()

    @asyncSlot()
    async def execute_search(self) -> None:
        session = self._active_session()
        if session is None:
            return
        spec = SearchSpec.create(
            self.search_field.currentText(),
            self.search_operator.currentData(),
            self.search_value.text(),
        )
        await self._run(self._store.set_search(session.collection_id, spec), "Search failed")
        self._render_active()

    @asyncSlot()
    async def clear_search(self) -> None:
        session = self._active_session()
        if session is None:
            return
        self.search_value.clear()
        await self._run(self._store.set_search(session.collection_id, None), "Reload failed")
        self._render_active()

    @asyncSlot()
    async def refresh_active(self) -> None:
        session = self._active_session()
        if session is None:
            return
        self.search_value.clear()
        await self._run(self._store.refresh(session.collection_id), "Refresh failed")
        self._render_active()

    @asyncSlot()
    async def change_page(self, direction: PageDirection) -> None:
        session = self._active_session()
        if session is None:
            return
        await self._run(self._store.paginate(session.collection_id, direction), "Paging failed")
        self._render_active()

    def edit_document(self, document: Document | None) -> None:
        session = self._active_session()
        if session is None or self._pending:
            return

        store = self._store
        editor = store.begin_edit(session.collection_id, document)
        dialog = DocumentDialog(session.collection_id, editor, self)
        dialog.setAttribute(Qt.WidgetAttribute.WA_DeleteOnClose)
        dialog.save_requested.connect(lambda: self._finish_edit(dialog, store.commit_edit))
        dialog.delete_requested.connect(lambda: self._confirm_delete(dialog))
        dialog.finished.connect(lambda _result: store.end_edit())
        dialog.open()

    def _confirm_delete(self, dialog: DocumentDialog) -> None:
        store = self._store
        editor = store.editor if store is not None else None
        if editor is None or editor.document_id is None:
            return
        answer = QMessageBox.question(
            dialog,
            "Delete Document",
            f'Are you sure you want to delete document "{editor.document_id}"?',
        )
        if answer == QMessageBox.StandardButton.Yes:
            self._finish_edit(dialog, store.delete_edited)

    @asyncSlot()
    async def _finish_edit(self, dialog: DocumentDialog, request: Callable[[], Awaitable[CommitResult]]) -> None:
        dialog.setEnabled(False)
        try:
            result = await request()
        finally:
            dialog.setEnabled(True)
        if result.status is CommitStatus.INVALID:
            dialog.show_error(result.message)
            return
        if result.status is CommitStatus.FAILED:
            QMessageBox.critical(dialog, "Save Failed", f"Error saving document: {result.message}")
            return
        dialog.accept()
        self.statusBar().showMessage(f"{result.status.value.capitalize()}: {result.document_id}")
        await self.refresh_active()

    async def _run(self, request: Awaitable[T], title: str) -> T | None:
        # Controls stay disabled until the request settles, so one request runs at a time.
        self._pending += 1
        self._update_controls()
        try:
            return await request
        except BackendError as exc:
            QMessageBox.critical(self, title, str(exc))
            return None
        finally:
            self._pending -= 1
            self._update_controls()

    def _active_session(self) -> CollectionSession | None:
        if self._store is None:
            return None
        return self._store.active_session()

    def _set_view_mode(self, mode: ViewMode) -> None:
        session = self._active_session()
        if session is None:
            return
        self._store.set_view_mode(session.collection_id, mode)
        self._render_active()

    def _render_active(self) -> None:
        session = self._active_session()
        if session is not None:
            view = self._views.get(session.collection_id)
            if view is not None:
                view.show_documents(session.documents, session.view_mode)
            self._mode_actions[session.view_mode].setChecked(True)
            self._populate_search_bar(session)
        self._update_controls()

    def _populate_search_bar(self, session: CollectionSession) -> None:
        current = self.search_field.currentText()
        fields = session.search_fields()
        self.search_field.clear()
        self.search_field.addItems(fields)
        if session.search is not None:
            self.search_field.setCurrentText(session.search.field)
            self.search_operator.setCurrentIndex(self.search_operator.findData(session.search.operator))
            self.search_value.setText(session.search.value)
        elif current in fields:
            self.search_field.setCurrentText(current)
        elif len(fields) > 1:
            self.search_field.setCurrentIndex(1)

    def _update_controls(self) -> None:
        session = self._active_session()
        idle = self._pending == 0
        self.page_label.setText(f"Page {session.page if session else 1}")
        self._prev_action.setEnabled(idle and session is not None and session.has_previous)
        self._next_action.setEnabled(idle and session is not None and session.has_next)
        for control in (
            self._open_action,
            self._refresh_action,
            self._add_action,
            self.collection_list,
            self.search_field,
            self.search_operator,
            self.search_value,
            self.search_button,
            self.clear_button,
        ):
            control.setEnabled(idle)

    def _collection_at(self, index: int) -> str | None:
        widget = self.tabs.widget(index)
        for collection_id, view in self._views.items():
            if view is widget:
                return collection_id
        return None

    def _on_collection_clicked(self, item: QListWidgetItem) -> None:
        self.open_collection(item.text())

    def _on_tab_changed(self, index: int) -> None:
        if self._store is None or index < 0:
            return
        collection_id = self._collection_at(index)
        if collection_id is not None and collection_id in self._store:
            self._store.activate(collection_id)
            self._render_active()

    def _on_tab_close_requested(self, index: int) -> None:
        collection_id = self._collection_at(index)
        self.tabs.removeTab(index)
        if collection_id is None:
            return
        self._views.pop(collection_id).deleteLater()
        if self._store is None:
            return
        active = self._store.close_session(collection_id)
        if active is not None and active.collection_id in self._views:
            self.tabs.setCurrentWidget(self._views[active.collection_id])
        self._render_active()

    def _close_all_tabs(self) -> None:
        self.tabs.clear()
        for view in self._views.values():
            view.deleteLater()
        self._views.clear()
        self.collection_list.clear()
        self._store = None
