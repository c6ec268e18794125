"""Table, tree and raw JSON renderings of a page of documents."""

from __future__ import annotations

from typing import Any

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFontDatabase
from PySide6.QtWidgets import (
    QAbstractItemView,
    QLabel,
    QPlainTextEdit,
    QStackedWidget,
    QTableWidget,
    QTableWidgetItem,
    QTreeWidget,
    QTreeWidgetItem,
)

from firexplorer.model.display import cell_value, documents_as_json, table_headers, tree_label
from firexplorer.model.document import Document, ViewMode

EMPTY_MESSAGE = "No documents found."


class DocumentTable(QTableWidget):
    document_activated = Signal(object)

    def __init__(self) -> None:
        super().__init__()
        self._documents: list[Document] = []
        self.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.cellDoubleClicked.connect(self._on_cell_double_clicked)

    def show_documents(self, documents: list[Document]) -> None:
        self._documents = documents
        headers = table_headers(documents)
        self.clear()
        self.setColumnCount(len(headers))
        self.setRowCount(len(documents))
        self.setHorizontalHeaderLabels(headers)
        for row, document in enumerate(documents):
            for column, header in enumerate(headers):
                text = cell_value(document, header)
                item = QTableWidgetItem(text)
                item.setToolTip(text)
                self.setItem(row, column, item)

    def _on_cell_double_clicked(self, row: int, column: int) -> None:
        del column
        if 0 <= row < len(self._documents):
            self.document_activated.emit(self._documents[row])


class DocumentTree(QTreeWidget):
    def __init__(self) -> None:
        super().__init__()
        self.setHeaderHidden(True)

    def show_documents(self, documents: list[Document]) -> None:
        self.clear()
        for document in documents:
            root = QTreeWidgetItem([document.id])
            self.addTopLevelItem(root)
            root.addChild(self._build_node("Document", document.fields))
        self.expandToDepth(0)

    def _build_node(self, key: str, value: Any) -> QTreeWidgetItem:
        node = QTreeWidgetItem([tree_label(key, value)])
        if isinstance(value, dict):
            for child_key, child_value in value.items():
                node.addChild(self._build_node(str(child_key), child_value))
        elif isinstance(value, list):
            for index, child_value in enumerate(value):
                node.addChild(self._build_node(str(index), child_value))
        return node


class RawJsonView(QPlainTextEdit):
    def __init__(self) -> None:
        super().__init__()
        self.setReadOnly(True)
        self.setFont(QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont))

    def show_documents(self, documents: list[Document]) -> None:
        self.setPlainText(documents_as_json(documents))


class CollectionView(QStackedWidget):
    """One page of a collection, shown in whichever view mode is selected."""

    document_activated = Signal(object)

    def __init__(self) -> None:
        super().__init__()
        self.empty_label = QLabel(EMPTY_MESSAGE)
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.table = DocumentTable()
        self.table.document_activated.connect(self.document_activated)
        self.tree = DocumentTree()
        self.raw = RawJsonView()
        self._views = {
            ViewMode.TABLE: self.table,
            ViewMode.TREE: self.tree,
            ViewMode.RAW: self.raw,
        }
        self.addWidget(self.empty_label)
        for view in self._views.values():
            self.addWidget(view)

    def show_documents(self, documents: list[Document], mode: ViewMode) -> None:
        if not documents:
            self.setCurrentWidget(self.empty_label)
            return
        view = self._views[mode]
        view.show_documents(documents)
        self.setCurrentWidget(view)
