"""Add/edit dialog with a key/value row editor and a raw JSON editor."""

from __future__ import annotations

from PySide6.QtCore import Signal
from PySide6.QtGui import QFontDatabase
from PySide6.QtWidgets import (
    QAbstractItemView,
    QDialog,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QSplitter,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
)

from firexplorer.state.draft import DraftEditor, DraftRow


class DocumentDialog(QDialog):
    save_requested = Signal()
    delete_requested = Signal()

    def __init__(self, collection_id: str, editor: DraftEditor, parent=None) -> None:
        super().__init__(parent)
        self._editor = editor
        if editor.is_new:
            self.setWindowTitle(f'Add Document to "{collection_id}"')
        else:
            self.setWindowTitle(f"Edit Document: {editor.document_id}")
        self.resize(900, 640)

        self.id_input = QLineEdit(editor.document_id or "")
        self.id_input.setPlaceholderText("Leave blank to auto-generate")
        self.id_input.setEnabled(editor.is_new)
        self.id_input.textChanged.connect(editor.set_document_id)

        self.rows_table = QTableWidget(0, 2)
        self.rows_table.setHorizontalHeaderLabels(["Key", "Value"])
        self.rows_table.horizontalHeader().setSectionResizeMode(1, QHeaderView.ResizeMode.Stretch)
        self.rows_table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)

        self.text_edit = QPlainTextEdit()
        self.text_edit.setFont(QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont))

        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: #c62828;")

        add_field_button = QPushButton("Add Field")
        add_field_button.clicked.connect(self._add_field)
        remove_field_button = QPushButton("Remove Field")
        remove_field_button.clicked.connect(self._remove_selected_field)

        save_button = QPushButton("Save")
        save_button.setDefault(True)
        save_button.clicked.connect(self.save_requested)
        delete_button = QPushButton("Delete")
        delete_button.setEnabled(not editor.is_new)
        delete_button.clicked.connect(self.delete_requested)
        cancel_button = QPushButton("Cancel")
        cancel_button.clicked.connect(self.reject)

        field_buttons = QHBoxLayout()
        field_buttons.addWidget(add_field_button)
        field_buttons.addWidget(remove_field_button)
        field_buttons.addStretch(1)

        splitter = QSplitter()
        splitter.addWidget(self.rows_table)
        splitter.addWidget(self.text_edit)

        actions = QHBoxLayout()
        actions.addWidget(delete_button)
        actions.addStretch(1)
        actions.addWidget(cancel_button)
        actions.addWidget(save_button)

        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Document ID"))
        layout.addWidget(self.id_input)
        layout.addLayout(field_buttons)
        layout.addWidget(splitter, 1)
        layout.addWidget(self.error_label)
        layout.addLayout(actions)

        editor.bind_views(on_rows=self.show_rows, on_text=self.show_text)
        self.show_rows(editor.rows)
        self.show_text(editor.text)
        self.rows_table.itemChanged.connect(self._on_row_item_changed)
        self.text_edit.textChanged.connect(self._on_text_edited)

    def show_error(self, message: str) -> None:
        self.error_label.setText(message)

    def show_rows(self, rows: list[DraftRow]) -> None:
        # Only touch cells whose text differs so an in-progress edit keeps focus.
        table = self.rows_table
        if table.rowCount() > len(rows):
            table.setRowCount(len(rows))
        for index, row in enumerate(rows):
            if index >= table.rowCount():
                table.insertRow(index)
            self._set_cell(index, 0, row.key)
            self._set_cell(index, 1, row.value)

    def show_text(self, text: str) -> None:
        if self.text_edit.toPlainText() != text:
            self.text_edit.setPlainText(text)
        self.show_error(self._editor.error or "")

    def collect_rows(self) -> list[DraftRow]:
        rows: list[DraftRow] = []
        for index in range(self.rows_table.rowCount()):
            key_item = self.rows_table.item(index, 0)
            value_item = self.rows_table.item(index, 1)
            rows.append(
                DraftRow(
                    key=key_item.text() if key_item is not None else "",
                    value=value_item.text() if value_item is not None else "",
                )
            )
        return rows

    def _set_cell(self, row: int, column: int, text: str) -> None:
        item = self.rows_table.item(row, column)
        if item is None:
            self.rows_table.setItem(row, column, QTableWidgetItem(text))
        elif item.text() != text:
            item.setText(text)

    def _on_row_item_changed(self, item: QTableWidgetItem) -> None:
        del item
        self._editor.rows_changed(self.collect_rows())

    def _on_text_edited(self) -> None:
        self._editor.text_changed(self.text_edit.toPlainText())
        self.show_error(self._editor.error or "")

    def _add_field(self) -> None:
        self._editor.add_row()
        self.show_rows(self._editor.rows)
        last = self.rows_table.rowCount() - 1
        self.rows_table.setCurrentCell(last, 0)
        self.rows_table.editItem(self.rows_table.item(last, 0))

    def _remove_selected_field(self) -> None:
        index = self.rows_table.currentRow()
        if index < 0 or index >= len(self._editor.rows):
            return
        self._editor.remove_row(index)
        self.rows_table.removeRow(index)
