"""Draft document editing with synchronized row and raw JSON views."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
from typing import Any, Callable, Iterable

from firexplorer.model.display import render_json
from firexplorer.model.document import Document

INVALID_JSON_MESSAGE = "Invalid JSON format."
NOT_AN_OBJECT_MESSAGE = "Document data must be a JSON object."
PLACEHOLDER_FIELDS: dict[str, Any] = {"key": "value"}


class DraftValidationError(ValueError):
    """Raised when the raw JSON of a draft cannot be saved."""


class SyncSource(Enum):
    ROWS = "rows"
    TEXT = "text"


@dataclass(slots=True)
class DraftRow:
    key: str
    value: str


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def loads_strict(text: str) -> Any:
    """``json.loads`` without the ``NaN`` and ``Infinity`` extensions."""
    return json.loads(text, parse_constant=_reject_constant)


def parse_row_value(text: str) -> Any:
    try:
        return loads_strict(text)
    except ValueError:
        return text


def format_row_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return render_json(value)
    return render_json(value, indent=None)


def rows_to_fields(rows: Iterable[DraftRow]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for row in rows:
        key = row.key.strip()
        if key:
            fields[key] = parse_row_value(row.value)
    return fields


def parse_fields(text: str) -> dict[str, Any]:
    try:
        data = loads_strict(text)
    except ValueError as exc:
        raise DraftValidationError(INVALID_JSON_MESSAGE) from exc
    if not isinstance(data, dict):
        raise DraftValidationError(NOT_AN_OBJECT_MESSAGE)
    return data


class DraftEditor:
    """Keeps a key/value row list and a raw JSON text describing one document.

    Exactly one direction may be syncing at a time. The view callbacks run
    while that direction is pending, so a widget echoing the change back into
    the opposite handler is ignored instead of starting another cycle.
    """

    def __init__(
        self,
        document: Document | None = None,
        on_rows: Callable[[list[DraftRow]], None] | None = None,
        on_text: Callable[[str], None] | None = None,
    ) -> None:
        self.is_new = document is None
        self.document_id: str | None = None if document is None else document.id
        fields = dict(PLACEHOLDER_FIELDS) if document is None else dict(document.fields)
        self.rows = [DraftRow(key=key, value=format_row_value(value)) for key, value in fields.items()]
        self.text = render_json(fields)
        self.error: str | None = None
        self._on_rows = on_rows
        self._on_text = on_text
        self._syncing: SyncSource | None = None

    @property
    def syncing(self) -> SyncSource | None:
        return self._syncing

    def bind_views(
        self,
        on_rows: Callable[[list[DraftRow]], None] | None,
        on_text: Callable[[str], None] | None,
    ) -> None:
        self._on_rows = on_rows
        self._on_text = on_text

    def set_document_id(self, document_id: str) -> None:
        if self.is_new:
            self.document_id = document_id.strip() or None

    def rows_changed(self, rows: Iterable[DraftRow] | None = None) -> bool:
        if self._syncing is not None:
            return False
        self._syncing = SyncSource.ROWS
        try:
            if rows is not None:
                self.rows = list(rows)
            self.text = render_json(rows_to_fields(self.rows))
            self.error = None
            if self._on_text is not None:
                self._on_text(self.text)
        finally:
            self._syncing = None
        return True

    def text_changed(self, text: str) -> bool:
        if self._syncing is not None:
            return False
        self._syncing = SyncSource.TEXT
        try:
            self.text = text
            try:
                fields = parse_fields(text)
            except DraftValidationError as exc:
                self.error = str(exc)
                return False
            self.error = None
            if self._merge_rows(fields) and self._on_rows is not None:
                self._on_rows(self.rows)
        finally:
            self._syncing = None
        return True

    def add_row(self) -> DraftRow:
        # Blank keys never reach the text, so the JSON stays as it is.
        row = DraftRow(key="", value="")
        self.rows.append(row)
        return row

    def remove_row(self, index: int) -> None:
        del self.rows[index]
        self.rows_changed()

    def validated_fields(self) -> dict[str, Any]:
        try:
            fields = parse_fields(self.text)
        except DraftValidationError as exc:
            self.error = str(exc)
            raise
        self.error = None
        return fields

    def _merge_rows(self, fields: dict[str, Any]) -> bool:
        current = {row.key.strip(): row for row in self.rows}
        changed = False
        for key, value in fields.items():
            text = format_row_value(value)
            row = current.pop(key, None)
            if row is None:
                self.rows.append(DraftRow(key=key, value=text))
                changed = True
            elif row.value != text:
                row.value = text
                changed = True
        if current:
            stale = {id(row) for row in current.values()}
            self.rows = [row for row in self.rows if id(row) not in stale]
            changed = True
        return changed
