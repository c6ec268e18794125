"""Display formatting for document values."""

from __future__ import annotations

import json
import math
from typing import Any, Iterable

from firexplorer.model.document import ID_FIELD, Document


def render_json(value: Any, indent: int | None = 2) -> str:
    # Timestamps, references, bytes and non-finite floats have no JSON form; show their str().
    return json.dumps(_finite(value), indent=indent, ensure_ascii=False, default=str, allow_nan=False)


def _finite(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {key: _finite(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite(item) for item in value]
    return value


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return render_json(value, indent=None)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def table_headers(documents: Iterable[Document]) -> list[str]:
    headers = [ID_FIELD]
    seen = {ID_FIELD}
    for document in documents:
        for name in document.fields:
            if name not in seen:
                seen.add(name)
                headers.append(name)
    return headers


def cell_value(document: Document, header: str) -> str:
    if header == ID_FIELD:
        return document.id
    return format_cell(document.fields.get(header))


def tree_label(key: str, value: Any) -> str:
    if isinstance(value, list):
        return f"{key}: [{len(value)} items]"
    if isinstance(value, dict):
        return f"{key}: {{...}}"
    return f"{key}: {format_cell(value)}"


def documents_as_json(documents: Iterable[Document]) -> str:
    return render_json([{"id": doc.id, "data": doc.fields} for doc in documents])
