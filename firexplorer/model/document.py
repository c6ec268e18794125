"""Document model for collection browsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

ID_FIELD = "_id"


class ViewMode(str, Enum):
    TABLE = "table"
    TREE = "tree"
    RAW = "raw"


@dataclass(slots=True)
class Document:
    id: str
    fields: dict[str, Any] = field(default_factory=dict)
