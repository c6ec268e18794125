"""Translate user search specifications into query plans."""

from __future__ import annotations

from dataclasses import dataclass
import math
import re
from typing import Any, ClassVar, Mapping

from firexplorer.model.document import ID_FIELD
from firexplorer.model.search import BACKEND_OPERATORS, Operator, SearchFilter, SearchSpec

_NUMBER_RE = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$")
_INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")


@dataclass(slots=True, frozen=True)
class AllDocuments:
    offset_paging: ClassVar[bool] = False


@dataclass(slots=True, frozen=True)
class IdLookup:
    document_id: str
    offset_paging: ClassVar[bool] = False


@dataclass(slots=True, frozen=True)
class ServerQuery:
    search_filter: SearchFilter
    offset_paging: ClassVar[bool] = False


@dataclass(slots=True, frozen=True)
class SubstringQuery:
    """Containment search evaluated client-side over the whole collection."""

    field: str
    needle: str
    offset_paging: ClassVar[bool] = True

    def matches(self, fields: Mapping[str, Any]) -> bool:
        value = fields.get(self.field)
        return isinstance(value, str) and self.needle.lower() in value.lower()


QueryPlan = AllDocuments | IdLookup | ServerQuery | SubstringQuery


def coerce_value(raw: str, operator: Operator) -> Any:
    if operator is Operator.LIKE or not _NUMBER_RE.match(raw):
        return raw
    if _INTEGER_RE.match(raw):
        return int(raw)
    number = float(raw)
    if not math.isfinite(number):
        return raw
    return number


def translate(spec: SearchSpec | None) -> QueryPlan:
    if spec is None or not spec.is_active:
        return AllDocuments()

    # Identifier searches win over whatever operator was chosen.
    if spec.field == ID_FIELD:
        return IdLookup(document_id=spec.value)

    if spec.operator is Operator.LIKE:
        return SubstringQuery(field=spec.field, needle=spec.value)

    return ServerQuery(
        search_filter=SearchFilter(
            field=spec.field,
            operator=BACKEND_OPERATORS[spec.operator],
            value=coerce_value(spec.value, spec.operator),
        )
    )
