"""Search specification and backend filter models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Operator(str, Enum):
    EQUAL = "=="
    NOT_EQUAL = "<>"
    LIKE = "LIKE"

    @classmethod
    def parse(cls, raw: str | Operator | None) -> Operator:
        if isinstance(raw, Operator):
            return raw
        try:
            return cls(raw)
        except ValueError:
            return cls.EQUAL


BACKEND_OPERATORS: dict[Operator, str] = {
    Operator.EQUAL: "==",
    Operator.NOT_EQUAL: "!=",
}


@dataclass(slots=True, frozen=True)
class SearchSpec:
    field: str
    operator: Operator
    value: str

    @classmethod
    def create(cls, field: str, operator: str | Operator, value: str) -> SearchSpec:
        return cls(field=field.strip(), operator=Operator.parse(operator), value=value)

    @property
    def is_active(self) -> bool:
        return bool(self.field) and bool(self.value)


@dataclass(slots=True, frozen=True)
class SearchFilter:
    """Server-side filter with the operator already in backend spelling."""

    field: str
    operator: str
    value: Any
