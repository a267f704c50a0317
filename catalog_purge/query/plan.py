from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


@dataclass(frozen=True)
class SelectItem:
    expression: str
    alias: Optional[str] = None

    def render(self) -> str:
        return f"{self.expression} AS {self.alias}" if self.alias else self.expression


@dataclass(frozen=True)
class QueryPlan:
    selects: Sequence[SelectItem]
    source: str
    filters: Sequence[str] = field(default_factory=list)

    def with_filter(self, predicate: Optional[str]) -> "QueryPlan":
        if not predicate:
            return self
        return QueryPlan(
            selects=self.selects,
            source=self.source,
            filters=(*self.filters, predicate),
        )

    def render(self) -> str:
        selects = self.selects or (SelectItem(expression="*"),)
        select_clause = ", ".join(sel.render() for sel in selects)
        where_clause = ""
        if self.filters:
            where_clause = " WHERE " + " AND ".join(f"({expr})" for expr in self.filters)
        return f"SELECT {select_clause} FROM {self.source}{where_clause}"


@dataclass
class ResultRow:
    values: Dict[str, Any]

    def get(self, key: str, default: Any = None) -> Any:
        if key in self.values:
            return self.values[key]
        lowered = key.lower()
        for name, value in self.values.items():
            if name.lower() == lowered:
                return value
        return default


@dataclass
class RecordSet:
    """Materialised query result handed out by directory clients."""

    rows: List[ResultRow]
    released: bool = False

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "RecordSet":
        return cls(rows=[ResultRow(values=dict(record)) for record in records])

    @property
    def record_count(self) -> int:
        return len(self.rows)

    def field(self, name: str, row: int = 0) -> Any:
        if row >= len(self.rows):
            raise IndexError(f"Record set has {len(self.rows)} rows, requested row {row}")
        return self.rows[row].get(name)

    def release(self) -> None:
        self.rows = []
        self.released = True


__all__ = ["QueryPlan", "RecordSet", "ResultRow", "SelectItem", "quote_identifier"]
