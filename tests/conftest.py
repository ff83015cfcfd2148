from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest

from schema_health.databases.base import (
    IS_NULL,
    LENGTH_GREATER_THAN,
    LESS_OR_EQUAL,
    DialectAdapter,
    Predicate,
)
from schema_health.errors import QueryFailed
from schema_health.models import RawColumn


class FakeAdapter(DialectAdapter):
    """In-memory schema enumerator and query oracle.

    ``tables`` maps table name -> (columns, rows). Dates are stored as
    numbers, the way MySQL compares them in ``col <= 1``.
    """

    def __init__(
        self,
        tables: Dict[str, Any],
        sizes: Optional[Dict[str, int]] = None,
        max_packet: int = 64 * 1024 * 1024,
        fail_on: Optional[set] = None,
        schema: str = "shop",
    ):
        super().__init__(engine=None, schema=schema)
        self.tables = tables
        self.sizes = sizes or {}
        self.max_packet = max_packet
        self.fail_on = fail_on or set()
        self.queries: List[tuple] = []

    def quote_identifier(self, name: str) -> str:
        return f"`{name}`"

    def list_tables(self) -> List[str]:
        return list(self.tables)

    def list_columns(self, table: str) -> List[RawColumn]:
        # (table, None) in fail_on breaks column listing for that table
        if (table, None) in self.fail_on:
            raise QueryFailed("Could not list columns: access denied", table=table)
        return list(self.tables[table][0])

    def _values(self, table: str, column: str) -> List[Any]:
        if (table, column) in self.fail_on:
            raise QueryFailed("Lost connection to MySQL server during query", table=table, column=column)
        return [row.get(column) for row in self.tables[table][1]]

    def count_where(self, table: str, column: str, predicate: Predicate) -> int:
        self.queries.append(("count", table, column, predicate))
        values = self._values(table, column)
        if predicate.kind == IS_NULL:
            return sum(1 for v in values if v is None)
        if predicate.kind == LESS_OR_EQUAL:
            return sum(1 for v in values if v is not None and v <= predicate.operand)
        if predicate.kind == LENGTH_GREATER_THAN:
            return sum(1 for v in values if v is not None and len(str(v)) > predicate.operand)
        raise AssertionError(predicate)

    def max_value(self, table: str, column: str):
        self.queries.append(("max", table, column))
        values = [v for v in self._values(table, column) if v is not None]
        return max(values) if values else 0

    def table_size_bytes(self, table: str) -> Optional[int]:
        self.queries.append(("size", table))
        return self.sizes.get(table)

    def max_allowed_packet_size(self) -> int:
        self.queries.append(("packet",))
        return self.max_packet


@pytest.fixture
def make_adapter():
    return FakeAdapter


@pytest.fixture
def shop_adapter():
    """A small shop database with a bit of everything."""
    return FakeAdapter(
        {
            "users": (
                [
                    RawColumn("id", "integer", nullable=False, unsigned=True, autoincrement=True),
                    RawColumn("email", "string", nullable=False, length=20),
                    RawColumn("nickname", "string", nullable=True, length=None),
                    RawColumn("bio", "text", nullable=True),
                    RawColumn("last_seen_at", "integer", nullable=True),
                    RawColumn("created", "datetime", nullable=False),
                ],
                [
                    {"id": 1, "email": "a@example.com", "nickname": "a", "bio": "hi",
                     "last_seen_at": 0, "created": 20240101000000},
                    {"id": 2, "email": None, "nickname": None, "bio": None,
                     "last_seen_at": 1700000000, "created": 0},
                    {"id": 3, "email": "x" * 30, "nickname": "c", "bio": "",
                     "last_seen_at": None, "created": 20240102000000},
                ],
            ),
            "tags": (
                [
                    RawColumn("id", "tinyint", nullable=False, unsigned=True, autoincrement=True),
                    RawColumn("label", "ascii_string", nullable=False, length=10),
                ],
                [{"id": i, "label": f"t{i}"} for i in range(1, 201)],
            ),
            "amounts": (
                [RawColumn("value", "decimal", nullable=False)],
                [{"value": Decimal("1.50")}],
            ),
        },
        sizes={"users": 16384, "tags": 1536},
    )
