"""Tests for SqlReadOnlyExecutor with a fake engine (no database)."""

from contextlib import asynccontextmanager

import pytest
from sqlalchemy.exc import DBAPIError

from app.adapters.persistence.readonly_executor import SqlReadOnlyExecutor
from app.domain.exceptions import ExecutionError


class FakeResult:
    def __init__(self, rows):
        self._rows = rows

    def mappings(self):
        return iter(self._rows)


class FakeConnection:
    def __init__(self, rows=None, error=None):
        self._rows = rows or []
        self._error = error
        self.statements: list[str] = []
        self.rolled_back = False

    async def exec_driver_sql(self, sql):
        self.statements.append(sql)
        if sql.startswith("SELECT") and self._error is not None:
            raise self._error
        return FakeResult(self._rows)

    async def rollback(self):
        self.rolled_back = True


class FakeEngine:
    def __init__(self, conn):
        self.conn = conn

    @asynccontextmanager
    async def connect(self):
        yield self.conn


@pytest.mark.asyncio
async def test_query_runs_in_read_only_transaction_with_timeout():
    conn = FakeConnection(rows=[{"segment": "VIP", "cnt": 2}])
    rows = await SqlReadOnlyExecutor(FakeEngine(conn), 1500).fetch_all("SELECT 1")

    assert rows == [{"segment": "VIP", "cnt": 2}]
    assert conn.statements == [
        "SET TRANSACTION READ ONLY",
        "SET LOCAL statement_timeout = 1500",
        "SELECT 1",
    ]
    assert conn.rolled_back


@pytest.mark.asyncio
async def test_database_error_carries_driver_message():
    error = DBAPIError("SELECT nope", {}, Exception('column "nope" does not exist'))
    executor = SqlReadOnlyExecutor(FakeEngine(FakeConnection(error=error)))

    with pytest.raises(ExecutionError) as exc_info:
        await executor.fetch_all("SELECT nope FROM tickets")

    assert exc_info.value.message == 'column "nope" does not exist'
