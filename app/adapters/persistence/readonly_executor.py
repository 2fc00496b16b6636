"""Read-only executor for finalized guard queries — implements QueryExecutorPort."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.application.ports.query_executor_port import QueryExecutorPort
from app.domain.exceptions import ExecutionError

logger = logging.getLogger(__name__)


class SqlReadOnlyExecutor(QueryExecutorPort):
    """Runs each query in its own READ ONLY transaction with a statement timeout.

    The transaction is always rolled back; nothing a query does can persist.
    """

    def __init__(self, engine: AsyncEngine, statement_timeout_ms: int = 5000):
        self._engine = engine
        self._statement_timeout_ms = int(statement_timeout_ms)

    async def fetch_all(self, query: str) -> list[dict[str, Any]]:
        try:
            async with self._engine.connect() as conn:
                await conn.exec_driver_sql("SET TRANSACTION READ ONLY")
                await conn.exec_driver_sql(
                    f"SET LOCAL statement_timeout = {self._statement_timeout_ms}"
                )
                result = await conn.exec_driver_sql(query)
                rows = [dict(row) for row in result.mappings()]
                await conn.rollback()
        except DBAPIError as e:
            message = str(e.orig) if e.orig is not None else str(e)
            logger.info("Query rejected by database: %s", message)
            raise ExecutionError(message) from e
        except SQLAlchemyError as e:
            logger.warning("Query execution failed: %s", e)
            raise ExecutionError(str(e)) from e

        logger.debug("Query returned %d rows", len(rows))
        return rows
