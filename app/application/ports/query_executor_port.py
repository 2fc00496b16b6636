"""Port interface for read-only query execution."""

from abc import ABC, abstractmethod
from typing import Any


class QueryExecutorPort(ABC):
    @abstractmethod
    async def fetch_all(self, query: str) -> list[dict[str, Any]]:
        """Run *query* read-only; rows keep the database's column order.

        Raises ExecutionError with the database's message on failure.
        """
        ...
