"""Port interface for the workload store."""

from abc import ABC, abstractmethod

from app.domain.entities.manager import Manager


class ManagerRepository(ABC):
    @abstractmethod
    async def get_least_loaded(self, office_id: int, limit: int) -> list[Manager]:
        """Managers of the office ordered by (current_load ASC, id ASC)."""
        ...

    @abstractmethod
    async def increment_load(self, manager_id: int) -> None:
        """Atomically add one to the manager's load (no read-modify-write)."""
        ...
