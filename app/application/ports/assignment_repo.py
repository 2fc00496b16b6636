"""Port interface for assignment persistence."""

from abc import ABC, abstractmethod

from app.domain.entities.assignment import Assignment


class AssignmentRepository(ABC):
    @abstractmethod
    async def save(self, assignment: Assignment) -> Assignment:
        """Insert a new assignment row. Never updates an existing one."""
        ...
