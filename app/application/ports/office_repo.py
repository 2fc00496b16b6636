"""Port interface for business unit persistence."""

from abc import ABC, abstractmethod

from app.domain.entities.office import Office


class OfficeRepository(ABC):
    @abstractmethod
    async def save(self, office: Office) -> Office:
        ...

    @abstractmethod
    async def get_by_company(self, company_id: int) -> list[Office]:
        """All offices of the company ordered by id."""
        ...
