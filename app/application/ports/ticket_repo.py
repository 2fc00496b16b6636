"""Port interface for ticket lookup."""

from abc import ABC, abstractmethod

from app.domain.entities.ticket import Ticket


class TicketRepository(ABC):
    @abstractmethod
    async def get_by_id(self, ticket_id: int) -> Ticket | None:
        ...
