"""Assignment entity — the result of routing a ticket to a manager."""

from dataclasses import dataclass


@dataclass
class Assignment:
    id: int | None
    ticket_id: int
    manager_id: int
    office_id: int | None
    assignment_reason: str
    analysis_id: int | None = None
