"""Manager entity — an employee who handles tickets."""

from dataclasses import dataclass


@dataclass
class Manager:
    id: int | None
    company_id: int
    name: str
    office_id: int
    position: str | None = None
    current_load: int = 0
