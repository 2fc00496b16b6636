"""CallerScope — whose data a chat turn is allowed to see."""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.value_objects.enums import UserRole


@dataclass(frozen=True)
class CallerScope:
    company_id: int
    manager_id: int | None = None

    @classmethod
    def for_role(
        cls, company_id: int, role: UserRole, manager_id: int | None = None
    ) -> CallerScope:
        """Manager visibility applies only to line managers.

        Raises:
            ValueError: a MANAGER caller without a manager id.
        """
        if role == UserRole.MANAGER:
            if not manager_id:
                raise ValueError("MANAGER role requires a manager id")
            return cls(company_id=company_id, manager_id=manager_id)
        return cls(company_id=company_id)

    @property
    def is_manager_scoped(self) -> bool:
        return self.manager_id is not None
