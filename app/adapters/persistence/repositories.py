"""SQLAlchemy repository implementations."""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.adapters.persistence.models import (
    AssignmentModel,
    BusinessUnitModel,
    ManagerModel,
    RoundRobinStateModel,
    TicketModel,
)
from app.application.ports.assignment_repo import AssignmentRepository
from app.application.ports.manager_repo import ManagerRepository
from app.application.ports.office_repo import OfficeRepository
from app.application.ports.round_robin_repo import RoundRobinRepository
from app.application.ports.ticket_repo import TicketRepository
from app.domain.entities.assignment import Assignment
from app.domain.entities.manager import Manager
from app.domain.entities.office import Office
from app.domain.entities.ticket import Ticket
from app.domain.value_objects.enums import Segment
from app.domain.value_objects.geo_point import GeoPoint

# ─── Mappers ─────────────────────────────────────────────────────────


def _office_to_domain(m: BusinessUnitModel) -> Office:
    return Office(
        id=m.id,
        company_id=m.company_id,
        name=m.office,
        address=m.address,
        location=GeoPoint.from_optional(m.latitude, m.longitude),
    )


def _manager_to_domain(m: ManagerModel) -> Manager:
    return Manager(
        id=m.id,
        company_id=m.company_id,
        name=m.name,
        office_id=m.office_id,
        position=m.position,
        current_load=m.current_load,
    )


def _ticket_to_domain(m: TicketModel) -> Ticket:
    return Ticket(
        id=m.id,
        company_id=m.company_id,
        guid=m.guid,
        segment=Segment(m.segment),
        ticket_type=m.analysis.ticket_type if m.analysis else None,
        address=m.address,
        location=GeoPoint.from_optional(m.latitude, m.longitude),
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlTicketRepository(TicketRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, ticket_id: int) -> Ticket | None:
        result = await self._s.execute(
            select(TicketModel)
            .options(selectinload(TicketModel.analysis))
            .where(TicketModel.id == ticket_id)
        )
        m = result.scalar_one_or_none()
        return _ticket_to_domain(m) if m else None


class SqlManagerRepository(ManagerRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_least_loaded(self, office_id: int, limit: int) -> list[Manager]:
        result = await self._s.execute(
            select(ManagerModel)
            .where(ManagerModel.office_id == office_id)
            .order_by(ManagerModel.current_load, ManagerModel.id)
            .limit(limit)
        )
        return [_manager_to_domain(m) for m in result.scalars()]

    async def increment_load(self, manager_id: int) -> None:
        await self._s.execute(
            update(ManagerModel)
            .where(ManagerModel.id == manager_id)
            .values(current_load=ManagerModel.current_load + 1)
        )
        await self._s.flush()


class SqlOfficeRepository(OfficeRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, office: Office) -> Office:
        m = BusinessUnitModel(
            company_id=office.company_id,
            office=office.name,
            address=office.address,
            latitude=office.location.latitude if office.location else None,
            longitude=office.location.longitude if office.location else None,
        )
        self._s.add(m)
        await self._s.flush()
        office.id = m.id
        return office

    async def get_by_company(self, company_id: int) -> list[Office]:
        result = await self._s.execute(
            select(BusinessUnitModel)
            .where(BusinessUnitModel.company_id == company_id)
            .order_by(BusinessUnitModel.id)
        )
        return [_office_to_domain(m) for m in result.scalars()]


class SqlAssignmentRepository(AssignmentRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, assignment: Assignment) -> Assignment:
        m = AssignmentModel(
            ticket_id=assignment.ticket_id,
            analysis_id=assignment.analysis_id,
            manager_id=assignment.manager_id,
            office_id=assignment.office_id,
            assignment_reason=assignment.assignment_reason,
        )
        self._s.add(m)
        await self._s.flush()
        assignment.id = m.id
        return assignment


class SqlRoundRobinRepository(RoundRobinRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def increment_counter(self, rr_key: str) -> int:
        # Single statement: concurrent callers serialize on the unique key.
        stmt = (
            insert(RoundRobinStateModel)
            .values(rr_key=rr_key, counter=1)
            .on_conflict_do_update(
                index_elements=[RoundRobinStateModel.rr_key],
                set_={"counter": RoundRobinStateModel.counter + 1, "updated_at": func.now()},
            )
            .returning(RoundRobinStateModel.counter)
        )
        new_value = (await self._s.execute(stmt)).scalar_one()
        return new_value - 1
