"""AssignTicketUseCase — route one ticket: locate → office → pool → round robin."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.application.ports.assignment_repo import AssignmentRepository
from app.application.ports.geocoder_port import GeocoderPort
from app.application.ports.manager_repo import ManagerRepository
from app.application.ports.office_repo import OfficeRepository
from app.application.ports.round_robin_repo import RoundRobinRepository
from app.application.ports.ticket_repo import TicketRepository
from app.domain.entities.assignment import Assignment
from app.domain.entities.manager import Manager
from app.domain.entities.office import Office
from app.domain.entities.ticket import Ticket
from app.domain.exceptions import NoManagersAvailable, NoOfficesConfigured, TicketNotFound
from app.domain.policies.office_selection import (
    OfficeSelection,
    select_default_office,
    select_nearest_office,
)
from app.domain.policies.round_robin import POOL_SIZE, describe_pick, pick_next
from app.domain.value_objects.geo_point import GeoPoint

logger = logging.getLogger(__name__)


def rotation_key(office_id: int) -> str:
    return f"office:{office_id}"


@dataclass
class AssignmentOutcome:
    """What the caller gets back for one routing decision."""

    assignment_id: int | None
    manager_id: int
    manager_name: str
    office_id: int | None
    office_name: str
    distance_km: int | None
    reason: str


class AssignTicketUseCase:
    """Deterministic office + manager selection for a single ticket.

    Both writes (assignment row, load increment) go through the repositories
    of one unit of work; committing is the caller's job.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        office_repo: OfficeRepository,
        manager_repo: ManagerRepository,
        assignment_repo: AssignmentRepository,
        rr_repo: RoundRobinRepository,
        geocoder: GeocoderPort | None = None,
        default_office_name: str | None = None,
        pool_size: int = POOL_SIZE,
    ):
        self._tickets = ticket_repo
        self._offices = office_repo
        self._managers = manager_repo
        self._assignments = assignment_repo
        self._rr = rr_repo
        self._geocoder = geocoder
        self._default_office_name = default_office_name
        self._pool_size = pool_size

    async def execute(
        self,
        ticket_id: int,
        analysis_id: int | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> AssignmentOutcome:
        """Assign *ticket_id* to a manager.

        Raises:
            TicketNotFound: unknown ticket.
            NoOfficesConfigured: the ticket's company has no business units.
            NoManagersAvailable: neither the selected nor the first office
                has managers.
        """
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise TicketNotFound(ticket_id)

        offices = await self._offices.get_by_company(ticket.company_id)
        if not offices:
            raise NoOfficesConfigured(ticket.company_id)

        location = await self._locate(ticket, latitude, longitude)
        selection = self._select_office(location, offices)
        office = selection.office

        pool = await self._managers.get_least_loaded(office.id, self._pool_size)
        if not pool and offices[0].id != office.id:
            logger.warning(
                "Ticket %s: office %s has no managers, falling back to %s",
                ticket.guid, office.name, offices[0].name,
            )
            office = offices[0]
            pool = await self._managers.get_least_loaded(office.id, self._pool_size)
        if not pool:
            raise NoManagersAvailable(ticket.company_id)

        counter = await self._rr.increment_counter(rotation_key(office.id))  # old value
        chosen, index = pick_next(pool, counter)

        reason = self._explain(office, selection, pool, index, counter)
        assignment = await self._assignments.save(
            Assignment(
                id=None,
                ticket_id=ticket.id,
                manager_id=chosen.id,
                office_id=office.id,
                assignment_reason=reason,
                analysis_id=analysis_id,
            )
        )
        await self._managers.increment_load(chosen.id)

        logger.info(
            "Ticket %s → Manager %s (office: %s, distance: %s km, rr=%d)",
            ticket.guid, chosen.name, office.name, selection.distance_km, counter,
        )

        return AssignmentOutcome(
            assignment_id=assignment.id,
            manager_id=chosen.id,
            manager_name=chosen.name,
            office_id=office.id,
            office_name=office.name,
            distance_km=selection.distance_km if office is selection.office else None,
            reason=reason,
        )

    async def _locate(
        self,
        ticket: Ticket,
        latitude: float | None,
        longitude: float | None,
    ) -> GeoPoint | None:
        explicit = GeoPoint.from_optional(latitude, longitude)
        if explicit is not None:
            return explicit
        if ticket.is_location_known():
            return ticket.location
        if ticket.has_address() and self._geocoder is not None:
            point = await self._geocoder.geocode(ticket.address)
            if point is None:
                logger.info("Ticket %s: address could not be geocoded", ticket.guid)
            return point
        return None

    def _select_office(self, location: GeoPoint | None, offices: list[Office]) -> OfficeSelection:
        if location is not None:
            nearest = select_nearest_office(location, offices)
            if nearest is not None:
                return nearest
        return select_default_office(offices, self._default_office_name)

    @staticmethod
    def _explain(
        office: Office,
        selection: OfficeSelection,
        pool: list[Manager],
        index: int,
        counter: int,
    ) -> str:
        if office is selection.office:
            where = selection.reason
        else:
            where = f"{selection.office.name} has no managers, first configured office used"
        return f"Office: {office.name} ({where}). " + describe_pick(pool, index, counter)
