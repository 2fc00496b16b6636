"""Assignment endpoint — route one ticket to a manager."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.application.use_cases.assign_ticket import AssignTicketUseCase
from app.domain.exceptions import RoutingError, TicketNotFound
from app.infrastructure.api.dependencies import get_assign_ticket_uc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assignments", tags=["assignments"])


class AssignmentRequest(BaseModel):
    ticket_id: int
    analysis_id: int | None = None
    latitude: float | None = None
    longitude: float | None = None


class AssignmentResponse(BaseModel):
    assignment_id: int | None
    manager_id: int
    manager_name: str
    office_id: int | None
    office: str
    distance_km: int | None
    reason: str


def _status_for(error: RoutingError) -> int:
    return 404 if isinstance(error, TicketNotFound) else 409


@router.post("", response_model=AssignmentResponse)
async def assign_ticket(
    req: AssignmentRequest,
    uc: AssignTicketUseCase = Depends(get_assign_ticket_uc),
    session: AsyncSession = Depends(get_session),
):
    """Pick an office and a manager for the ticket; both writes commit together."""
    try:
        outcome = await uc.execute(
            ticket_id=req.ticket_id,
            analysis_id=req.analysis_id,
            latitude=req.latitude,
            longitude=req.longitude,
        )
        await session.commit()
    except RoutingError as e:
        await session.rollback()
        logger.warning("Ticket %s not routed: %s", req.ticket_id, e.message)
        raise HTTPException(status_code=_status_for(e), detail=e.message)
    except Exception:
        await session.rollback()
        logger.exception("Error assigning ticket %s", req.ticket_id)
        raise

    return AssignmentResponse(
        assignment_id=outcome.assignment_id,
        manager_id=outcome.manager_id,
        manager_name=outcome.manager_name,
        office_id=outcome.office_id,
        office=outcome.office_name,
        distance_km=outcome.distance_km,
        reason=outcome.reason,
    )
