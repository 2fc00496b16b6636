"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.geocoder.chained_geocoder import ChainedGeocoder
from app.adapters.geocoder.nominatim_adapter import NominatimAdapter
from app.adapters.geocoder.twogis_adapter import TwoGisAdapter
from app.adapters.llm.openai_adapter import OpenAIDecisionModel
from app.adapters.persistence.database import get_session, readonly_engine
from app.adapters.persistence.readonly_executor import SqlReadOnlyExecutor
from app.adapters.persistence.repositories import (
    SqlAssignmentRepository,
    SqlManagerRepository,
    SqlOfficeRepository,
    SqlRoundRobinRepository,
    SqlTicketRepository,
)
from app.application.use_cases.answer_question import AnswerQuestionUseCase
from app.application.use_cases.assign_ticket import AssignTicketUseCase
from app.application.use_cases.manage_offices import OfficeDirectoryUseCase
from app.config import settings
from app.domain.entities.caller_scope import CallerScope
from app.domain.policies.chart_hint import KeywordChartHint
from app.domain.policies.query_guard import QueryGuard
from app.domain.value_objects.enums import UserRole

logger = logging.getLogger(__name__)

# Singleton adapters (stateless or with internal caching)
_decision_model = OpenAIDecisionModel()
_query_executor = SqlReadOnlyExecutor(readonly_engine, settings.query_statement_timeout_ms)
_query_guard = QueryGuard()
_chart_hints = KeywordChartHint()

_twogis = TwoGisAdapter()
_geocoder_adapter = ChainedGeocoder([NominatimAdapter(), _twogis])
if _twogis.enabled:
    logger.info("2GIS fallback enabled for geocoding")


def get_caller_scope(
    x_company_id: int | None = Header(default=None),
    x_user_role: UserRole = Header(default=UserRole.ADMIN),
    x_manager_id: int | None = Header(default=None),
) -> CallerScope:
    """Caller identity, resolved upstream and forwarded in headers."""
    if x_company_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    try:
        return CallerScope.for_role(x_company_id, x_user_role, x_manager_id)
    except ValueError as e:
        logger.warning("Rejected caller of company %s: %s", x_company_id, e)
        raise HTTPException(status_code=403, detail=str(e))


def get_assign_ticket_uc(
    session: AsyncSession = Depends(get_session),
) -> AssignTicketUseCase:
    return AssignTicketUseCase(
        ticket_repo=SqlTicketRepository(session),
        office_repo=SqlOfficeRepository(session),
        manager_repo=SqlManagerRepository(session),
        assignment_repo=SqlAssignmentRepository(session),
        rr_repo=SqlRoundRobinRepository(session),
        geocoder=_geocoder_adapter,
        default_office_name=settings.default_office_name,
    )


def get_answer_question_uc() -> AnswerQuestionUseCase:
    return AnswerQuestionUseCase(
        model=_decision_model,
        executor=_query_executor,
        guard=_query_guard,
        chart_hints=_chart_hints,
        max_attempts=settings.max_query_attempts,
        analysis_chars=settings.analysis_payload_chars,
    )


def get_office_directory_uc(
    session: AsyncSession = Depends(get_session),
) -> OfficeDirectoryUseCase:
    return OfficeDirectoryUseCase(
        office_repo=SqlOfficeRepository(session),
        geocoder=_geocoder_adapter,
    )
