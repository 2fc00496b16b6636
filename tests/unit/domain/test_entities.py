"""Tests for domain entities."""

import pytest

from app.domain.entities.caller_scope import CallerScope
from app.domain.entities.chat import ChatAnswer, ChatMessage, QueryDecision
from app.domain.entities.ticket import Ticket
from app.domain.value_objects.enums import (
    ChatStatus,
    DecisionKind,
    ResponseType,
    Segment,
    UserRole,
)
from app.domain.value_objects.geo_point import GeoPoint


def _ticket(**kwargs) -> Ticket:
    defaults = dict(id=1, company_id=7, guid="t-1", segment=Segment.MASS)
    defaults.update(kwargs)
    return Ticket(**defaults)


def test_ticket_location_known():
    assert _ticket(location=GeoPoint(latitude=43.2, longitude=76.9)).is_location_known()
    assert not _ticket().is_location_known()


def test_ticket_has_address_ignores_blank():
    assert _ticket(address="Алматы, ул. Абая 10").has_address()
    assert not _ticket(address="   ").has_address()
    assert not _ticket(address=None).has_address()


def test_caller_scope_manager_role_keeps_manager():
    scope = CallerScope.for_role(7, UserRole.MANAGER, 3)
    assert scope == CallerScope(company_id=7, manager_id=3)
    assert scope.is_manager_scoped


def test_caller_scope_admin_drops_manager():
    scope = CallerScope.for_role(7, UserRole.ADMIN, 3)
    assert scope.manager_id is None
    assert not scope.is_manager_scoped


@pytest.mark.parametrize("manager_id", [None, 0])
def test_caller_scope_manager_without_id_is_rejected(manager_id):
    """A manager account without a linked manager row must not widen to the company."""
    with pytest.raises(ValueError, match="requires a manager id"):
        CallerScope.for_role(7, UserRole.MANAGER, manager_id)


def test_query_decision_constructors():
    answer = QueryDecision.answer("Привет!")
    assert answer.kind == DecisionKind.TEXT
    assert answer.query is None

    candidate = QueryDecision.candidate("SELECT 1", "Chart")
    assert candidate.kind == DecisionKind.QUERY
    assert candidate.chart_title == "Chart"


def test_chat_answer_constructors():
    plain = ChatAnswer.plain("hi")
    assert plain.type == ResponseType.TEXT
    assert plain.ok

    failed = ChatAnswer.failure("boom", ChatStatus.QUERY_FAILED)
    assert failed.type == ResponseType.ERROR
    assert not failed.ok


def test_chat_message_as_dict():
    assert ChatMessage("user", "q").as_dict() == {"role": "user", "content": "q"}
