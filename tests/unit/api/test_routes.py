"""HTTP-level tests for the assistant and assignment routes (use cases stubbed)."""

import pytest
from fastapi.testclient import TestClient

from app.adapters.persistence.database import get_session
from app.application.use_cases.assign_ticket import AssignmentOutcome
from app.application.use_cases.manage_offices import OfficeDirectoryUseCase
from app.domain.entities.caller_scope import CallerScope
from app.domain.entities.chat import ChatAnswer
from app.domain.entities.office import Office
from app.domain.exceptions import NoManagersAvailable, TicketNotFound
from app.domain.value_objects.enums import ChartType, ChatStatus, ResponseType
from app.domain.value_objects.geo_point import GeoPoint
from app.infrastructure.api.dependencies import (
    get_answer_question_uc,
    get_assign_ticket_uc,
    get_office_directory_uc,
)
from app.main import create_app

HEADERS = {"X-Company-Id": "7"}


class StubAnswerUseCase:
    def __init__(self, answer: ChatAnswer):
        self.answer = answer
        self.calls = []

    async def execute(self, conversation, scope):
        self.calls.append((conversation, scope))
        return self.answer


class StubAssignUseCase:
    def __init__(self, result):
        self.result = result

    async def execute(self, **kwargs):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class FakeSession:
    def __init__(self):
        self.committed = 0
        self.rolled_back = 0

    async def commit(self):
        self.committed += 1

    async def rollback(self):
        self.rolled_back += 1


@pytest.fixture
def app():
    application = create_app()
    yield application
    application.dependency_overrides.clear()


def _chat_client(app, answer: ChatAnswer) -> tuple[TestClient, StubAnswerUseCase]:
    uc = StubAnswerUseCase(answer)
    app.dependency_overrides[get_answer_question_uc] = lambda: uc
    return TestClient(app), uc


def _assign_client(app, result) -> tuple[TestClient, FakeSession]:
    session = FakeSession()
    app.dependency_overrides[get_assign_ticket_uc] = lambda: StubAssignUseCase(result)
    app.dependency_overrides[get_session] = lambda: session
    return TestClient(app), session


# ─── Assistant ───────────────────────────────────────────────────────


def test_chat_requires_company_header(app):
    client, uc = _chat_client(app, ChatAnswer.plain("hi"))
    response = client.post("/api/assistant/chat", json={"messages": [{"role": "user", "content": "?"}]})
    assert response.status_code == 401
    assert uc.calls == []


def test_chat_text_answer_has_no_query_fields(app):
    client, uc = _chat_client(app, ChatAnswer.plain("Здравствуйте!"))
    response = client.post(
        "/api/assistant/chat",
        json={"messages": [{"role": "user", "content": "Привет"}]},
        headers=HEADERS,
    )
    assert response.status_code == 200
    assert response.json() == {"type": "text", "text": "Здравствуйте!"}
    _, scope = uc.calls[0]
    assert scope == CallerScope(company_id=7)


def test_chat_result_uses_camel_case_chart_fields(app):
    answer = ChatAnswer(
        type=ResponseType.RESULT,
        text="Mass лидирует.",
        query="SELECT segment FROM tickets WHERE tickets.company_id = 7",
        columns=["segment", "cnt"],
        rows=[["Mass", 12]],
        chart_type=ChartType.PIE,
        chart_title="Сегменты",
    )
    client, _ = _chat_client(app, answer)
    body = client.post(
        "/api/assistant/chat",
        json={"messages": [{"role": "user", "content": "Доля сегментов"}]},
        headers=HEADERS,
    ).json()
    assert body["chartType"] == "pie"
    assert body["chartTitle"] == "Сегменты"
    assert body["columns"] == ["segment", "cnt"]
    assert body["rows"] == [["Mass", 12]]


def test_chat_manager_headers_scope_the_turn(app):
    client, uc = _chat_client(app, ChatAnswer.plain("ok"))
    client.post(
        "/api/assistant/chat",
        json={"messages": [{"role": "user", "content": "Мои тикеты"}]},
        headers={"X-Company-Id": "7", "X-User-Role": "MANAGER", "X-Manager-Id": "3"},
    )
    _, scope = uc.calls[0]
    assert scope == CallerScope(company_id=7, manager_id=3)


def test_chat_admin_ignores_manager_header(app):
    client, uc = _chat_client(app, ChatAnswer.plain("ok"))
    client.post(
        "/api/assistant/chat",
        json={"messages": [{"role": "user", "content": "?"}]},
        headers={"X-Company-Id": "7", "X-User-Role": "ADMIN", "X-Manager-Id": "3"},
    )
    _, scope = uc.calls[0]
    assert scope.manager_id is None


def test_chat_manager_role_without_manager_id_is_forbidden(app):
    client, uc = _chat_client(app, ChatAnswer.plain("ok"))
    response = client.post(
        "/api/assistant/chat",
        json={"messages": [{"role": "user", "content": "Мои тикеты"}]},
        headers={"X-Company-Id": "7", "X-User-Role": "MANAGER"},
    )
    assert response.status_code == 403
    assert uc.calls == []


@pytest.mark.parametrize(
    "status, code",
    [
        (ChatStatus.BAD_REQUEST, 400),
        (ChatStatus.FORBIDDEN_OPERATION, 400),
        (ChatStatus.INJECTION_SUSPECTED, 400),
        (ChatStatus.QUERY_FAILED, 400),
        (ChatStatus.MODEL_UNAVAILABLE, 503),
    ],
)
def test_chat_failures_map_to_http_status(app, status, code):
    client, _ = _chat_client(app, ChatAnswer.failure("nope", status))
    response = client.post("/api/assistant/chat", json={"messages": []}, headers=HEADERS)
    assert response.status_code == code
    assert response.json() == {"type": "error", "text": "nope"}


# ─── Assignments ─────────────────────────────────────────────────────


def test_assignment_commits_and_returns_outcome(app):
    outcome = AssignmentOutcome(
        assignment_id=10, manager_id=1, manager_name="Айгерим", office_id=1,
        office_name="ALA-1", distance_km=3, reason="Office: ALA-1 (...)",
    )
    client, session = _assign_client(app, outcome)
    response = client.post("/api/assignments", json={"ticket_id": 1})
    assert response.status_code == 200
    assert response.json()["office"] == "ALA-1"
    assert response.json()["distance_km"] == 3
    assert session.committed == 1


def test_unknown_ticket_is_404_and_rolled_back(app):
    client, session = _assign_client(app, TicketNotFound(99))
    response = client.post("/api/assignments", json={"ticket_id": 99})
    assert response.status_code == 404
    assert session.committed == 0
    assert session.rolled_back == 1


def test_no_managers_is_409(app):
    client, _ = _assign_client(app, NoManagersAvailable(7))
    response = client.post("/api/assignments", json={"ticket_id": 1})
    assert response.status_code == 409
    assert "company #7" in response.json()["detail"]


# ─── Offices ─────────────────────────────────────────────────────────


class StubOfficeRepo:
    def __init__(self):
        self.offices = [
            Office(id=1, company_id=7, name="ALA-1", address="ул. Абая 1",
                   location=GeoPoint(latitude=43.238949, longitude=76.945465)),
            Office(id=2, company_id=7, name="AST-1", address=None, location=None),
        ]

    async def save(self, office):
        office.id = 3
        return office

    async def get_by_company(self, company_id):
        return [o for o in self.offices if o.company_id == company_id]


class StubGeocoder:
    async def geocode(self, address):
        return None

    async def reverse_geocode(self, point):
        return "Алматы, проспект Абая, 1"

    async def suggest(self, query, city=None, limit=5):
        return []


def _office_client(app) -> tuple[TestClient, FakeSession]:
    session = FakeSession()
    uc = OfficeDirectoryUseCase(StubOfficeRepo(), StubGeocoder())
    app.dependency_overrides[get_office_directory_uc] = lambda: uc
    app.dependency_overrides[get_session] = lambda: session
    return TestClient(app), session


def test_list_offices_of_caller_company(app):
    client, _ = _office_client(app)
    body = client.get("/api/offices", headers=HEADERS).json()
    assert [o["office"] for o in body] == ["ALA-1", "AST-1"]
    assert body[1]["latitude"] is None


def test_create_office_commits(app):
    client, session = _office_client(app)
    response = client.post(
        "/api/offices",
        json={"office": "Шымкент", "latitude": 42.3417, "longitude": 69.5901},
        headers=HEADERS,
    )
    assert response.status_code == 201
    assert response.json()["id"] == 3
    assert session.committed == 1


def test_nearest_office(app):
    client, _ = _office_client(app)
    body = client.get("/api/offices/nearest", params={"lat": 43.24, "lon": 76.95}, headers=HEADERS).json()
    assert body["office"] == "ALA-1"
    assert body["distance_km"] == 0


def test_reverse_geocode(app):
    client, _ = _office_client(app)
    body = client.get("/api/offices/reverse-geocode", params={"lat": 43.24, "lon": 76.95}).json()
    assert body == {"address": "Алматы, проспект Абая, 1"}
