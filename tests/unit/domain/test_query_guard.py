"""Tests for QueryGuard — validation, placeholders and scoping together."""

import pytest

from app.domain.entities.caller_scope import CallerScope
from app.domain.exceptions import ForbiddenOperation, InjectionSuspected
from app.domain.policies.query_guard import QueryGuard, strip_code_fences

COMPANY = CallerScope(company_id=7)
MANAGER = CallerScope(company_id=7, manager_id=3)


@pytest.fixture
def guard():
    return QueryGuard()


def test_strip_code_fences():
    assert strip_code_fences("```sql\nSELECT 1\n```") == "SELECT 1"
    assert strip_code_fences("  SELECT 1  ") == "SELECT 1"
    assert strip_code_fences(None) == ""


def test_fenced_query_with_terminator(guard):
    candidate = "```sql\nSELECT segment, COUNT(*) FROM tickets GROUP BY segment;\n```"
    assert guard.finalize(candidate, COMPANY) == (
        "SELECT segment, COUNT(*) FROM tickets WHERE tickets.company_id = 7 GROUP BY segment"
    )


def test_lowercase_select_is_accepted(guard):
    assert guard.finalize("select * from tickets", COMPANY) == (
        "select * from tickets WHERE tickets.company_id = 7"
    )


@pytest.mark.parametrize(
    "candidate",
    [
        "DELETE FROM tickets",
        "UPDATE managers SET current_load = 0",
        "WITH x AS (SELECT 1) SELECT * FROM x",
        "",
        "   ",
        "-- just a comment",
    ],
)
def test_non_select_is_forbidden(guard, candidate):
    with pytest.raises(ForbiddenOperation):
        guard.finalize(candidate, COMPANY)


@pytest.mark.parametrize(
    "candidate",
    [
        "SELECT * FROM tickets; DROP TABLE tickets",
        "SELECT * FROM tickets WHERE id IN (SELECT 1) OR 1=1; delete from tickets",
        "SELECT pg_catalog.copy FROM tickets",
        "SELECT * FROM tickets t JOIN (SELECT * FROM managers) m ON TRUE CROSS JOIN LATERAL (SELECT 1) x WHERE Truncate",
        "SELECT grant FROM tickets",
    ],
)
def test_denylisted_words_are_injection(guard, candidate):
    with pytest.raises(InjectionSuspected):
        guard.finalize(candidate, COMPANY)


def test_second_statement_is_injection(guard):
    with pytest.raises(InjectionSuspected, match="Multiple statements"):
        guard.finalize("SELECT * FROM tickets; SELECT 1", COMPANY)


def test_denylisted_text_inside_strings_is_allowed(guard):
    finalized = guard.finalize("SELECT * FROM tickets WHERE description = 'please delete me'", COMPANY)
    assert "'please delete me'" in finalized


def test_identifiers_containing_keywords_are_allowed(guard):
    finalized = guard.finalize("SELECT last_update, created_at FROM tickets", COMPANY)
    assert finalized == (
        "SELECT last_update, created_at FROM tickets WHERE tickets.company_id = 7"
    )


def test_comments_are_removed(guard):
    finalized = guard.finalize("SELECT * FROM tickets /* DELETE */", COMPANY)
    assert "DELETE" not in finalized
    assert finalized == "SELECT * FROM tickets WHERE tickets.company_id = 7"


def test_company_placeholder_is_substituted(guard):
    finalized = guard.finalize("SELECT * FROM tickets WHERE company_id = {companyId}", COMPANY)
    assert finalized == "SELECT * FROM tickets WHERE company_id = 7"


def test_manager_placeholder_is_zero_for_company_callers(guard):
    finalized = guard.finalize(
        "SELECT * FROM business_units WHERE company_id = {companyId} AND {managerId} = 0",
        COMPANY,
    )
    assert "0 = 0" in finalized


def test_foreign_company_is_forbidden(guard):
    with pytest.raises(ForbiddenOperation):
        guard.finalize("SELECT * FROM tickets WHERE company_id = 8", COMPANY)


def test_manager_scope_applied(guard):
    finalized = guard.finalize("SELECT COUNT(*) FROM tickets", MANAGER)
    assert finalized == (
        "SELECT COUNT(*) FROM tickets JOIN assignments a ON tickets.id = a.ticket_id "
        "WHERE tickets.company_id = 7 AND a.manager_id = 3"
    )


def test_finalize_is_idempotent(guard):
    once = guard.finalize("SELECT * FROM tickets t WHERE t.segment = 'VIP'", MANAGER)
    assert guard.finalize(once, MANAGER) == once


def test_custom_denylist():
    guard = QueryGuard(denylist=("PG_SLEEP",))
    with pytest.raises(InjectionSuspected):
        guard.finalize("SELECT pg_sleep FROM tickets", COMPANY)
    assert guard.finalize("SELECT * FROM tickets WHERE x = 'drop'", COMPANY)


def test_company_comparison_outside_where_still_gets_filter(guard):
    finalized = guard.finalize("SELECT t.company_id = 7 AS mine, t.* FROM tickets t", COMPANY)
    assert finalized.endswith("WHERE t.company_id = 7")


def test_company_filter_cannot_be_bypassed_with_or(guard):
    finalized = guard.finalize("SELECT * FROM tickets WHERE company_id = 7 OR 1 = 1", COMPANY)
    assert finalized == (
        "SELECT * FROM tickets WHERE tickets.company_id = 7 AND (company_id = 7 OR 1 = 1)"
    )


def test_manager_comparison_outside_where_still_gets_filter():
    guard = QueryGuard()
    finalized = guard.finalize(
        "SELECT a.manager_id = 5 AS mine, t.* FROM tickets t "
        "JOIN assignments a ON a.ticket_id = t.id WHERE t.company_id = 7",
        CallerScope(company_id=7, manager_id=5),
    )
    assert "WHERE a.manager_id = 5 AND t.company_id = 7" in finalized
