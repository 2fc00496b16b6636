"""AnswerQuestionUseCase — one guarded chat turn.

INIT → DECIDE → TEXT_DONE
             ↘ VALIDATE → EXECUTE → ANALYZE → DONE
                  ↑           │ (database error)
                  └── REPAIR ←┘   at most ``max_attempts`` executions, then FAILED
"""

from __future__ import annotations

import json
import logging
from typing import Any

from app.application.ports.decision_model_port import DecisionModelPort
from app.application.ports.query_executor_port import QueryExecutorPort
from app.domain.entities.caller_scope import CallerScope
from app.domain.entities.chat import ChatAnswer, ChatMessage, QueryDecision
from app.domain.exceptions import (
    ExecutionError,
    ForbiddenOperation,
    InjectionSuspected,
    ModelUnavailable,
)
from app.domain.policies.chart_hint import ChartHintPolicy, KeywordChartHint
from app.domain.policies.query_guard import QueryGuard
from app.domain.value_objects.enums import ChatStatus, DecisionKind, ResponseType

logger = logging.getLogger(__name__)

EMPTY_HISTORY_TEXT = "History is empty"
DATA_TEXT = "Вот данные по вашему запросу:"
NO_DATA_TEXT = "К сожалению, по вашему запросу данных не найдено."
MODEL_UNAVAILABLE_TEXT = "LLM недоступен или вернул ошибку: {error}"
FORBIDDEN_TEXT = "Запрещенная операция. Допускается только SELECT."
INJECTION_TEXT = "Обнаружена потенциальная SQL инъекция."
FAILED_TEXT = "Не удалось составить корректный SQL запрос после {attempts} попыток.\nОшибка БД: {error}"

MAX_ATTEMPTS = 3
ANALYSIS_PAYLOAD_CHARS = 3000


class AnswerQuestionUseCase:
    """Turns the last question of a conversation into a scoped, executed answer."""

    def __init__(
        self,
        model: DecisionModelPort,
        executor: QueryExecutorPort,
        guard: QueryGuard,
        chart_hints: ChartHintPolicy | None = None,
        max_attempts: int = MAX_ATTEMPTS,
        analysis_chars: int = ANALYSIS_PAYLOAD_CHARS,
    ):
        self._model = model
        self._executor = executor
        self._guard = guard
        self._chart_hints = chart_hints or KeywordChartHint()
        self._max_attempts = max_attempts
        self._analysis_chars = analysis_chars

    async def execute(self, conversation: list[ChatMessage], scope: CallerScope) -> ChatAnswer:
        """Run one chat turn. Every failure comes back as a ``ChatAnswer``."""
        if not conversation:
            return ChatAnswer.failure(EMPTY_HISTORY_TEXT, ChatStatus.BAD_REQUEST)

        question = conversation[-1].content

        try:
            decision = await self._model.decide(conversation, scope)
        except ModelUnavailable as e:
            logger.warning("Decision model unavailable: %s", e.message)
            return ChatAnswer.failure(
                MODEL_UNAVAILABLE_TEXT.format(error=e.message), ChatStatus.MODEL_UNAVAILABLE
            )

        if decision.kind == DecisionKind.TEXT:
            return ChatAnswer.plain(decision.text or "")

        return await self._run_query(question, decision, scope)

    async def _run_query(
        self, question: str, decision: QueryDecision, scope: CallerScope
    ) -> ChatAnswer:
        chart_title = decision.chart_title or question
        last_error = ""
        executions = 0

        for attempt in range(1, self._max_attempts + 1):
            try:
                query = self._guard.finalize(decision.query or "", scope)
            except ForbiddenOperation as e:
                logger.warning("Query rejected for company %s: %s", scope.company_id, e.message)
                return ChatAnswer.failure(FORBIDDEN_TEXT, ChatStatus.FORBIDDEN_OPERATION)
            except InjectionSuspected as e:
                logger.warning("Query rejected for company %s: %s", scope.company_id, e.message)
                return ChatAnswer.failure(INJECTION_TEXT, ChatStatus.INJECTION_SUSPECTED)

            try:
                rows = await self._executor.fetch_all(query)
            except ExecutionError as e:
                last_error = e.message
                executions = attempt
                logger.info(
                    "Query attempt %d/%d failed: %s", attempt, self._max_attempts, last_error
                )
                if attempt == self._max_attempts:
                    break
                repaired = await self._repair(question, decision, last_error, scope)
                if repaired is None:
                    break
                decision = repaired
                continue

            return await self._result(question, query, rows, chart_title)

        return ChatAnswer.failure(
            FAILED_TEXT.format(attempts=executions, error=last_error),
            ChatStatus.QUERY_FAILED,
        )

    async def _repair(
        self, question: str, previous: QueryDecision, error: str, scope: CallerScope
    ) -> QueryDecision | None:
        try:
            repaired = await self._model.repair(question, previous, error, scope)
        except ModelUnavailable as e:
            logger.warning("Repair call failed, giving up: %s", e.message)
            return None
        if not repaired.query:
            logger.warning("Repair answer carried no query, giving up")
            return None
        return repaired

    async def _result(
        self,
        question: str,
        query: str,
        rows: list[dict[str, Any]],
        chart_title: str,
    ) -> ChatAnswer:
        columns = list(rows[0].keys()) if rows else []
        text = await self._analyze(question, rows) if rows else NO_DATA_TEXT

        return ChatAnswer(
            type=ResponseType.RESULT,
            text=text,
            query=query,
            columns=columns,
            rows=[[row.get(c) for c in columns] for row in rows],
            chart_type=self._chart_hints.infer(question),
            chart_title=chart_title,
        )

    async def _analyze(self, question: str, rows: list[dict[str, Any]]) -> str:
        payload = json.dumps(rows, ensure_ascii=False, default=str)[: self._analysis_chars]
        try:
            summary = await self._model.summarize(question, payload)
        except ModelUnavailable as e:
            logger.warning("Analysis call failed, returning raw data: %s", e.message)
            return DATA_TEXT
        return summary or DATA_TEXT
