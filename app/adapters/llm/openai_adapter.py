"""OpenAI adapter — implements DecisionModelPort using the OpenAI API.

Works against any OpenAI-compatible chat completions endpoint
(``OPENAI_BASE_URL``). There are no client-side retries: a failed call is
reported as ``ModelUnavailable`` and the pipeline decides what to do.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from app.adapters.llm.prompts import (
    ANALYTICS_SYSTEM_PROMPT,
    ANALYTICS_USER_PROMPT,
    REPAIR_USER_PROMPT,
    render_decision_prompt,
)
from app.application.ports.decision_model_port import DecisionModelPort
from app.config import settings
from app.domain.entities.caller_scope import CallerScope
from app.domain.entities.chat import ChatMessage, QueryDecision
from app.domain.exceptions import ModelUnavailable

logger = logging.getLogger(__name__)

_NOT_SET = object()

CONVERSATION_ROLES = ("user", "assistant")
QUERY_TYPES = ("query", "sql")  # "sql" is what older prompts asked for


def parse_decision(raw: str) -> QueryDecision:
    """Map the model's JSON answer onto a QueryDecision.

    Raises:
        ModelUnavailable: not JSON, or neither a usable text nor query answer.
    """
    payload = _load_object(raw)
    kind = str(payload.get("type") or "").strip().lower()

    if kind in QUERY_TYPES:
        query = _query_of(payload)
        if query:
            return QueryDecision.candidate(query, _chart_title_of(payload))
    elif kind == "text":
        text = payload.get("text")
        if isinstance(text, str):
            return QueryDecision.answer(text)

    raise ModelUnavailable(f"Unrecognised decision structure (type={kind!r})")


def parse_repair(raw: str) -> QueryDecision:
    """A repair answer only needs a query; an empty one means the model gave up."""
    payload = _load_object(raw)
    return QueryDecision.candidate(_query_of(payload) or "", _chart_title_of(payload))


def _load_object(raw: str) -> dict[str, Any]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ModelUnavailable(f"Model returned invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ModelUnavailable("Model returned JSON that is not an object")
    return payload


def _query_of(payload: dict[str, Any]) -> str | None:
    query = payload.get("query") or payload.get("sql")
    if isinstance(query, str) and query.strip():
        return query.strip()
    return None


def _chart_title_of(payload: dict[str, Any]) -> str | None:
    title = payload.get("chartTitle") or payload.get("chart_title")
    return title if isinstance(title, str) and title.strip() else None


class OpenAIDecisionModel(DecisionModelPort):
    """OpenAI implementation of DecisionModelPort."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        decision_timeout: float | None = None,
        analysis_timeout: float | None = None,
        repair_timeout: Any = _NOT_SET,
        client: Any = None,
    ):
        self._api_key = api_key if api_key is not None else settings.openai_api_key
        self._base_url = base_url or settings.openai_base_url
        self._model = model or settings.openai_model
        self._decision_timeout = decision_timeout or settings.decision_timeout_s
        self._analysis_timeout = analysis_timeout or settings.analysis_timeout_s
        self._repair_timeout = (
            settings.repair_timeout_s if repair_timeout is _NOT_SET else repair_timeout
        )
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not (self._api_key or "").strip():
                raise ModelUnavailable("OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                max_retries=0,
            )
        return self._client

    async def decide(self, conversation: list[ChatMessage], scope: CallerScope) -> QueryDecision:
        messages = [
            {"role": "system", "content": render_decision_prompt(scope.company_id, scope.manager_id)},
            *self._conversation(conversation),
        ]
        raw = await self._complete(messages, timeout=self._decision_timeout, json_mode=True)
        decision = parse_decision(raw)
        logger.info("Decision for company %s: %s", scope.company_id, decision.kind.value)
        return decision

    async def repair(
        self,
        question: str,
        previous: QueryDecision,
        error: str,
        scope: CallerScope,
    ) -> QueryDecision:
        previous_json = json.dumps(
            {"type": "query", "query": previous.query, "chartTitle": previous.chart_title},
            ensure_ascii=False,
        )
        messages = [
            {"role": "system", "content": render_decision_prompt(scope.company_id, scope.manager_id)},
            {"role": "user", "content": question},
            {"role": "assistant", "content": previous_json},
            {"role": "user", "content": REPAIR_USER_PROMPT.format(error=error)},
        ]
        raw = await self._complete(messages, timeout=self._repair_timeout, json_mode=True)
        return parse_repair(raw)

    async def summarize(self, question: str, data_json: str) -> str:
        messages = [
            {"role": "system", "content": ANALYTICS_SYSTEM_PROMPT},
            {"role": "user", "content": ANALYTICS_USER_PROMPT.format(question=question, data=data_json)},
        ]
        raw = await self._complete(
            messages, timeout=self._analysis_timeout, json_mode=False, temperature=0.3
        )
        return raw.strip()

    @staticmethod
    def _conversation(conversation: list[ChatMessage]) -> list[dict[str, str]]:
        # Callers cannot inject their own system instructions.
        return [
            {
                "role": m.role if m.role in CONVERSATION_ROLES else "user",
                "content": m.content,
            }
            for m in conversation
        ]

    async def _complete(
        self,
        messages: list[dict[str, str]],
        timeout: float | None,
        json_mode: bool,
        temperature: float = 0.1,
    ) -> str:
        client = self._get_client()
        extra: dict[str, Any] = {}
        if json_mode:
            extra["response_format"] = {"type": "json_object"}

        try:
            response = await client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                timeout=timeout,
                **extra,
            )
        except OpenAIError as e:
            logger.warning("LLM call failed: %s", e)
            raise ModelUnavailable(str(e)) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ModelUnavailable("Model returned an empty response")
        return content
