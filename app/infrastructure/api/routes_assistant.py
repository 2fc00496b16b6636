"""AI Assistant endpoint — one guarded chat turn.

The conversation goes to the decision model; a proposed query is validated,
scoped to the caller, executed read-only and summarised. The response carries
the rows plus a chart hint for the dashboard.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.application.use_cases.answer_question import AnswerQuestionUseCase
from app.domain.entities.caller_scope import CallerScope
from app.domain.entities.chat import ChatAnswer, ChatMessage
from app.domain.value_objects.enums import ChatStatus
from app.infrastructure.api.dependencies import get_answer_question_uc, get_caller_scope

router = APIRouter(prefix="/assistant", tags=["assistant"])

HTTP_STATUS = {
    ChatStatus.OK: 200,
    ChatStatus.BAD_REQUEST: 400,
    ChatStatus.FORBIDDEN_OPERATION: 400,
    ChatStatus.INJECTION_SUSPECTED: 400,
    ChatStatus.QUERY_FAILED: 400,
    ChatStatus.MODEL_UNAVAILABLE: 503,
}

# ── Request / Response schemas ──────────────────────────────────────


class ChatMessageIn(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessageIn]


class ChatResponse(BaseModel):
    type: str
    text: str
    query: str | None = None
    columns: list[str] | None = None
    rows: list[list[Any]] | None = None
    chart_type: str | None = Field(default=None, serialization_alias="chartType")
    chart_title: str | None = Field(default=None, serialization_alias="chartTitle")

    @classmethod
    def from_answer(cls, answer: ChatAnswer) -> "ChatResponse":
        if answer.query is None:
            return cls(type=answer.type.value, text=answer.text)
        return cls(
            type=answer.type.value,
            text=answer.text,
            query=answer.query,
            columns=answer.columns,
            rows=answer.rows,
            chart_type=answer.chart_type.value if answer.chart_type else None,
            chart_title=answer.chart_title,
        )


# ── Route ───────────────────────────────────────────────────────────


@router.post("/chat", response_model=ChatResponse)
async def chat(
    req: ChatRequest,
    scope: CallerScope = Depends(get_caller_scope),
    uc: AnswerQuestionUseCase = Depends(get_answer_question_uc),
):
    """Answer the last message of the conversation."""
    conversation = [ChatMessage(role=m.role, content=m.content) for m in req.messages]
    answer = await uc.execute(conversation, scope)

    body = ChatResponse.from_answer(answer).model_dump(by_alias=True, exclude_none=True)
    return JSONResponse(status_code=HTTP_STATUS[answer.status], content=jsonable_encoder(body))
