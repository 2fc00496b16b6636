"""Chat turn types — conversation input, model decisions, turn answers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from app.domain.value_objects.enums import ChartType, ChatStatus, DecisionKind, ResponseType


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class QueryDecision:
    """What the Decision Model proposed for one turn. Never persisted."""

    kind: DecisionKind
    text: str | None = None
    query: str | None = None
    chart_title: str | None = None

    @classmethod
    def answer(cls, text: str) -> QueryDecision:
        return cls(kind=DecisionKind.TEXT, text=text)

    @classmethod
    def candidate(cls, query: str, chart_title: str | None = None) -> QueryDecision:
        return cls(kind=DecisionKind.QUERY, query=query, chart_title=chart_title)


@dataclass
class ChatAnswer:
    type: ResponseType
    text: str
    status: ChatStatus = ChatStatus.OK
    query: str | None = None
    columns: list[str] = field(default_factory=list)
    rows: list[list[Any]] = field(default_factory=list)
    chart_type: ChartType | None = None
    chart_title: str | None = None

    @classmethod
    def plain(cls, text: str) -> ChatAnswer:
        return cls(type=ResponseType.TEXT, text=text)

    @classmethod
    def failure(cls, text: str, status: ChatStatus) -> ChatAnswer:
        return cls(type=ResponseType.ERROR, text=text, status=status)

    @property
    def ok(self) -> bool:
        return self.status == ChatStatus.OK
