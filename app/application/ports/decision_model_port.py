"""Port interface for the Decision Model (text-completion service)."""

from abc import ABC, abstractmethod

from app.domain.entities.caller_scope import CallerScope
from app.domain.entities.chat import ChatMessage, QueryDecision


class DecisionModelPort(ABC):
    """All methods raise ModelUnavailable on network, timeout or format errors."""

    @abstractmethod
    async def decide(self, conversation: list[ChatMessage], scope: CallerScope) -> QueryDecision:
        """Answer directly or propose a candidate read query."""
        ...

    @abstractmethod
    async def repair(
        self,
        question: str,
        previous: QueryDecision,
        error: str,
        scope: CallerScope,
    ) -> QueryDecision:
        """Propose a corrected query given the database error. Always a query decision."""
        ...

    @abstractmethod
    async def summarize(self, question: str, data_json: str) -> str:
        """Prose analysis of a (size-capped) JSON result set."""
        ...
