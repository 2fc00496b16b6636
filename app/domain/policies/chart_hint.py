"""ChartHintPolicy — advisory chart type for a question.

Best-effort metadata only; swap the policy to change the heuristic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.value_objects.enums import ChartType

PIE_MARKERS = (
    "доля", "долю", "процент", "распределени",
    "share", "percent", "proportion", "distribution", "breakdown",
)

LINE_MARKERS = (
    "динамик", "по дням", "по месяц", "по недел",
    "trend", "by day", "by month", "by week", "over time", "daily", "monthly",
)


class ChartHintPolicy(ABC):
    @abstractmethod
    def infer(self, question: str) -> ChartType:
        ...


class KeywordChartHint(ChartHintPolicy):
    """Substring match on the lowercased question; time series wins over pie."""

    def __init__(
        self,
        pie_markers: tuple[str, ...] = PIE_MARKERS,
        line_markers: tuple[str, ...] = LINE_MARKERS,
    ):
        self._pie = pie_markers
        self._line = line_markers

    def infer(self, question: str) -> ChartType:
        q = (question or "").lower()
        if any(m in q for m in self._line):
            return ChartType.LINE
        if any(m in q for m in self._pie):
            return ChartType.PIE
        return ChartType.BAR
