"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class Segment(str, Enum):
    MASS = "Mass"
    VIP = "VIP"
    PRIORITY = "Priority"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"


class DecisionKind(str, Enum):
    TEXT = "text"
    QUERY = "query"


class ResponseType(str, Enum):
    TEXT = "text"
    RESULT = "result"
    ERROR = "error"


class ChartType(str, Enum):
    BAR = "bar"
    PIE = "pie"
    LINE = "line"


class ChatStatus(str, Enum):
    """Outcome of one chat turn; routers map it to an HTTP status code."""

    OK = "ok"
    BAD_REQUEST = "bad_request"
    MODEL_UNAVAILABLE = "model_unavailable"
    FORBIDDEN_OPERATION = "forbidden_operation"
    INJECTION_SUSPECTED = "injection_suspected"
    QUERY_FAILED = "query_failed"
