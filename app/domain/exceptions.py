"""Domain exceptions.

Routing errors surface configuration gaps to the caller. Query errors are
split by recoverability: only ``ExecutionError`` is ever fed back to the
Decision Model for repair.
"""


class FireError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# ─── Assignment engine ───────────────────────────────────────────────


class RoutingError(FireError):
    """Ticket could not be routed."""


class TicketNotFound(RoutingError):
    def __init__(self, ticket_id: int):
        self.ticket_id = ticket_id
        super().__init__(f"Ticket #{ticket_id} not found")


class NoOfficesConfigured(RoutingError):
    def __init__(self, company_id: int):
        self.company_id = company_id
        super().__init__(f"No business units configured for company #{company_id}")


class NoManagersAvailable(RoutingError):
    def __init__(self, company_id: int):
        self.company_id = company_id
        super().__init__(f"No managers found for company #{company_id}")


# ─── Guarded query pipeline ──────────────────────────────────────────


class QueryRejected(FireError):
    """Candidate query violates policy. Terminal, never repaired."""


class ForbiddenOperation(QueryRejected):
    pass


class InjectionSuspected(QueryRejected):
    pass


class ExecutionError(FireError):
    """The database rejected a finalized query."""


class ModelUnavailable(FireError):
    """Decision Model errored, timed out or returned a malformed structure."""
