"""QueryGuard — turns an untrusted candidate query into an executable one.

Applied before every execution attempt, repairs included:

1. strip code-fence markup;
2. the first significant token must be the read keyword (``SELECT``);
3. no word token may be on the mutating-keyword denylist, and only a
   trailing statement terminator is tolerated;
4. ``{companyId}`` / ``{managerId}`` placeholders are substituted;
5. company and manager scoping are injected (see ``app.domain.sql.scoping``).

Failures raise ``ForbiddenOperation`` or ``InjectionSuspected``; neither is
ever sent back to the Decision Model.
"""

from __future__ import annotations

import logging
import re

from app.domain.entities.caller_scope import CallerScope
from app.domain.exceptions import ForbiddenOperation, InjectionSuspected
from app.domain.sql.lexer import Token, first_significant, render, tokenize
from app.domain.sql.scoping import DEFAULT_RULES, ScopingRules, scope_query

logger = logging.getLogger(__name__)

DEFAULT_DENYLIST = (
    "CREATE", "ALTER", "DROP", "DELETE", "UPDATE", "INSERT",
    "TRUNCATE", "GRANT", "REPLACE", "EXECUTE", "CALL", "COPY",
)

COMPANY_PLACEHOLDER = "{companyId}"
MANAGER_PLACEHOLDER = "{managerId}"

_FENCE_RE = re.compile(r"```[A-Za-z]*")


def strip_code_fences(candidate: str) -> str:
    return _FENCE_RE.sub("", candidate or "").strip()


class QueryGuard:
    def __init__(
        self,
        denylist: tuple[str, ...] = DEFAULT_DENYLIST,
        read_keyword: str = "SELECT",
        rules: ScopingRules = DEFAULT_RULES,
    ):
        self._denylist = frozenset(word.upper() for word in denylist)
        self._read_keyword = read_keyword.upper()
        self._rules = rules

    def finalize(self, candidate: str, scope: CallerScope) -> str:
        """Validate *candidate* and return the scoped query to execute."""
        tokens = tokenize(strip_code_fences(candidate))

        self._check_read_only(tokens)
        self._check_denylist(tokens)
        tokens = self._drop_terminator(tokens)

        sql = render(tokens)
        sql = sql.replace(COMPANY_PLACEHOLDER, str(scope.company_id))
        sql = sql.replace(MANAGER_PLACEHOLDER, str(scope.manager_id or 0))

        finalized = scope_query(sql, scope.company_id, scope.manager_id, self._rules)
        logger.debug("Finalized query for company %s: %s", scope.company_id, finalized)
        return finalized

    def _check_read_only(self, tokens: list[Token]) -> None:
        lead = first_significant(tokens)
        if lead is None or not lead.is_keyword(self._read_keyword):
            found = lead.text if lead else "empty query"
            raise ForbiddenOperation(
                f"Only {self._read_keyword} queries are allowed, got: {found}"
            )

    def _check_denylist(self, tokens: list[Token]) -> None:
        for tok in tokens:
            if tok.is_keyword(*self._denylist):
                raise InjectionSuspected(f"Mutating keyword in query: {tok.upper}")

    @staticmethod
    def _drop_terminator(tokens: list[Token]) -> list[Token]:
        """Remove a trailing ';'; any other statement separator is rejected."""
        significant = [i for i, t in enumerate(tokens) if t.is_significant]
        while significant and tokens[significant[-1]].is_punct(";"):
            significant.pop()
        cut = significant[-1] + 1 if significant else 0

        if any(tokens[i].is_punct(";") for i in significant):
            raise InjectionSuspected("Multiple statements are not allowed")
        return tokens[:cut]
