"""Mechanical company/manager scoping of read queries.

Every ``SELECT`` keyword opens a block that runs to the end of its enclosing
parenthesis or to the next set operator on the same level. Filters are
injected per block, so a sub-query reading ``tickets`` gets its own company
filter. Rewrites are insertions into the token stream; the query text the
model wrote is otherwise kept as is, minus comments.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from app.domain.exceptions import ForbiddenOperation
from app.domain.sql.lexer import Token, TokenKind, tokenize

SET_OPERATORS = ("UNION", "INTERSECT", "EXCEPT")
CLAUSE_KEYWORDS = ("WHERE", "GROUP", "HAVING", "ORDER", "LIMIT", "OFFSET", "FETCH", "WINDOW", "FOR")
WHERE_TERMINATORS = CLAUSE_KEYWORDS[1:]

# Words that can follow a table name without being its alias.
NON_ALIAS = frozenset(
    CLAUSE_KEYWORDS
    + SET_OPERATORS
    + (
        "AS", "SELECT", "FROM", "ON", "USING", "JOIN", "INNER", "LEFT", "RIGHT",
        "FULL", "OUTER", "CROSS", "NATURAL", "LATERAL", "TABLESAMPLE", "ONLY",
    )
)


@dataclass(frozen=True)
class ScopingRules:
    """Schema knowledge the rewriter needs."""

    company_tables: tuple[str, ...] = ("tickets", "managers", "business_units")
    default_company_alias: str = "tickets"
    # ticket-like table -> column holding the ticket id
    ticket_keys: tuple[tuple[str, str], ...] = (("tickets", "id"), ("ticket_analysis", "ticket_id"))
    assignment_table: str = "assignments"
    manager_table: str = "managers"
    company_column: str = "company_id"
    manager_column: str = "manager_id"


DEFAULT_RULES = ScopingRules()


@dataclass(frozen=True)
class TableRef:
    table: str
    ref: str  # alias as written, or the table name when unaliased
    end: int  # token index of the last token of the reference
    key: str = ""  # ref as an identifier, for matching column qualifiers


@dataclass
class _Block:
    depth: int
    indices: list[int] = field(default_factory=list)


def scope_query(
    sql: str,
    company_id: int,
    manager_id: int | None = None,
    rules: ScopingRules = DEFAULT_RULES,
) -> str:
    """Return *sql* with company (and optionally manager) filters enforced.

    Idempotent: scoping an already scoped query returns it unchanged.

    Raises:
        ForbiddenOperation: a block filters on a different company.
    """
    tokens = tokenize(sql)
    depths, blocks = _split_blocks(tokens)
    join_alias = _fresh_alias("a", tokens)
    edits: dict[int, list[str]] = defaultdict(list)

    for block in blocks:
        view = _BlockView(tokens, depths, block)
        refs = view.table_refs()
        conditions = []

        company_condition = _company_condition(view, refs, company_id, rules)
        if company_condition:
            conditions.append(company_condition)

        if manager_id is not None:
            join, manager_condition = _manager_scope(view, refs, manager_id, rules, join_alias)
            if join:
                edits[join[0]].append(join[1])
            if manager_condition:
                conditions.append(manager_condition)

        for index, text in view.conjoin(conditions):
            edits[index].append(text)

    parts = []
    for i, tok in enumerate(tokens):
        parts.extend(edits.get(i, ()))
        parts.append(" " if tok.kind is TokenKind.COMMENT else tok.text)
    parts.extend(edits.get(len(tokens), ()))
    return "".join(parts).strip()


def _company_condition(
    view: _BlockView,
    refs: list[TableRef],
    company_id: int,
    rules: ScopingRules,
) -> str | None:
    # Anywhere in the block, select list and ON conditions included.
    values = [value for _, value in view.comparisons(rules.company_column)]
    foreign = [v for v in values if not _same_id(v, company_id)]
    if foreign:
        raise ForbiddenOperation(
            f"Query filters on {rules.company_column} = {foreign[0]}, outside the caller's company"
        )
    if not view.has_from():
        return None

    target = next(
        (r for table in rules.company_tables for r in refs if r.table == table), None
    )
    if target is not None:
        ref, key = target.ref, target.key
    elif view.depth == 0 and refs:
        ref = key = rules.default_company_alias
    else:
        return None
    if view.has_filter(rules.company_column, company_id, {key, None}):
        return None
    return f"{ref}.{rules.company_column} = {company_id}"


def _manager_scope(
    view: _BlockView,
    refs: list[TableRef],
    manager_id: int,
    rules: ScopingRules,
    join_alias: str,
) -> tuple[tuple[int, str] | None, str | None]:
    """Return (join edit, condition) restricting the block to one manager."""
    ticket_keys = dict(rules.ticket_keys)
    ticket_ref = next((r for r in refs if r.table in ticket_keys), None)
    assignment_ref = next((r for r in refs if r.table == rules.assignment_table), None)
    manager_ref = next((r for r in refs if r.table == rules.manager_table), None)

    if assignment_ref is not None:
        if view.has_filter(rules.manager_column, manager_id, {assignment_ref.key, None}):
            return None, None
        return None, f"{assignment_ref.ref}.{rules.manager_column} = {manager_id}"

    if ticket_ref is not None:
        key = ticket_keys[ticket_ref.table]
        join = (
            f" JOIN {rules.assignment_table} {join_alias}"
            f" ON {ticket_ref.ref}.{key} = {join_alias}.ticket_id"
        )
        return (ticket_ref.end + 1, join), f"{join_alias}.{rules.manager_column} = {manager_id}"

    if manager_ref is not None:
        qualifiers = {manager_ref.key}
        if len(refs) == 1:
            qualifiers.add(None)
        if view.has_filter("id", manager_id, qualifiers):
            return None, None
        return None, f"{manager_ref.ref}.id = {manager_id}"

    return None, None


class _BlockView:
    """Token positions belonging to one SELECT block.

    ``own`` holds every significant token of the block, including those
    inside function-call or condition parentheses; ``top`` only those at the
    block's own parenthesis depth, which is where clauses live.
    """

    def __init__(self, tokens: list[Token], depths: list[int], block: _Block):
        self.tokens = tokens
        self.depth = block.depth
        self.own = [i for i in block.indices if tokens[i].is_significant]
        self.top = [i for i in self.own if depths[i] == block.depth]

    def tok(self, position: int) -> Token:
        return self.tokens[self.top[position]]

    def find(self, keyword: str, start: int = 0) -> int | None:
        for p in range(start, len(self.top)):
            if self.tok(p).is_keyword(keyword):
                return p
        return None

    def clause_end(self, start: int, keywords: tuple[str, ...]) -> int:
        for p in range(start, len(self.top)):
            if self.tok(p).is_keyword(*keywords):
                return p
        return len(self.top)

    def has_from(self) -> bool:
        return self.find("FROM") is not None

    def table_refs(self) -> list[TableRef]:
        start = self.find("FROM")
        if start is None:
            return []
        end = self.clause_end(start + 1, CLAUSE_KEYWORDS)

        refs = []
        expect_table = True
        p = start + 1
        while p < end:
            tok = self.tok(p)
            if expect_table:
                expect_table = False
                if tok.is_keyword("LATERAL", "ONLY"):
                    expect_table = True
                    p += 1
                    continue
                if tok.identifier is not None and not tok.is_keyword(*NON_ALIAS):
                    ref, p = self._read_table(p, end)
                    refs.append(ref)
                    continue
            elif tok.is_keyword("JOIN") or tok.is_punct(","):
                expect_table = True
            p += 1
        return refs

    def _read_table(self, p: int, end: int) -> tuple[TableRef, int]:
        last = p
        # schema-qualified names: keep the last part
        while (
            last + 2 < end
            and self.tok(last + 1).is_punct(".")
            and self.tok(last + 2).identifier is not None
        ):
            last += 2
        name_tok = self.tok(last)
        ref_text = name_tok.text

        nxt = last + 1
        if nxt + 1 < end and self.tok(nxt).is_keyword("AS") and self.tok(nxt + 1).identifier:
            last = nxt + 1
            ref_text = self.tok(last).text
        elif (
            nxt < end
            and self.tok(nxt).identifier is not None
            and not self.tok(nxt).is_keyword(*NON_ALIAS)
        ):
            last = nxt
            ref_text = self.tok(last).text

        ref = TableRef(
            table=name_tok.identifier,
            ref=ref_text,
            end=self.top[last],
            key=self.tok(last).identifier,
        )
        return ref, last + 1

    def comparisons(self, column: str) -> list[tuple[str | None, str]]:
        """``[qualifier.]column = literal`` equalities (either side) in the block."""
        own = [self.tokens[i] for i in self.own]
        found = []
        for p, tok in enumerate(own):
            if tok.identifier != column:
                continue
            qualified = p >= 2 and own[p - 1].is_punct(".")
            qualifier = own[p - 2].identifier if qualified else None

            if p + 2 < len(own) and own[p + 1].is_punct("=") and _is_literal(own[p + 2]):
                found.append((qualifier, _literal_value(own[p + 2])))

            first = p - 2 if qualified else p
            if first >= 2 and own[first - 1].is_punct("=") and _is_literal(own[first - 2]):
                found.append((qualifier, _literal_value(own[first - 2])))
        return found

    def where_conjuncts(self) -> list[list[Token]]:
        """Top-level AND conjuncts of the WHERE clause.

        Empty when there is no WHERE or the clause has a top-level OR, since
        then no single conjunct restricts every row.
        """
        where = self.find("WHERE")
        if where is None:
            return []
        conjuncts: list[list[Token]] = [[]]
        in_between = False
        for p in range(where + 1, self.clause_end(where + 1, WHERE_TERMINATORS)):
            tok = self.tok(p)
            if tok.is_keyword("OR"):
                return []
            if tok.is_keyword("BETWEEN"):
                in_between = True
            elif tok.is_keyword("AND"):
                if not in_between:
                    conjuncts.append([])
                    continue
                in_between = False
            conjuncts[-1].append(tok)
        return conjuncts

    def has_filter(self, column: str, value: int, qualifiers: set[str | None]) -> bool:
        """True when a WHERE conjunct is exactly ``[qualifier.]column = value``."""
        for conjunct in self.where_conjuncts():
            found = _equality(conjunct, column)
            if found is not None and found[0] in qualifiers and _same_id(found[1], value):
                return True
        return False

    def conjoin(self, conditions: list[str]) -> list[tuple[int, str]]:
        """Edits that AND *conditions* into the block's WHERE clause."""
        if not conditions:
            return []
        clause = " AND ".join(conditions)

        where = self.find("WHERE")
        if where is None:
            from_pos = self.find("FROM") or 0
            anchor = self.clause_end(from_pos + 1, CLAUSE_KEYWORDS)
            if anchor < len(self.top):
                return [(self.top[anchor], f"WHERE {clause} ")]
            return [(self.top[-1] + 1, f" WHERE {clause}")]

        cond_end = self.clause_end(where + 1, WHERE_TERMINATORS)
        if where + 1 >= cond_end:
            return [(self.top[where] + 1, f" {clause}")]

        first = self.top[where + 1]
        if any(self.tok(p).is_keyword("OR") for p in range(where + 1, cond_end)):
            return [
                (first, f"{clause} AND ("),
                (self.top[cond_end - 1] + 1, ")"),
            ]
        return [(first, f"{clause} AND ")]


def _split_blocks(tokens: list[Token]) -> tuple[list[int], list[_Block]]:
    """Assign every token a parenthesis depth and an owning SELECT block."""
    depths: list[int] = []
    blocks: list[_Block] = []
    owners: list[int | None] = [None]  # current block per open parenthesis
    depth = 0

    def own(index: int) -> None:
        if owners[-1] is not None:
            blocks[owners[-1]].indices.append(index)

    for i, tok in enumerate(tokens):
        if tok.is_punct("("):
            depths.append(depth)
            own(i)
            depth += 1
            owners.append(owners[-1])
            continue
        if tok.is_punct(")") and len(owners) > 1:
            owners.pop()
            depth -= 1
            depths.append(depth)
            own(i)
            continue

        depths.append(depth)
        if tok.is_keyword("SELECT"):
            blocks.append(_Block(depth=depth))
            owners[-1] = len(blocks) - 1
        elif tok.is_keyword(*SET_OPERATORS):
            owners[-1] = None
        own(i)

    return depths, blocks


def _fresh_alias(base: str, tokens: list[Token]) -> str:
    used = {t.identifier for t in tokens if t.identifier}
    alias, n = base, 1
    while alias in used:
        n += 1
        alias = f"{base}{n}"
    return alias


def _equality(conjunct: list[Token], column: str) -> tuple[str | None, str] | None:
    """(qualifier, literal) when *conjunct* is ``[q.]column = literal`` either way round."""
    if len(conjunct) < 3:
        return None
    if conjunct[-2].is_punct("=") and _is_literal(conjunct[-1]):
        name, literal = conjunct[:-2], conjunct[-1]
    elif conjunct[1].is_punct("=") and _is_literal(conjunct[0]):
        name, literal = conjunct[2:], conjunct[0]
    else:
        return None

    if len(name) == 1 and name[0].identifier == column:
        return None, _literal_value(literal)
    if (
        len(name) == 3
        and name[0].identifier is not None
        and name[1].is_punct(".")
        and name[2].identifier == column
    ):
        return name[0].identifier, _literal_value(literal)
    return None


def _is_literal(tok: Token) -> bool:
    return tok.kind in (TokenKind.NUMBER, TokenKind.STRING)


def _literal_value(tok: Token) -> str:
    if tok.kind is TokenKind.STRING:
        return tok.text.strip("'")
    return tok.text


def _same_id(value: str, expected: int) -> bool:
    try:
        return int(value) == expected
    except ValueError:
        return False
