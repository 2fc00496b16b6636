"""Lexical tokenizer for candidate SQL.

Enough of PostgreSQL's lexical grammar to tell keywords apart from string
literals, quoted identifiers and comments, and to track parenthesis depth.
It is not a parser; unknown characters become single PUNCT tokens and are
left for the database to reject.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class TokenKind(str, Enum):
    WHITESPACE = "whitespace"
    COMMENT = "comment"
    STRING = "string"
    QUOTED = "quoted"
    NUMBER = "number"
    WORD = "word"
    PUNCT = "punct"


_TOKEN_RE = re.compile(
    r"""
      (?P<whitespace>\s+)
    | (?P<comment>--[^\n]*|/\*.*?(?:\*/|\Z))
    | (?P<string>'(?:[^']|'')*(?:'|\Z)|\$(?P<tag>(?:[^\W\d]\w*)?)\$.*?(?:\$(?P=tag)\$|\Z))
    | (?P<quoted>"(?:[^"]|"")*(?:"|\Z))
    | (?P<number>\d+(?:\.\d*)?(?:[eE][+-]?\d+)?|\.\d+)
    | (?P<word>[^\W\d][\w$]*)
    | (?P<punct>::|<=|>=|<>|!=|\|\||.)
    """,
    re.VERBOSE | re.DOTALL,
)

_KINDS = ("whitespace", "comment", "string", "quoted", "number", "word", "punct")


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str

    @property
    def upper(self) -> str:
        return self.text.upper()

    @property
    def is_significant(self) -> bool:
        return self.kind not in (TokenKind.WHITESPACE, TokenKind.COMMENT)

    def is_keyword(self, *words: str) -> bool:
        return self.kind is TokenKind.WORD and self.text.upper() in words

    def is_punct(self, text: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.text == text

    @property
    def identifier(self) -> str | None:
        """Lowercased name for WORD and QUOTED tokens."""
        if self.kind is TokenKind.WORD:
            return self.text.lower()
        if self.kind is TokenKind.QUOTED:
            return self.text.strip('"').replace('""', '"').lower()
        return None


def tokenize(sql: str) -> list[Token]:
    """Split *sql* into tokens; concatenating their text reproduces *sql*."""
    tokens = []
    for match in _TOKEN_RE.finditer(sql):
        kind = next(k for k in _KINDS if match.group(k) is not None)
        tokens.append(Token(TokenKind(kind), match.group(0)))
    return tokens


def first_significant(tokens: list[Token]) -> Token | None:
    return next((t for t in tokens if t.is_significant), None)


def render(tokens: list[Token]) -> str:
    """Join tokens back into text, replacing comments with a single space."""
    return "".join(" " if t.kind is TokenKind.COMMENT else t.text for t in tokens)
