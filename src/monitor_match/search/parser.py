"""Boolean search query parser.

Supported syntax::

    "exact phrase"          match the words in order
    title:word              search only in titles (also body:)
    author:name             filter by author (also subreddit:, platform:)
    author:a author:b       repeated filters on one field keep either value
    NOT term, -term         exclude results containing term
    a OR b                  either term; binds only its neighbours
    a b, a AND b            both terms (AND is the default)
    (a OR b) c              parentheses group wider scopes

Malformed queries never raise: they compile to an expression that matches
nothing, so one monitor's typo cannot break a shared poll batch.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache

from monitor_match.errors import SearchQueryError
from monitor_match.safety import (
    MAX_NESTING_DEPTH,
    MAX_OPERANDS,
    MAX_QUERY_LENGTH,
    MAX_TERM_LENGTH,
)
from monitor_match.search.expression import (
    FIELD_NAMES,
    MATCH_EVERYTHING,
    MATCH_NOTHING,
    And,
    Expression,
    FieldFilter,
    Not,
    Or,
    Phrase,
    Term,
    describe,
)

logger = logging.getLogger(__name__)

_FIELD_RE = re.compile(rf"^({'|'.join(FIELD_NAMES)}):(.*)$", re.IGNORECASE)
_OPERATORS = {"AND", "OR", "NOT"}


@dataclass(frozen=True)
class Token:
    kind: str
    value: str = ""
    field: str = ""


@dataclass(frozen=True)
class ParsedQuery:
    original: str
    expression: Expression
    error: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def explanation(self) -> str:
        if self.error is not None:
            return f"Invalid search query: {self.error}"
        if not self.original.strip():
            return "Empty query matches all"
        return describe(self.expression)


def _check_term(text: str) -> str:
    if len(text) > MAX_TERM_LENGTH:
        raise SearchQueryError(f"term longer than {MAX_TERM_LENGTH} characters")
    return text


def _read_quoted(query: str, start: int) -> tuple[str, int]:
    """Return the text between the quote at ``start`` and its closing quote."""
    end = query.find('"', start + 1)
    if end == -1:
        raise SearchQueryError("unmatched quote")
    return query[start + 1 : end], end + 1


def _word_token(word: str) -> Token:
    upper = word.upper()
    if upper in _OPERATORS:
        return Token(upper)
    field_match = _FIELD_RE.match(word)
    if field_match:
        value = field_match.group(2)
        if not value:
            raise SearchQueryError(f"empty value for {field_match.group(1).lower()}:")
        return Token("FIELD", _check_term(value), field_match.group(1).lower())
    return Token("WORD", _check_term(word))


def _merge_field_filters(children: list[Expression]) -> list[Expression]:
    """OR together sibling filters on the same field: ``author:a author:b`` keeps either author."""
    by_field: dict[str, list[FieldFilter]] = {}
    for child in children:
        if isinstance(child, FieldFilter):
            by_field.setdefault(child.field, []).append(child)

    merged: list[Expression] = []
    for child in children:
        if not isinstance(child, FieldFilter):
            merged.append(child)
            continue
        filters = by_field[child.field]
        if len(filters) == 1:
            merged.append(child)
        elif filters[0] is child:
            merged.append(Or(tuple(filters)))
    return merged


def tokenize(query: str) -> list[Token]:
    tokens: list[Token] = []
    i = 0
    length = len(query)
    while i < length:
        char = query[i]
        if char.isspace():
            i += 1
            continue
        if char == "(":
            tokens.append(Token("LPAREN"))
            i += 1
            continue
        if char == ")":
            tokens.append(Token("RPAREN"))
            i += 1
            continue
        if char == "-":
            tokens.append(Token("NOT"))
            i += 1
            continue
        if char == '"':
            text, i = _read_quoted(query, i)
            if not text.strip():
                raise SearchQueryError("empty phrase")
            tokens.append(Token("PHRASE", _check_term(text.strip())))
            continue

        start = i
        while i < length and not query[i].isspace() and query[i] not in '()"':
            i += 1
        word = query[start:i]
        if word.endswith(":") and i < length and query[i] == '"' and _FIELD_RE.match(word):
            value, i = _read_quoted(query, i)
            word = word + value.strip()
        tokens.append(_word_token(word))
    return tokens


class _Parser:
    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0
        self.operands = 0

    def peek(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def parse(self) -> Expression:
        expression = self.parse_and(depth=0)
        if self.peek() is not None:
            raise SearchQueryError("unmatched closing parenthesis")
        return expression

    def parse_and(self, depth: int) -> Expression:
        children: list[Expression] = []
        while True:
            token = self.peek()
            if token is None or token.kind == "RPAREN":
                break
            if token.kind == "AND":
                self.advance()
                if not children or self._at_operand_end():
                    raise SearchQueryError("AND needs a term on both sides")
                continue
            if token.kind == "OR":
                raise SearchQueryError("OR needs a term on both sides")
            children.append(self.parse_or(depth))
        if not children:
            raise SearchQueryError("empty expression")
        children = _merge_field_filters(children)
        return children[0] if len(children) == 1 else And(tuple(children))

    def parse_or(self, depth: int) -> Expression:
        children = [self.parse_unary(depth)]
        while True:
            token = self.peek()
            if token is None or token.kind != "OR":
                break
            self.advance()
            if self._at_operand_end():
                raise SearchQueryError("OR needs a term on both sides")
            children.append(self.parse_unary(depth))
        return children[0] if len(children) == 1 else Or(tuple(children))

    def parse_unary(self, depth: int) -> Expression:
        token = self.peek()
        if token is not None and token.kind == "NOT":
            self.advance()
            if self._at_operand_end():
                raise SearchQueryError("NOT needs a term to exclude")
            return Not(self.parse_unary(self._deeper(depth)))
        return self.parse_primary(depth)

    def parse_primary(self, depth: int) -> Expression:
        token = self.peek()
        if token is None:
            raise SearchQueryError("unexpected end of query")
        if token.kind == "LPAREN":
            self.advance()
            inner = self.parse_and(self._deeper(depth))
            closing = self.peek()
            if closing is None or closing.kind != "RPAREN":
                raise SearchQueryError("unmatched opening parenthesis")
            self.advance()
            return inner
        if token.kind in ("AND", "OR", "RPAREN"):
            raise SearchQueryError(f"unexpected {token.kind}")

        self.advance()
        self.operands += 1
        if self.operands > MAX_OPERANDS:
            raise SearchQueryError(f"more than {MAX_OPERANDS} terms")
        if token.kind == "PHRASE":
            return Phrase(token.value)
        if token.kind == "FIELD":
            return FieldFilter(token.field, token.value)
        return Term(token.value)

    def _at_operand_end(self) -> bool:
        token = self.peek()
        return token is None or token.kind in ("RPAREN", "AND", "OR")

    @staticmethod
    def _deeper(depth: int) -> int:
        if depth + 1 > MAX_NESTING_DEPTH:
            raise SearchQueryError(f"nesting deeper than {MAX_NESTING_DEPTH} levels")
        return depth + 1


def compile_query(query: str) -> Expression:
    """Compile ``query`` or raise ``SearchQueryError``."""
    if len(query) > MAX_QUERY_LENGTH:
        raise SearchQueryError(f"query longer than {MAX_QUERY_LENGTH} characters")
    if not query.strip():
        return MATCH_EVERYTHING
    return _Parser(tokenize(query)).parse()


@lru_cache(maxsize=512)
def parse_search_query(query: str) -> ParsedQuery:
    try:
        expression = compile_query(query)
    except SearchQueryError as exc:
        logger.warning("search query rejected, matching nothing: %s (query=%r)", exc, query[:80])
        return ParsedQuery(original=query, expression=MATCH_NOTHING, error=str(exc))
    return ParsedQuery(original=query, expression=expression)


def validate_search_query(query: str) -> tuple[bool, str | None]:
    parsed = parse_search_query(query)
    return parsed.is_valid, parsed.error


def keywords_to_query(keywords: Iterable[str]) -> str:
    """Express a legacy keyword list as an equivalent OR query."""
    phrases = []
    for keyword in keywords:
        cleaned = keyword.replace('"', " ").strip()
        if cleaned:
            phrases.append(f'"{cleaned}"')
    return " OR ".join(phrases)


def search_syntax_help() -> str:
    return "\n".join(
        [
            "Search Operators:",
            '- "exact phrase" - Match exact phrase',
            "- title:keyword - Search only in titles",
            "- body:keyword - Search only in body/content",
            "- author:username - Filter by author",
            "- subreddit:name - Filter by subreddit",
            "- platform:reddit - Filter by platform (reddit, hackernews, producthunt, etc.)",
            "- Repeating a filter (author:a author:b) matches any of its values",
            "- NOT term or -term - Exclude results containing term",
            "- term1 OR term2 - Match either term",
            "- term1 term2 - Match both terms (AND is the default)",
            "- (term1 OR term2) term3 - Group with parentheses",
            "",
            "Examples:",
            '- "pricing feedback" - Find exact phrase',
            "- title:bug NOT fixed - Titles with 'bug' but not 'fixed'",
            "- alternative OR competitor - Posts mentioning either word",
            '- platform:reddit "need help" - Reddit posts with exact phrase',
        ]
    )
