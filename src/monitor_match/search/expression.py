from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

FieldName = Literal["title", "body", "author", "subreddit", "platform"]
FIELD_NAMES: tuple[str, ...] = ("title", "body", "author", "subreddit", "platform")


@dataclass(frozen=True)
class Term:
    text: str


@dataclass(frozen=True)
class Phrase:
    text: str


@dataclass(frozen=True)
class FieldFilter:
    field: FieldName
    value: str


@dataclass(frozen=True)
class Not:
    child: Expression


@dataclass(frozen=True)
class And:
    children: tuple[Expression, ...]


@dataclass(frozen=True)
class Or:
    children: tuple[Expression, ...]


Expression = Union[Term, Phrase, FieldFilter, Not, And, Or]

MATCH_NOTHING = Or(())
MATCH_EVERYTHING = And(())


def describe(expression: Expression) -> str:
    """Human-readable rendering used in match explanations."""
    if isinstance(expression, Term):
        return expression.text
    if isinstance(expression, Phrase):
        return f'"{expression.text}"'
    if isinstance(expression, FieldFilter):
        return f"{expression.field}:{expression.value}"
    if isinstance(expression, Not):
        return f"NOT {describe(expression.child)}"
    if isinstance(expression, And):
        if not expression.children:
            return "anything"
        return " AND ".join(_describe_child(child) for child in expression.children)
    if isinstance(expression, Or):
        if not expression.children:
            return "nothing"
        return " OR ".join(_describe_child(child) for child in expression.children)
    raise TypeError(f"unknown expression node: {expression!r}")


def _describe_child(child: Expression) -> str:
    if isinstance(child, (And, Or)) and len(child.children) > 1:
        return f"({describe(child)})"
    return describe(child)
