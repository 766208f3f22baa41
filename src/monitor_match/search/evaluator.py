from __future__ import annotations

from dataclasses import dataclass

from monitor_match.models import ContentItem
from monitor_match.safety import compile_literal_pattern
from monitor_match.search.expression import And, Expression, FieldFilter, Not, Or, Phrase, Term


@dataclass(frozen=True)
class Evaluation:
    matches: bool
    matched_terms: tuple[str, ...] = ()


_NO_MATCH = Evaluation(False)


def _union(groups: list[tuple[str, ...]]) -> tuple[str, ...]:
    seen: set[str] = set()
    merged: list[str] = []
    for group in groups:
        for term in group:
            if term not in seen:
                seen.add(term)
                merged.append(term)
    return tuple(merged)


def _field_matches(node: FieldFilter, content: ContentItem) -> bool:
    wanted = node.value.lower()
    if node.field == "title":
        return wanted in content.title.lower()
    if node.field == "body":
        return wanted in (content.body or "").lower()
    actual = getattr(content, node.field)
    # Items that do not carry the field are not filtered out by it.
    if not actual:
        return True
    return actual.lower() == wanted


def _evaluate(node: Expression, content: ContentItem, text: str) -> Evaluation:
    if isinstance(node, Term):
        if node.text.lower() in text:
            return Evaluation(True, (node.text,))
        return _NO_MATCH
    if isinstance(node, Phrase):
        if compile_literal_pattern(node.text).search(text):
            return Evaluation(True, (node.text,))
        return _NO_MATCH
    if isinstance(node, FieldFilter):
        return Evaluation(_field_matches(node, content))
    if isinstance(node, Not):
        return Evaluation(not _evaluate(node.child, content, text).matches)
    if isinstance(node, And):
        results = []
        for child in node.children:
            result = _evaluate(child, content, text)
            if not result.matches:
                return _NO_MATCH
            results.append(result.matched_terms)
        return Evaluation(True, _union(results))
    if isinstance(node, Or):
        hits = [r for r in (_evaluate(child, content, text) for child in node.children) if r.matches]
        if not hits:
            return _NO_MATCH
        return Evaluation(True, _union([hit.matched_terms for hit in hits]))
    raise TypeError(f"unknown expression node: {node!r}")


def evaluate(expression: Expression, content: ContentItem) -> Evaluation:
    """Evaluate a compiled query against one item over its lower-cased title and body."""
    return _evaluate(expression, content, content.searchable_text())
