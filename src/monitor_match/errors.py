from __future__ import annotations

from typing import Any, Sequence


class MonitorMatchError(Exception):
    """Base class for errors raised by this package."""


class SearchQueryError(MonitorMatchError):
    """Malformed boolean search query.

    Only raised inside the parser; ``parse_search_query`` turns it into an
    always-false expression so a bad query never aborts a poll batch.
    """


class CompletionError(MonitorMatchError):
    """The language model call failed (transport, provider or payload)."""

    def __init__(self, message: str, *, model: str | None = None) -> None:
        super().__init__(message)
        self.model = model


class MalformedResponseError(CompletionError):
    """The completion did not contain parseable JSON."""

    def __init__(self, content: str, *, model: str | None = None) -> None:
        preview = content[:200]
        super().__init__(f"Failed to parse JSON response: {preview}", model=model)
        self.content = content


class SchemaMismatchError(CompletionError):
    """The completion JSON does not match the expected result schema."""

    def __init__(self, schema: str, detail: str, payload: Any, *, model: str | None = None) -> None:
        super().__init__(f"Response does not match {schema}: {detail}", model=model)
        self.schema = schema
        self.payload = payload


class BatchCancelled(MonitorMatchError):
    """A discovery batch was cancelled between waves.

    ``completed`` holds the results of every wave that finished, in input order.
    """

    def __init__(self, completed: Sequence[Any], total: int) -> None:
        super().__init__(f"discovery batch cancelled after {len(completed)}/{total} items")
        self.completed = list(completed)
        self.total = total
