from __future__ import annotations

import re

from bs4 import BeautifulSoup

_TAG_HINT = re.compile(r"<[a-zA-Z/!][^>]*>")


def _clean_spaces(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def strip_html(value: str | None) -> str:
    if not value:
        return ""
    if not _TAG_HINT.search(value):
        return _clean_spaces(value)
    soup = BeautifulSoup(value, "html.parser")
    for node in soup(["script", "style"]):
        node.decompose()
    return _clean_spaces(soup.get_text(" ", strip=True))


def truncate(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    return value[:limit].rstrip() + "..."


def prompt_body(value: str | None, limit: int) -> str:
    cleaned = strip_html(value)
    if not cleaned:
        return "(no body)"
    return truncate(cleaned, limit)
