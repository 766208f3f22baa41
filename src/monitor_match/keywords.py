from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable

from monitor_match.safety import compile_loose_pattern


def normalize_text(value: str) -> str:
    normalized = unicodedata.normalize("NFKC", value or "").casefold()
    normalized = re.sub(r"[\W_]+", " ", normalized)
    normalized = re.sub(r"\s+", " ", normalized).strip()
    return normalized


def clean_keywords(keywords: Iterable[str] | None) -> list[str]:
    if not keywords:
        return []
    return [keyword for keyword in keywords if keyword and keyword.strip()]


def contains_keyword(text: str, keyword: str) -> bool:
    return keyword.lower() in text


def first_matching_keyword(text: str, keywords: Iterable[str]) -> str | None:
    for keyword in clean_keywords(keywords):
        if contains_keyword(text, keyword):
            return keyword
    return None


def matching_keywords(text: str, keywords: Iterable[str]) -> list[str]:
    return [keyword for keyword in clean_keywords(keywords) if contains_keyword(text, keyword)]


def mentions_company(text: str, company_name: str) -> bool:
    return company_name.lower() in text


def loosely_mentions_company(text: str, company_name: str) -> bool:
    """Company words found whole and in order, with any punctuation or none between them.

    "Super Widget" is loosely mentioned by "super-widget" and "superwidget",
    never by a text that only contains its letters across other words.
    """
    company = normalize_text(company_name)
    if not company:
        return False
    try:
        pattern = compile_loose_pattern(company)
    except ValueError:
        return False
    return pattern.search(normalize_text(text)) is not None
