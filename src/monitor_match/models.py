from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from monitor_match.telemetry import CompletionMeta

MatchType = Literal["company", "company_keyword", "keyword", "boolean_search"]
DiscoveryMatchType = Literal["direct", "semantic", "contextual", "none"]


@dataclass(frozen=True)
class ContentItem:
    title: str
    body: str | None = None
    author: str | None = None
    platform: str | None = None
    subreddit: str | None = None

    def searchable_text(self) -> str:
        return f"{self.title} {self.body or ''}".lower()


@dataclass(frozen=True)
class MatchConfig:
    company_name: str | None = None
    keywords: tuple[str, ...] = ()
    search_query: str | None = None


@dataclass(frozen=True)
class MatchResult:
    matches: bool
    matched_terms: list[str]
    match_type: MatchType
    explanation: str


class _ProviderModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class AIDiscoveryResult(_ProviderModel):
    is_match: bool
    relevance_score: float = Field(ge=0.0, le=1.0)
    match_type: DiscoveryMatchType
    reasoning: str = ""
    signals: tuple[str, ...] = ()
    suggested_keywords: tuple[str, ...] = ()


class QuickMatchResult(_ProviderModel):
    is_match: bool
    confidence: float = Field(ge=0.0, le=1.0)


@dataclass(frozen=True)
class DiscoveryMatch:
    result: AIDiscoveryResult
    meta: CompletionMeta


@dataclass(frozen=True)
class QuickMatch:
    result: QuickMatchResult
    meta: CompletionMeta

    @property
    def is_match(self) -> bool:
        return self.result.is_match

    @property
    def confidence(self) -> float:
        return self.result.confidence


@dataclass(frozen=True)
class TieredMatch:
    content: ContentItem
    quick: QuickMatch
    full: DiscoveryMatch | None = None

    @property
    def is_match(self) -> bool:
        return self.full is not None and self.full.result.is_match
