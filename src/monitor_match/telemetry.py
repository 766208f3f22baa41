from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# USD per 1M tokens.
MODEL_PRICING: dict[str, dict[str, float]] = {
    "google/gemini-2.5-flash": {"input": 0.075, "output": 0.3},
    "openai/gpt-4o-mini": {"input": 0.15, "output": 0.6},
}


@dataclass(frozen=True)
class CompletionMeta:
    model: str
    prompt_tokens: int
    completion_tokens: int
    latency_ms: int
    cost: float

    def to_json_dict(self) -> dict[str, object]:
        return {
            "model": self.model,
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "latencyMs": self.latency_ms,
            "cost": self.cost,
        }


@dataclass
class ModelUsage:
    calls: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cost: float = 0.0


@dataclass
class UsageSummary:
    calls: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: int = 0
    cost: float = 0.0
    by_model: dict[str, ModelUsage] = field(default_factory=dict)

    def add(self, meta: CompletionMeta) -> None:
        self.calls += 1
        self.prompt_tokens += meta.prompt_tokens
        self.completion_tokens += meta.completion_tokens
        self.latency_ms += meta.latency_ms
        self.cost += meta.cost

        usage = self.by_model.setdefault(meta.model, ModelUsage())
        usage.calls += 1
        usage.prompt_tokens += meta.prompt_tokens
        usage.completion_tokens += meta.completion_tokens
        usage.cost += meta.cost


def calculate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    pricing = MODEL_PRICING.get(model)
    if pricing is None:
        return 0.0
    input_cost = (prompt_tokens / 1_000_000) * pricing["input"]
    output_cost = (completion_tokens / 1_000_000) * pricing["output"]
    return input_cost + output_cost


def summarize_usage(metas: Iterable[CompletionMeta]) -> UsageSummary:
    summary = UsageSummary()
    for meta in metas:
        summary.add(meta)
    return summary


def log_completion(meta: CompletionMeta, *, purpose: str) -> None:
    logger.info(
        "llm call purpose=%s model=%s prompt_tokens=%d completion_tokens=%d latency_ms=%d cost=%.6f",
        purpose,
        meta.model,
        meta.prompt_tokens,
        meta.completion_tokens,
        meta.latency_ms,
        meta.cost,
    )
