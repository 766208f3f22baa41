"""LLM-backed matching for monitors described as a free-text discovery intent.

Provider failures are never converted into a negative verdict here: a
spurious "no match" would silently hide a legitimate alert, so every error
reaches the caller, who owns retries.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from monitor_match.config import Settings
from monitor_match.errors import BatchCancelled
from monitor_match.llm import CompletionClient, Message, build_completion_client, json_completion
from monitor_match.models import (
    AIDiscoveryResult,
    ContentItem,
    DiscoveryMatch,
    QuickMatch,
    QuickMatchResult,
    TieredMatch,
)
from monitor_match.prompts import DEFAULT_PROMPTS, PromptTemplates, prompts_from_settings
from monitor_match.telemetry import log_completion
from monitor_match.text import prompt_body

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")


async def run_in_waves(
    items: Sequence[ItemT],
    worker: Callable[[ItemT], Awaitable[ResultT]],
    *,
    wave_size: int,
    cancel_event: asyncio.Event | None = None,
) -> list[ResultT]:
    """Map ``worker`` over ``items`` in fixed-size waves, preserving input order.

    Each wave is fully awaited before the next one starts. ``cancel_event`` is
    checked before every wave; once set, ``BatchCancelled`` is raised with the
    results gathered so far. When a worker fails, its siblings in the same wave
    still run to completion before the first failure (in input order) is
    re-raised, so no request is left running behind the caller.
    """
    results: list[ResultT] = []
    total = len(items)
    for start in range(0, total, wave_size):
        if cancel_event is not None and cancel_event.is_set():
            logger.info("discovery batch cancelled after %d/%d items", len(results), total)
            raise BatchCancelled(results, total)
        wave = items[start : start + wave_size]
        logger.debug("discovery wave items=%d-%d of %d", start + 1, start + len(wave), total)
        wave_results = await asyncio.gather(
            *(worker(item) for item in wave),
            return_exceptions=True,
        )
        for outcome in wave_results:
            if isinstance(outcome, BaseException):
                logger.warning(
                    "discovery wave failed after %d/%d items: %s",
                    len(results),
                    total,
                    outcome,
                )
                raise outcome
        results.extend(wave_results)
    return results


class DiscoveryMatcher:
    def __init__(
        self,
        client: CompletionClient,
        *,
        settings: Settings | None = None,
        prompts: PromptTemplates = DEFAULT_PROMPTS,
    ) -> None:
        self.client = client
        self.settings = settings or Settings()
        self.prompts = prompts

    async def aclose(self) -> None:
        aclose = getattr(self.client, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> DiscoveryMatcher:
        return self

    async def __aexit__(self, exc_type, exc, exc_tb) -> None:
        await self.aclose()

    def _full_messages(
        self,
        content: ContentItem,
        discovery_prompt: str,
        company_name: str | None,
    ) -> list[Message]:
        lines = [f"Discovery Intent: {discovery_prompt}"]
        if company_name:
            lines.append(f"Company/Brand: {company_name}")
        lines.append(f"Platform: {content.platform or 'unknown'}")
        if content.author:
            lines.append(f"Author: {content.author}")
        if content.subreddit:
            lines.append(f"Community: {content.subreddit}")
        lines.append("")
        lines.append(f"Title: {content.title}")
        lines.append(f"Body: {prompt_body(content.body, self.settings.full_body_chars)}")
        return [
            {"role": "system", "content": self.prompts.ai_discovery},
            {"role": "user", "content": "\n".join(lines)},
        ]

    def _quick_messages(self, content: ContentItem, discovery_prompt: str) -> list[Message]:
        body = prompt_body(content.body, self.settings.quick_body_chars)
        return [
            {"role": "system", "content": self.prompts.quick_filter},
            {
                "role": "user",
                "content": f"Intent: {discovery_prompt}\nTitle: {content.title}\nBody: {body}",
            },
        ]

    async def match_full(
        self,
        content: ContentItem,
        discovery_prompt: str,
        company_name: str | None = None,
    ) -> DiscoveryMatch:
        result, meta = await json_completion(
            self.client,
            self._full_messages(content, discovery_prompt, company_name),
            self.settings.primary_model,
            AIDiscoveryResult,
        )
        log_completion(meta, purpose="discovery_full")
        return DiscoveryMatch(result=result, meta=meta)

    async def match_quick(self, content: ContentItem, discovery_prompt: str) -> QuickMatch:
        result, meta = await json_completion(
            self.client,
            self._quick_messages(content, discovery_prompt),
            self.settings.quick_model,
            QuickMatchResult,
            max_tokens=64,
        )
        log_completion(meta, purpose="discovery_quick")
        return QuickMatch(result=result, meta=meta)

    async def match_batch(
        self,
        contents: Sequence[ContentItem],
        discovery_prompt: str,
        company_name: str | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> list[DiscoveryMatch]:
        async def worker(content: ContentItem) -> DiscoveryMatch:
            return await self.match_full(content, discovery_prompt, company_name)

        return await run_in_waves(
            contents,
            worker,
            wave_size=self.settings.discovery_batch_size,
            cancel_event=cancel_event,
        )

    async def match_tiered(
        self,
        contents: Sequence[ContentItem],
        discovery_prompt: str,
        company_name: str | None = None,
        *,
        min_confidence: float = 0.5,
        cancel_event: asyncio.Event | None = None,
    ) -> list[TieredMatch]:
        """Screen every item with the quick tier, confirm survivors with the full tier."""

        async def screen(content: ContentItem) -> QuickMatch:
            return await self.match_quick(content, discovery_prompt)

        quick_results = await run_in_waves(
            contents,
            screen,
            wave_size=self.settings.discovery_batch_size,
            cancel_event=cancel_event,
        )
        survivors = [
            index
            for index, quick in enumerate(quick_results)
            if quick.is_match and quick.confidence >= min_confidence
        ]
        logger.info("quick screen passed %d/%d items", len(survivors), len(contents))

        confirmed = await self.match_batch(
            [contents[index] for index in survivors],
            discovery_prompt,
            company_name,
            cancel_event=cancel_event,
        )
        full_by_index = dict(zip(survivors, confirmed))
        return [
            TieredMatch(content=content, quick=quick, full=full_by_index.get(index))
            for index, (content, quick) in enumerate(zip(contents, quick_results))
        ]


def build_discovery_matcher(settings: Settings) -> DiscoveryMatcher:
    return DiscoveryMatcher(
        build_completion_client(settings),
        settings=settings,
        prompts=prompts_from_settings(settings),
    )
