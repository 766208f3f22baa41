import logging

import pytest

from monitor_match.safety import (
    compile_literal_pattern,
    compile_loose_pattern,
    escape_pattern,
    is_safe_pattern,
)
from monitor_match.telemetry import CompletionMeta, calculate_cost, log_completion, summarize_usage


def test_escape_pattern_neutralises_regex_syntax() -> None:
    assert escape_pattern("hello (world)") == r"hello\ \(world\)"
    assert escape_pattern(None) == ""


def test_is_safe_pattern_rejects_redos_shapes() -> None:
    assert is_safe_pattern("plain words")
    assert not is_safe_pattern("(a+)+")
    assert not is_safe_pattern("(a*)*")
    assert not is_safe_pattern("a+++")
    assert not is_safe_pattern("a{1,5} {2,3}")
    assert not is_safe_pattern("x" * 501)


def test_compile_literal_pattern() -> None:
    pattern = compile_literal_pattern("Price (USD)")
    assert pattern.search("the price   (usd) went up")
    assert not pattern.search("price usd")
    with pytest.raises(ValueError):
        compile_literal_pattern("   ")
    with pytest.raises(ValueError):
        compile_literal_pattern("y" * 201)


def test_compile_loose_pattern_keeps_word_edges() -> None:
    pattern = compile_loose_pattern("super widget")
    assert pattern.search("the superwidget")
    assert pattern.search("a super__widget!")
    assert not pattern.search("supersuper widget")
    assert not pattern.search("super widgets")
    with pytest.raises(ValueError):
        compile_loose_pattern("")


def test_cost_and_usage_summary() -> None:
    assert calculate_cost("openai/gpt-4o-mini", 1_000_000, 0) == pytest.approx(0.15)
    assert calculate_cost("unknown/model", 10, 10) == 0.0

    metas = [
        CompletionMeta("google/gemini-2.5-flash", 100, 50, 800, 0.001),
        CompletionMeta("google/gemini-2.5-flash", 200, 25, 700, 0.002),
        CompletionMeta("openai/gpt-4o-mini", 10, 5, 100, 0.0005),
    ]
    usage = summarize_usage(metas)
    assert usage.calls == 3
    assert usage.prompt_tokens == 310
    assert usage.completion_tokens == 80
    assert usage.latency_ms == 1600
    assert usage.cost == pytest.approx(0.0035)
    assert usage.by_model["google/gemini-2.5-flash"].calls == 2
    assert usage.by_model["openai/gpt-4o-mini"].prompt_tokens == 10


def test_meta_json_uses_camel_case_keys() -> None:
    meta = CompletionMeta("m", 1, 2, 3, 0.5)
    assert meta.to_json_dict() == {
        "model": "m",
        "promptTokens": 1,
        "completionTokens": 2,
        "latencyMs": 3,
        "cost": 0.5,
    }


def test_log_completion_emits_one_info_line(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="monitor_match.telemetry"):
        log_completion(CompletionMeta("m", 1, 2, 3, 0.5), purpose="discovery_full")
    assert len(caplog.records) == 1
    assert "purpose=discovery_full" in caplog.records[0].getMessage()
