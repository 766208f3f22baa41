from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_PRIMARY_MODEL = "google/gemini-2.5-flash"
DEFAULT_FALLBACK_MODEL = "openai/gpt-4o-mini"

DISCOVERY_REQUIRED_ENVS = ("OPENROUTER_API_KEY",)


class Settings(BaseModel):
    openrouter_api_key: str = ""
    openrouter_base_url: str = DEFAULT_BASE_URL
    app_url: str = "http://localhost:3000"
    app_title: str = "monitor-match"
    primary_model: str = DEFAULT_PRIMARY_MODEL
    quick_model: str = DEFAULT_PRIMARY_MODEL
    fallback_model: str | None = DEFAULT_FALLBACK_MODEL
    request_timeout_seconds: float = Field(default=30.0, gt=0.0)
    llm_retry_attempts: int = Field(default=1, ge=1)
    llm_retry_delay_seconds: float = Field(default=1.0, ge=0.0)
    discovery_batch_size: int = Field(default=5, ge=1)
    full_body_chars: int = Field(default=1500, ge=1)
    quick_body_chars: int = Field(default=500, ge=1)
    prompts_path: Path | None = None

    @field_validator("openrouter_base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        if not value.startswith(("https://", "http://localhost", "http://127.0.0.1")):
            raise ValueError("OPENROUTER_BASE_URL must use https://")
        return value.rstrip("/")

    @field_validator("fallback_model")
    @classmethod
    def _blank_fallback_disables(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


def _env_value(environ: Mapping[str, str], key: str) -> str:
    return environ.get(key, "").strip()


def missing_envs(required: Sequence[str], environ: Mapping[str, str] | None = None) -> list[str]:
    source = os.environ if environ is None else environ
    return [key for key in required if not _env_value(source, key)]


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    source = os.environ if environ is None else environ
    primary_model = _env_value(source, "PRIMARY_MODEL") or DEFAULT_PRIMARY_MODEL
    payload = {
        "openrouter_api_key": _env_value(source, "OPENROUTER_API_KEY"),
        "openrouter_base_url": _env_value(source, "OPENROUTER_BASE_URL") or DEFAULT_BASE_URL,
        "app_url": _env_value(source, "APP_URL") or "http://localhost:3000",
        "app_title": _env_value(source, "APP_TITLE") or "monitor-match",
        "primary_model": primary_model,
        "quick_model": _env_value(source, "QUICK_MODEL") or primary_model,
        "fallback_model": source.get("FALLBACK_MODEL", DEFAULT_FALLBACK_MODEL),
        "request_timeout_seconds": _env_value(source, "REQUEST_TIMEOUT_SECONDS") or "30",
        "llm_retry_attempts": _env_value(source, "LLM_RETRY_ATTEMPTS") or "1",
        "llm_retry_delay_seconds": _env_value(source, "LLM_RETRY_DELAY_SECONDS") or "1",
        "discovery_batch_size": _env_value(source, "DISCOVERY_BATCH_SIZE") or "5",
        "full_body_chars": _env_value(source, "FULL_BODY_CHARS") or "1500",
        "quick_body_chars": _env_value(source, "QUICK_BODY_CHARS") or "500",
        "prompts_path": _env_value(source, "PROMPTS_PATH") or None,
    }
    try:
        return Settings(**payload)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


def assert_required_envs(required: Sequence[str], environ: Mapping[str, str] | None = None) -> None:
    missing = missing_envs(required, environ)
    if missing:
        keys = ", ".join(missing)
        raise ValueError(f"Missing required environment variables: {keys}")


def mask_secret(value: str, visible_prefix: int = 3, visible_suffix: int = 2) -> str:
    if not value:
        return ""
    if len(value) <= visible_prefix + visible_suffix:
        return "*" * len(value)
    hidden = "*" * (len(value) - visible_prefix - visible_suffix)
    return f"{value[:visible_prefix]}{hidden}{value[-visible_suffix:]}"
