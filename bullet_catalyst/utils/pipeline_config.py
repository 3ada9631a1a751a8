from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}


def env_trim(env: Mapping[str, str], name: str, default: str = "") -> str:
    value = env.get(name)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or not str(value).strip():
        return default
    return str(value).strip().lower() in _TRUE_VALUES


def _csv(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


@dataclass(slots=True)
class RunConfig:
    """Settings for one screening run, built once and passed down explicitly."""

    top_n: int = 10
    corpus_max_chars: int = 16000
    provider_timeout: float = 60.0
    feed_timeout: float = 45.0
    feed_delay: float = 0.3
    heuristic_fallback: bool = True
    log_raw_payloads: bool = False
    dry_run: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides) -> "RunConfig":
        env = os.environ if env is None else env
        fallback_raw = env.get("HEURISTIC_FALLBACK")
        if fallback_raw is None:
            # legacy name from the Grok-only fallback
            fallback_raw = env.get("GROK_HEURISTIC_FALLBACK")
        cfg = cls(
            top_n=int(env_trim(env, "PIPELINE_TOP_N", "10")),
            corpus_max_chars=int(env_trim(env, "PIPELINE_CORPUS_MAX_CHARS", "16000")),
            provider_timeout=float(env_trim(env, "PROVIDER_TIMEOUT_SECS", "60")),
            feed_timeout=float(env_trim(env, "FEED_TIMEOUT_SECS", "45")),
            heuristic_fallback=as_bool(fallback_raw, True),
            log_raw_payloads=as_bool(env.get("LOG_RAW_PAYLOADS"), False),
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(cfg, key, value)
        return cfg


@dataclass(slots=True)
class ProviderSettings:
    """Credentials, models and endpoints for the three providers."""

    openai_api_key: str = ""
    xai_api_key: str = ""
    groq_api_key: str = ""
    openai_model: str = "gpt-4o"
    xai_model: str = "grok-4-fast-reasoning"
    groq_model: str = "llama-3.3-70b-versatile"
    openai_base: str = "https://api.openai.com/v1"
    xai_base: str = "https://api.x.ai/v1"
    groq_base: str = "https://api.groq.com/openai/v1"
    groq_fallback_models: List[str] = field(
        default_factory=lambda: ["llama-3.1-8b-instant", "openai/gpt-oss-20b"]
    )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ProviderSettings":
        env = os.environ if env is None else env
        defaults = cls()
        fallback_csv = env_trim(env, "GROQ_FALLBACK_MODELS")
        return cls(
            openai_api_key=env_trim(env, "OPENAI_API_KEY"),
            xai_api_key=env_trim(env, "XAI_API_KEY"),
            groq_api_key=env_trim(env, "GROQ_API_KEY"),
            openai_model=env_trim(env, "OPENAI_MODEL", defaults.openai_model),
            xai_model=env_trim(env, "XAI_MODEL", defaults.xai_model),
            groq_model=env_trim(env, "GROQ_MODEL", defaults.groq_model),
            openai_base=env_trim(env, "OPENAI_BASE", defaults.openai_base),
            xai_base=env_trim(env, "XAI_BASE", defaults.xai_base),
            groq_base=env_trim(env, "GROQ_BASE", defaults.groq_base),
            groq_fallback_models=_csv(fallback_csv) if fallback_csv else defaults.groq_fallback_models,
        )
