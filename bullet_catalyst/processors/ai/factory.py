from __future__ import annotations

from typing import List, Optional

import requests

from ...models.assessment import PRIMARY_NEUTRAL, SECONDARY_NEUTRAL
from ...utils.pipeline_config import ProviderSettings, RunConfig
from .base import ProviderConfig
from .client import ProviderClient

PROVIDER_ORDER = ("gpt", "grok", "groq")

_SCREENER = (
    "You are an equity options screener. Use ONLY the ticker-scoped headlines/snippets "
    "inside PROMPT CORPUS. "
)

OPENAI_SYSTEM_PROMPT = (
    _SCREENER
    + "For EVERY ticker, emit EXACTLY one object. Rate 0-100 for a 3-week call-debit-spread. "
    "Catalysts must be specific with numbers/counterparties/events. Output strict JSON."
)
OPENAI_TASK = "For EVERY ticker in the CORPUS, output one object with {ticker, sentiment (0-100), catalysts[]}."

XAI_SYSTEM_PROMPT = (
    _SCREENER
    + "Return STRICT JSON {results:[{ticker, sentiment, catalysts, rationale, suggested_spread, confidence}]}. "
    "sentiment 0-100; confidence 0-100."
)
XAI_TASK = (
    "Discover tickers and return TOP 10 objects "
    "{ticker, sentiment, catalysts, rationale, suggested_spread, confidence}."
)

GROQ_SYSTEM_PROMPT = (
    _SCREENER
    + "Return STRICT JSON {results:[{ticker, sentiment, catalysts, rationale}]}. "
    "'sentiment' is 0-100 for a 3-week call-debit-spread."
)
GROQ_TASK = (
    "For EVERY ticker, return STRICT JSON {results:[{ticker, sentiment, catalysts, rationale}]}. "
    "'sentiment' is 0-100 for a 3-week call-debit-spread."
)


def build_provider_configs(settings: ProviderSettings) -> List[ProviderConfig]:
    """Return the three provider configurations in query/merge order."""
    return [
        ProviderConfig(
            name="gpt",
            label="GPT",
            base_url=settings.openai_base,
            api_key=settings.openai_api_key,
            env_key="OPENAI_API_KEY",
            model=settings.openai_model,
            system_prompt=OPENAI_SYSTEM_PROMPT,
            task=OPENAI_TASK,
            response_mode="json_schema",
            fallback="none",
            neutral_sentiment=PRIMARY_NEUTRAL,
            temperature=0.2,
        ),
        ProviderConfig(
            name="grok",
            label="Grok",
            base_url=settings.xai_base,
            api_key=settings.xai_api_key,
            env_key="XAI_API_KEY",
            model=settings.xai_model,
            system_prompt=XAI_SYSTEM_PROMPT,
            task=XAI_TASK,
            response_mode="json_object",
            fallback="endpoint",
            neutral_sentiment=SECONDARY_NEUTRAL,
            temperature=0.1,
            max_tokens=1200,
        ),
        ProviderConfig(
            name="groq",
            label="Groq",
            base_url=settings.groq_base,
            api_key=settings.groq_api_key,
            env_key="GROQ_API_KEY",
            model=settings.groq_model,
            system_prompt=GROQ_SYSTEM_PROMPT,
            task=GROQ_TASK,
            response_mode="json_object",
            fallback="model",
            fallback_models=list(settings.groq_fallback_models),
            neutral_sentiment=SECONDARY_NEUTRAL,
            temperature=0.1,
        ),
    ]


def find_provider_config(configs: List[ProviderConfig], name: str) -> ProviderConfig:
    for cfg in configs:
        if cfg.name == name.lower():
            return cfg
    raise ValueError(f"Unknown provider '{name}'. Use one of: {', '.join(PROVIDER_ORDER)}.")


def create_provider_client(
    config: ProviderConfig,
    run_config: Optional[RunConfig] = None,
    *,
    session: Optional[requests.Session] = None,
) -> ProviderClient:
    run_config = run_config or RunConfig()
    return ProviderClient(
        config,
        timeout=run_config.provider_timeout,
        session=session,
        log_raw_payloads=run_config.log_raw_payloads,
    )
