"""LLM provider clients (OpenAI, xAI, Groq) and reply parsing."""

from .base import ProviderConfig
from .client import ProviderClient
from .factory import PROVIDER_ORDER, build_provider_configs, create_provider_client, find_provider_config
from .parsing import parse_provider_json
from .probe import probe_provider

__all__ = [
    "ProviderConfig",
    "ProviderClient",
    "PROVIDER_ORDER",
    "build_provider_configs",
    "create_provider_client",
    "find_provider_config",
    "parse_provider_json",
    "probe_provider",
]
