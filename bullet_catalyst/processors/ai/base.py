from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from ...models.assessment import PRIMARY_NEUTRAL

ResponseMode = Literal["json_schema", "json_object"]
FallbackPolicy = Literal["none", "model", "endpoint"]

# Status codes that mean "this model is not available to you", not "the service is down".
MODEL_REJECTION_STATUSES = frozenset({400, 403, 404})

TICKER_BATCH_SCHEMA: Dict[str, Any] = {
    "name": "TickerBatch",
    "strict": True,
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "required": ["results"],
        "properties": {
            "results": {
                "type": "array",
                "items": {
                    "type": "object",
                    "additionalProperties": False,
                    "required": ["ticker", "sentiment", "catalysts"],
                    "properties": {
                        "ticker": {"type": "string"},
                        "sentiment": {"type": "integer", "minimum": 0, "maximum": 100},
                        "catalysts": {"type": "array", "items": {"type": "string"}},
                    },
                },
            }
        },
    },
}


@dataclass(slots=True)
class ProviderConfig:
    """Everything that distinguishes one provider from another.

    The fallback behaviour is data: ``fallback="model"`` walks
    ``fallback_models`` when a model is rejected, ``fallback="endpoint"``
    retries a 404 from ``/chat/completions`` against ``/responses``.
    """

    name: str
    label: str
    base_url: str
    api_key: str
    model: str
    system_prompt: str
    task: str
    env_key: str = ""
    response_mode: ResponseMode = "json_object"
    fallback: FallbackPolicy = "none"
    fallback_models: List[str] = field(default_factory=list)
    neutral_sentiment: int = PRIMARY_NEUTRAL
    temperature: float = 0.1
    max_tokens: Optional[int] = None

    @property
    def chat_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    @property
    def responses_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/responses"

    def model_candidates(self) -> List[str]:
        if self.fallback != "model":
            return [self.model]
        return list(dict.fromkeys(m for m in [self.model, *self.fallback_models] if m))

    def response_format(self) -> Dict[str, Any]:
        if self.response_mode == "json_schema":
            return {"type": "json_schema", "json_schema": TICKER_BATCH_SCHEMA}
        return {"type": "json_object"}
