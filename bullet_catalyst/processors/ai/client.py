from __future__ import annotations

import json
import re
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from ...models import ProviderResult, TickerAssessment
from ...models.assessment import ErrorKind
from ...utils.logging import get_logger, mask_secret, preview
from .base import MODEL_REJECTION_STATUSES, ProviderConfig
from .parsing import parse_provider_json

logger = get_logger("bc.ai.client")

DEFAULT_TIMEOUT = 60.0
_CHUNK_SIZE = 1024
_credits_re = re.compile(r"credit", re.IGNORECASE)


@dataclass(slots=True)
class _Reply:
    """One HTTP exchange, or the transport error that replaced it."""

    status_code: Optional[int] = None
    data: Any = None
    text: str = ""
    transport_error: Optional[ErrorKind] = None
    transport_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.transport_error is None and self.status_code is not None and 200 <= self.status_code < 300


def error_message(data: Any, fallback: str = "") -> str:
    """Pull a human readable message out of the usual error envelopes."""
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        for value in (err, data.get("message"), data.get("detail")):
            if value:
                return value if isinstance(value, str) else json.dumps(value)
    if isinstance(data, str) and data.strip():
        return data.strip()[:300]
    return fallback


def classify_http_error(status: int, message: str) -> ErrorKind:
    if status == 403:
        return "no_credits" if _credits_re.search(message or "") else "forbidden"
    return "http_error"


def reply_text(data: Any) -> Optional[str]:
    """Message content from a chat-completions or a responses envelope."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices") or []
    if choices and isinstance(choices[0], dict):
        content = (choices[0].get("message") or {}).get("content")
        if content:
            return content
    if data.get("output_text"):
        return data["output_text"]
    for item in data.get("output") or []:
        for part in (item or {}).get("content") or []:
            if isinstance(part, dict) and part.get("text"):
                return part["text"]
    return None


class ProviderClient:
    """Sends a prompt to one LLM provider and returns a ``ProviderResult``.

    Provider failures never raise; they come back as ``ok=False`` results with
    an ``error_kind``.
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        log_raw_payloads: bool = False,
    ) -> None:
        self.config = config
        self.timeout = timeout
        self.session = session or requests.Session()
        self.log_raw_payloads = log_raw_payloads

    # ---------------- HTTP -----------------
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.config.api_key}", "Content-Type": "application/json"}

    def _timed_out(self, detail: object = "") -> _Reply:
        logger.warning("[%s] request timed out after %.0fs %s", self.config.name, self.timeout, detail)
        return _Reply(transport_error="timeout", transport_message=f"timed out after {self.timeout:.0f}s")

    def _post(self, url: str, body: Dict[str, Any]) -> _Reply:
        """POST ``body`` and read the reply within ``self.timeout`` seconds overall.

        The requests timeout only bounds each socket wait, so the body is
        streamed and a watchdog closes the response once the deadline passes.
        """
        deadline = time.monotonic() + self.timeout
        try:
            resp = self.session.post(url, json=body, headers=self._headers(), timeout=self.timeout, stream=True)
        except requests.Timeout as exc:
            return self._timed_out(exc)
        except requests.RequestException as exc:
            logger.warning("[%s] request failed: %s", self.config.name, exc)
            return _Reply(transport_error="unavailable", transport_message=str(exc))

        watchdog = threading.Timer(max(deadline - time.monotonic(), 0.0), resp.close)
        watchdog.daemon = True
        watchdog.start()
        chunks: List[bytes] = []
        try:
            for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                if time.monotonic() >= deadline:
                    break
                chunks.append(chunk)
        except (requests.RequestException, OSError, ValueError, AttributeError) as exc:
            # a watchdog close surfaces as a read error on the closed stream
            if time.monotonic() < deadline:
                logger.warning("[%s] reading reply failed: %s", self.config.name, exc)
                return _Reply(transport_error="unavailable", transport_message=str(exc))
        finally:
            watchdog.cancel()
            resp.close()
        if time.monotonic() >= deadline:
            return self._timed_out("while reading the reply")

        text = b"".join(chunks).decode(resp.encoding or "utf-8", errors="replace")
        try:
            data = json.loads(text)
        except ValueError:
            data = text
        return _Reply(status_code=resp.status_code, data=data, text=text)

    def _chat_body(self, model: str, prompt: str) -> Dict[str, Any]:
        cfg = self.config
        body: Dict[str, Any] = {
            "model": model,
            "response_format": cfg.response_format(),
            "messages": [
                {"role": "system", "content": cfg.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": cfg.temperature,
        }
        if cfg.max_tokens:
            body["max_tokens"] = cfg.max_tokens
        return body

    def _responses_body(self, model: str, prompt: str) -> Dict[str, Any]:
        return {
            "model": model,
            "input": [
                {"role": "system", "content": self.config.system_prompt},
                {"role": "user", "content": prompt},
            ],
        }

    # ---------------- Result handling -----------------
    def _log_raw(self, content: str) -> None:
        if not self.log_raw_payloads:
            return
        try:
            pretty = json.dumps(json.loads(content), indent=2)
        except (TypeError, ValueError):
            pretty = content
        logger.debug("[%s] raw content: %s", self.config.name, pretty)

    def _to_result(self, reply: _Reply, model: str) -> ProviderResult:
        name = self.config.name
        if reply.transport_error:
            return ProviderResult.failure(name, reply.transport_error, reply.transport_message, model=model)

        status = reply.status_code or 0
        if not reply.ok:
            message = error_message(reply.data, fallback=f"HTTP {status}")
            if status == 401:
                message = f"unauthorized: {message}"
            kind = classify_http_error(status, message)
            logger.error("[%s] error (HTTP %s, %s): %s", name, status, kind, preview(message, 300))
            return ProviderResult.failure(name, kind, message, model=model, status_code=status)

        content = reply_text(reply.data) or ""
        self._log_raw(content)
        parsed = parse_provider_json(content)
        if parsed is None:
            logger.error("[%s] JSON parse failed; reply preview: %s", name, preview(content, 200))
            return ProviderResult.failure(
                name, "parse_failure", "reply did not contain a results array", model=model, status_code=status
            )

        results: List[TickerAssessment] = []
        for raw in parsed["results"]:
            item = TickerAssessment.from_raw(raw, neutral=self.config.neutral_sentiment)
            if item is not None:
                results.append(item)
        logger.info("[%s] parsed %d result(s) from model=%s", name, len(results), model)
        return ProviderResult(provider=name, results=results, ok=True, model=model, status_code=status)

    # ---------------- Public API -----------------
    def query(self, prompt: str) -> ProviderResult:
        cfg = self.config
        if not cfg.api_key:
            logger.warning("[%s] %s missing; skipping provider", cfg.name, cfg.env_key or "API key")
            return ProviderResult.failure(cfg.name, "missing_key", f"{cfg.env_key or 'API key'} not set")

        logger.info(
            "[%s] POST %s model=%s key=%s", cfg.name, cfg.chat_url, cfg.model, mask_secret(cfg.api_key)
        )
        if cfg.fallback == "model":
            return self._query_model_chain(prompt)

        reply = self._post(cfg.chat_url, self._chat_body(cfg.model, prompt))
        logger.info("[%s] status: %s (model=%s)", cfg.name, reply.status_code, cfg.model)
        if cfg.fallback == "endpoint" and reply.status_code == 404:
            logger.info("[%s] chat endpoint not found; retrying %s", cfg.name, cfg.responses_url)
            reply = self._post(cfg.responses_url, self._responses_body(cfg.model, prompt))
            logger.info("[%s:responses] status: %s", cfg.name, reply.status_code)
        return self._to_result(reply, cfg.model)

    def _query_model_chain(self, prompt: str) -> ProviderResult:
        """Walk the model candidates until one answers.

        Only 400/403/404 move on to the next model. Two 403s in a row mean
        the key itself is refused, so the chain stops there, as it does on an
        out-of-credits 403.
        """
        cfg = self.config
        last: Optional[ProviderResult] = None
        previous_status: Optional[int] = None
        for model in cfg.model_candidates():
            reply = self._post(cfg.chat_url, self._chat_body(model, prompt))
            logger.info("[%s] status: %s (model=%s)", cfg.name, reply.status_code, model)
            result = self._to_result(reply, model)
            if result.ok or reply.status_code not in MODEL_REJECTION_STATUSES:
                return result
            if result.error_kind == "no_credits":
                # out of credits is account-wide; other models will not help
                return result
            last = result
            if reply.status_code == 403 and previous_status == 403:
                logger.warning("[%s] two consecutive HTTP 403 rejections; giving up", cfg.name)
                break
            previous_status = reply.status_code
            logger.warning("[%s] model %s rejected (HTTP %s); trying next candidate", cfg.name, model, reply.status_code)

        assert last is not None
        return ProviderResult.failure(
            cfg.name,
            "unavailable",
            f"no usable model ({last.error_message})",
            model=last.model,
            status_code=last.status_code,
        )
