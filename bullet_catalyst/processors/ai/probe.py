from __future__ import annotations

from typing import Optional

import requests

from ...utils.logging import get_logger, mask_secret, preview
from .base import ProviderConfig
from .client import DEFAULT_TIMEOUT, error_message, reply_text

logger = get_logger("bc.ai.probe")

EXIT_OK = 0
EXIT_BAD_CREDENTIAL = 2
EXIT_FORBIDDEN = 3
EXIT_HTTP_ERROR = 4
EXIT_TRANSPORT = 5


def probe_provider(
    config: ProviderConfig,
    timeout: float = DEFAULT_TIMEOUT,
    *,
    session: Optional[requests.Session] = None,
) -> int:
    """Send a one-line ``{"ok":true}`` request and map the outcome to an exit code.

    0 success, 2 missing or rejected key (401), 3 forbidden or out of
    credits (403), 4 any other HTTP error, 5 transport failure.
    """
    if not config.api_key:
        logger.error("[probe:%s] %s missing", config.name, config.env_key or "API key")
        return EXIT_BAD_CREDENTIAL

    body = {
        "model": config.model,
        "messages": [
            {"role": "system", "content": 'Reply only with {"ok":true}'},
            {"role": "user", "content": 'Return exactly {"ok":true}'},
        ],
        "response_format": {"type": "json_object"},
        "temperature": 0,
    }
    logger.info(
        "[probe:%s] POST %s model=%s key=%s",
        config.name,
        config.chat_url,
        config.model,
        mask_secret(config.api_key),
    )
    http = session or requests.Session()
    try:
        resp = http.post(
            config.chat_url,
            json=body,
            headers={"Authorization": f"Bearer {config.api_key}", "Content-Type": "application/json"},
            timeout=timeout,
        )
    except requests.RequestException as exc:
        logger.error("[probe:%s] request failed: %s", config.name, exc)
        return EXIT_TRANSPORT

    logger.info("[probe:%s] HTTP %s", config.name, resp.status_code)
    try:
        data = resp.json()
    except ValueError:
        data = resp.text
    if 200 <= resp.status_code < 300:
        logger.info("[probe:%s] OK: %s", config.name, preview(reply_text(data) or str(data), 200))
        return EXIT_OK

    logger.error("[probe:%s] %s", config.name, preview(error_message(data, "(no error body)"), 300))
    if resp.status_code == 401:
        return EXIT_BAD_CREDENTIAL
    if resp.status_code == 403:
        logger.error("[probe:%s] forbidden: key lacks model ACLs or the team has no credits", config.name)
        return EXIT_FORBIDDEN
    return EXIT_HTTP_ERROR
