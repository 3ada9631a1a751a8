"""Application entrypoint for the Bullet Catalyst screen.

This script orchestrates the high-level flow:
1) load configuration
2) fetch news and ask the providers
3) render the report and email it (or print it)
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from .errors import ConfigError, TotalProviderFailure
from .orchestrator import Orchestrator
from .processors.ai import PROVIDER_ORDER, build_provider_configs, find_provider_config, probe_provider
from .utils.config_loader import load_feeds_config
from .utils.logging import configure_logging, get_logger
from .utils.pipeline_config import ProviderSettings, RunConfig

DEFAULT_CONFIG_PATH = Path("config/feeds.yaml")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Bullet Catalyst – news-driven call-spread screen across GPT, Grok and Groq"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to feeds configuration file (YAML); defaults to config/feeds.yaml when present",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Skip provider calls and email; render news-only heuristic tracks",
    )
    parser.add_argument("--top-n", type=int, default=None, help="Tickers per provider section")
    parser.add_argument("--output", default=None, help="Also write the markdown report to this path")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-output",
        default=None,
        choices=["stdout", "file", "both"],
        help="Where logs go (default: LOG_OUTPUT or stdout)",
    )
    parser.add_argument("--log-file", default=None, help="Log file path for file output (default: LOG_FILE_PATH)")
    parser.add_argument("--log-format", default=None, choices=["text", "json"], help="Log line format")
    parser.add_argument(
        "--debug-payloads",
        action="store_true",
        help="Log raw provider reply content (DEBUG level)",
    )
    parser.add_argument("--no-email", action="store_true", help="Do not send the report by email")
    parser.add_argument(
        "--probe",
        choices=list(PROVIDER_ORDER),
        default=None,
        help="Only check connectivity/credentials for one provider and exit with its status code",
    )
    return parser.parse_args(argv)


def _resolve_config_path(value: Optional[str]) -> Optional[Path]:
    if value:
        return Path(value)
    return DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else None


def main(argv: Optional[List[str]] = None) -> int:
    # Optional: load .env
    try:
        from dotenv import load_dotenv  # type: ignore

        load_dotenv(override=False)
    except Exception:
        pass
    args = parse_args(argv)
    configure_logging(
        level=args.log_level,
        output=args.log_output,
        file_path=args.log_file,
        log_format=args.log_format,
    )
    logger = get_logger("bc.agent")

    settings = ProviderSettings.from_env()
    provider_configs = build_provider_configs(settings)
    run_config = RunConfig.from_env(
        top_n=args.top_n,
        dry_run=args.dry_run or None,
        log_raw_payloads=args.debug_payloads or None,
    )

    if args.probe:
        cfg = find_provider_config(provider_configs, args.probe)
        code = probe_provider(cfg, run_config.provider_timeout)
        logger.info("Probe %s finished with exit code %d", cfg.label, code)
        return code

    config_path = _resolve_config_path(args.config)
    logger.info("Loading feeds configuration from %s", config_path or "built-in defaults")
    try:
        sources = load_feeds_config(config_path)
    except ConfigError as exc:
        logger.error("Failed to load configuration: %s", exc)
        return 1
    logger.info("Loaded %d feed(s)", len(sources))

    orch = Orchestrator(
        run_config,
        provider_configs,
        send_email=not args.no_email,
        output_path=Path(args.output) if args.output else None,
    )
    try:
        orch.run(sources)
    except TotalProviderFailure as exc:
        logger.error("%s", exc)
        return 1
    except Exception as exc:  # noqa: BLE001 - top-level entrypoint guard
        logger.exception("Run failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
