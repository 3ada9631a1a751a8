from __future__ import annotations

import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import requests

from .analysis import MergeReport, build_corpus, build_prompt, group_by_ticker, merge_and_rank
from .analysis.ticker_grouper import TickerGroups
from .fetchers import fetch_all_feeds
from .models import NewsDocument, ProviderResult, Source
from .output import EmailSender, format_subject, render_markdown
from .processors import batch_documents
from .processors.ai import ProviderConfig, create_provider_client
from .utils.logging import get_logger
from .utils.pipeline_config import RunConfig

logger = get_logger("bc.orchestrator")


class Orchestrator:
    """Runs one screen: feeds, tickers, providers, merge, report, delivery."""

    def __init__(
        self,
        run_config: RunConfig,
        provider_configs: Sequence[ProviderConfig],
        *,
        session: Optional[requests.Session] = None,
        email_sender: Optional[EmailSender] = None,
        send_email: bool = True,
        output_path: Optional[Path] = None,
    ) -> None:
        self.run_config = run_config
        self.provider_configs = list(provider_configs)
        self.session = session or requests.Session()
        self.email_sender = email_sender
        self.send_email = send_email and not run_config.dry_run
        self.output_path = output_path

    def fetch_documents(self, sources: Iterable[Source]) -> List[NewsDocument]:
        items = fetch_all_feeds(
            sources,
            timeout=self.run_config.feed_timeout,
            delay=self.run_config.feed_delay,
            session=self.session,
        )
        docs = batch_documents(items)
        logger.info("Fetched %d feed item(s); %d usable document(s)", len(items), len(docs))
        return docs

    def query_providers(self, by_ticker: TickerGroups) -> Dict[str, ProviderResult]:
        """Ask every provider in turn; one provider's failure never stops the next."""
        corpus = build_corpus(by_ticker, max_chars=self.run_config.corpus_max_chars)
        logger.debug("Corpus: %d chars for %d ticker(s)", len(corpus), len(by_ticker))
        results: Dict[str, ProviderResult] = {}
        for cfg in self.provider_configs:
            if self.run_config.dry_run:
                results[cfg.name] = ProviderResult.failure(cfg.name, "dry_run", "dry run")
                continue
            logger.info("Calling %s", cfg.label)
            t0 = time.perf_counter()
            client = create_provider_client(cfg, self.run_config, session=self.session)
            result = client.query(build_prompt(corpus, cfg.task))
            logger.info(
                "%s: %d result(s) (err=%s) in %.1fs",
                cfg.label,
                len(result.results),
                result.error_kind or "none",
                time.perf_counter() - t0,
            )
            results[cfg.name] = result
        return results

    def build_report(self, by_ticker: TickerGroups, results: Dict[str, ProviderResult]) -> MergeReport:
        return merge_and_rank(
            by_ticker,
            results,
            neutral_by_provider={c.name: c.neutral_sentiment for c in self.provider_configs},
            labels={c.name: c.label for c in self.provider_configs},
            top_n=self.run_config.top_n,
            heuristic_fallback=self.run_config.heuristic_fallback or self.run_config.dry_run,
            require_live=not self.run_config.dry_run,
        )

    def deliver(self, subject: str, markdown: str) -> None:
        if self.output_path is not None:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self.output_path.write_text(markdown, encoding="utf-8")
            logger.info("Wrote report to %s", self.output_path)
        if not self.send_email:
            logger.info("Email delivery skipped")
            return
        sender = self.email_sender or EmailSender.from_env()
        sender.send(subject, markdown)

    def run(self, sources: Iterable[Source]) -> Optional[str]:
        """Run the screen and return the rendered markdown.

        Returns None when the feeds mention no tickers. Raises
        TotalProviderFailure when no provider produced anything.
        """
        docs = self.fetch_documents(sources)
        by_ticker = group_by_ticker(docs)
        if not by_ticker:
            logger.warning("No tickers discovered; exiting")
            return None
        logger.info("Discovered %d ticker(s): %s", len(by_ticker), ", ".join(by_ticker))

        results = self.query_providers(by_ticker)
        report = self.build_report(by_ticker, results)
        top_n = self.run_config.top_n
        markdown = render_markdown(report, by_ticker, top_n=top_n)
        self.deliver(format_subject(report, top_n=top_n), markdown)
        logger.info(
            "Run finished: documents=%d, tickers=%d, advisories=%d, status=%s",
            len(docs),
            len(by_ticker),
            len(report.advisories),
            report.status_line,
        )
        return markdown
