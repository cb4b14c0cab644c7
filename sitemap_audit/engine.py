# File: sitemap_audit/engine.py
"""sitemap_audit.engine: Orchestration layer: запуск сервера, оба прохода проверки и отчёт."""

from __future__ import annotations

import asyncio
import contextlib
import signal
import time
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from sitemap_audit.aggregator import AuditReport, build_report
from sitemap_audit.config import AuditConfig
from sitemap_audit.crawler.fetcher import BodyMode, Fetcher, create_session
from sitemap_audit.crawler.models import FetchOutcome, PageCheckResult
from sitemap_audit.crawler.pool import run_pool
from sitemap_audit.crawler.readiness import wait_until_ready
from sitemap_audit.errors import SitemapFetchError
from sitemap_audit.logger import logger
from sitemap_audit.parser import Parsers, get_parsers
from sitemap_audit.report import render_html, render_json
from sitemap_audit.server import ExternalServer, SubprocessServer, TargetServer
from sitemap_audit.utils import remove_duplicates, same_origin

__all__ = ["AuditState", "Engine", "run_audit", "server_from_config", "guarded"]


class AuditState(str, Enum):
    IDLE = "idle"
    WAITING_FOR_READY = "waiting_for_ready"
    FETCHING_SITEMAP = "fetching_sitemap"
    CHECKING_PAGES = "checking_pages"
    EXTRACTING_ASSETS = "extracting_assets"
    CHECKING_ASSETS = "checking_assets"
    WRITING_REPORT = "writing_report"
    DONE = "done"
    FAILED = "failed"


def guarded(
    fetch: Callable[[str], Awaitable[FetchOutcome]],
) -> Callable[[str], Awaitable[FetchOutcome]]:
    """Wrap a per-URL operation so an unexpected exception becomes a failed outcome."""

    async def _op(url: str) -> FetchOutcome:
        try:
            return await fetch(url)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Unexpected error checking %s: %r", url, exc)
            return FetchOutcome.failed(url, str(exc) or exc.__class__.__name__)

    return _op


def server_from_config(config: AuditConfig) -> TargetServer:
    """SubprocessServer when a server command is configured, otherwise ExternalServer."""
    if config.server_command:
        return SubprocessServer(
            config.server_command, base_url=config.base, build_dir=config.build_dir
        )
    return ExternalServer()


class Engine:
    """Фасад для CLI и тестов: ожидание сервера, проверка страниц и ресурсов, запись отчёта."""

    def __init__(
        self,
        config: AuditConfig,
        server: Optional[TargetServer] = None,
        parsers: Optional[Parsers] = None,
        *,
        handle_signals: bool = False,
    ) -> None:
        self.config = config
        self.server = server if server is not None else server_from_config(config)
        self.parsers = parsers if parsers is not None else get_parsers(config.parser)
        self.handle_signals = handle_signals
        self.state = AuditState.IDLE
        self.report: Optional[AuditReport] = None

    def _enter(self, state: AuditState) -> None:
        logger.debug("Audit state: %s -> %s", self.state.value, state.value)
        self.state = state

    async def run(self) -> AuditReport:
        """Запускает аудит целиком. Фатальные ошибки подготовки пробрасываются как AuditError."""
        logger.info("Starting audit of %s", self.config.base)
        start = time.monotonic()
        installed = self._install_signal_handlers() if self.handle_signals else []
        try:
            try:
                await self.server.start()
                async with create_session(self.config) as session:
                    fetcher = Fetcher(session, self.config)
                    self.report = await self._audit(fetcher)
            except BaseException:
                self._enter(AuditState.FAILED)
                raise
            finally:
                await self.server.stop()
        finally:
            self._remove_signal_handlers(installed)
        logger.info("Audit finished in %.2f s", time.monotonic() - start)
        return self.report

    async def _audit(self, fetcher: Fetcher) -> AuditReport:
        cfg = self.config

        self._enter(AuditState.WAITING_FOR_READY)
        await wait_until_ready(fetcher, cfg, self.server)

        self._enter(AuditState.FETCHING_SITEMAP)
        pages = await self._load_sitemap(fetcher)

        self._enter(AuditState.CHECKING_PAGES)
        page_results = await self._check(fetcher, pages, "GET", "html")

        self._enter(AuditState.EXTRACTING_ASSETS)
        assets = self.collect_assets(page_results)

        self._enter(AuditState.CHECKING_ASSETS)
        asset_results = await self._check(fetcher, assets, "HEAD", "none")

        self._enter(AuditState.WRITING_REPORT)
        report = build_report(cfg.base, pages, page_results, assets, asset_results)
        saved = render_json(report, cfg.report_path)
        logger.info("JSON report saved: %s", saved)
        if cfg.html_report_path is not None:
            logger.info("HTML report saved: %s", render_html(report, cfg.html_report_path))

        self._enter(AuditState.DONE)
        return report

    async def _load_sitemap(self, fetcher: Fetcher) -> List[str]:
        cfg = self.config
        outcome = await fetcher.fetch(cfg.sitemap_url, "GET", body="any")
        if not outcome.ok or outcome.body is None:
            raise SitemapFetchError(outcome.status, outcome.error)
        pages = self.parsers.extract_urls(outcome.body, cfg.base)
        logger.info("Sitemap lists %d unique pages", len(pages))
        if cfg.sample_limit is not None and len(pages) > cfg.sample_limit:
            logger.info("Sample limit: checking first %d pages", cfg.sample_limit)
            pages = pages[: cfg.sample_limit]
        return pages

    async def _check(
        self, fetcher: Fetcher, urls: List[str], method: str, body: BodyMode
    ) -> List[FetchOutcome]:
        async def _fetch(url: str) -> FetchOutcome:
            return await fetcher.fetch(url, method, body=body)

        started = time.monotonic()
        results = await run_pool(urls, guarded(_fetch), self.config.concurrency)
        failed = sum(1 for r in results if not r.ok)
        logger.info(
            "Checked %d URLs with %s in %.2f s, %d failed",
            len(results), method, time.monotonic() - started, failed,
        )
        for r in results:
            if not r.ok:
                logger.debug("FAIL %s %s %s", r.status, r.url, r.error or "")
        return results

    def collect_assets(self, page_results: List[PageCheckResult]) -> List[str]:
        """Same-origin assets of every successfully fetched HTML page, de-duplicated."""
        base = self.config.base
        assets: List[str] = []
        for page in page_results:
            if not page.has_html:
                continue
            assets.extend(
                url for url in self.parsers.extract_assets(page.body, page.url)
                if same_origin(url, base)
            )
        unique = remove_duplicates(assets)
        logger.info("Found %d unique same-origin assets", len(unique))
        return unique

    def _install_signal_handlers(self) -> List[signal.Signals]:
        loop = asyncio.get_running_loop()
        task = asyncio.current_task()
        installed: List[signal.Signals] = []

        def _on_signal(sig: signal.Signals) -> None:
            logger.warning("Received %s, stopping target server", sig.name)
            self.server.kill()
            if task is not None:
                task.cancel()

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, _on_signal, sig)
                installed.append(sig)
        return installed

    @staticmethod
    def _remove_signal_handlers(installed: List[signal.Signals]) -> None:
        if not installed:
            return
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)


async def run_audit(
    config: AuditConfig,
    server: Optional[TargetServer] = None,
    *,
    handle_signals: bool = False,
) -> AuditReport:
    """Запускает Engine с заданной конфигурацией и возвращает отчёт."""
    return await Engine(config, server, handle_signals=handle_signals).run()
