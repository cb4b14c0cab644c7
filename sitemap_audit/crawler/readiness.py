# sitemap_audit/crawler/readiness.py
"""
Readiness probe: poll the target until it answers 2xx or the deadline passes.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from sitemap_audit.config import AuditConfig
from sitemap_audit.crawler.fetcher import Fetcher
from sitemap_audit.errors import ServerNotReadyError
from sitemap_audit.logger import logger
from sitemap_audit.server import TargetServer

__all__ = ["wait_until_ready"]


async def wait_until_ready(
    fetcher: Fetcher,
    config: AuditConfig,
    server: Optional[TargetServer] = None,
) -> None:
    """
    Block until ``config.ready_url`` returns 2xx.

    Connection errors count as "not ready yet". Raises ServerNotReadyError
    after ``config.ready_timeout`` seconds, or at once if *server* has exited.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + config.ready_timeout
    attempts = 0
    while loop.time() < deadline:
        if server is not None and server.returncode is not None:
            raise ServerNotReadyError(
                f"Target server exited with code {server.returncode} before becoming ready"
            )
        attempts += 1
        # an attempt never outlives the deadline
        remaining = max(deadline - loop.time(), 0.001)
        outcome = await fetcher.fetch(
            config.ready_url, "GET", timeout=min(config.timeout, remaining)
        )
        if 200 <= outcome.status < 300:
            logger.info("Server ready at %s after %d attempt(s)", config.base, attempts)
            return
        logger.debug("Not ready yet (%s): %s", outcome.status, outcome.error or "bad status")
        await asyncio.sleep(min(config.ready_interval, max(deadline - loop.time(), 0)))
    raise ServerNotReadyError(
        f"Server not ready at {config.base} within {config.ready_timeout:g}s"
    )
