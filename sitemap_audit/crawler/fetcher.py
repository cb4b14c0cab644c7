# sitemap_audit/crawler/fetcher.py
"""
Fetcher module: one bounded HTTP request with timeout and HEAD→GET fallback.
"""
from __future__ import annotations

import asyncio
from typing import Literal, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout, DummyCookieJar, TCPConnector
from sitemap_audit.config import AuditConfig
from sitemap_audit.crawler.models import FetchOutcome
from sitemap_audit.logger import logger

__all__ = ["ACCEPT", "BodyMode", "Fetcher", "create_session", "is_ok_status"]

ACCEPT = "text/html,application/xml;q=0.9,*/*;q=0.8"

#: "none" never reads the body, "html" reads text/html GET bodies, "any" reads every GET body.
BodyMode = Literal["none", "html", "any"]


def is_ok_status(status: int) -> bool:
    return 200 <= status < 400


def create_session(config: AuditConfig) -> ClientSession:
    """Shared session for one run: no cookies, identifying headers, bounded connector."""
    return ClientSession(
        connector=TCPConnector(limit=config.concurrency),
        cookie_jar=DummyCookieJar(),
        headers={"User-Agent": config.user_agent, "Accept": ACCEPT},
        raise_for_status=False,
    )


class Fetcher:
    """Issues single requests; every expected failure becomes a FetchOutcome."""

    def __init__(self, session: ClientSession, config: AuditConfig) -> None:
        self.session = session
        self.config = config
        self._timeout = ClientTimeout(total=config.timeout)

    async def fetch(
        self,
        url: str,
        method: str = "GET",
        *,
        body: BodyMode = "none",
        timeout: Optional[float] = None,
    ) -> FetchOutcome:
        """
        Fetch *url* with the preferred *method*.

        HEAD answered with 405 is repeated once as GET and the GET outcome
        is returned. Any other HEAD response or transport error is final.
        *timeout* (seconds) overrides the configured per-request timeout.
        """
        method = method.upper()
        limit = self._timeout if timeout is None else ClientTimeout(total=timeout)
        outcome = await self._request(url, method, body, limit)
        if method == "HEAD" and outcome.status == 405:
            logger.debug("HEAD rejected with 405, retrying as GET: %s", url)
            return await self._request(url, "GET", body, limit)
        return outcome

    async def _request(
        self, url: str, method: str, body: BodyMode, timeout: ClientTimeout
    ) -> FetchOutcome:
        try:
            async with self.session.request(
                method, url, allow_redirects=True, timeout=timeout
            ) as resp:
                status = resp.status
                text = None
                if method == "GET" and body != "none":
                    ctype = resp.headers.get("Content-Type", "").lower()
                    if body == "any" or "text/html" in ctype:
                        text = await resp.text(errors="replace")
                return FetchOutcome(url=url, status=status, ok=is_ok_status(status), body=text)
        except asyncio.TimeoutError:
            # no retry on timeout
            logger.debug("%s %s timed out after %.1f s", method, url, timeout.total)
            return FetchOutcome.failed(url, "timeout")
        except ClientError as exc:
            logger.debug("%s %s failed: %r", method, url, exc)
            return FetchOutcome.failed(url, str(exc) or exc.__class__.__name__)
