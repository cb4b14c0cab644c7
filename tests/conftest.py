# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp import web

from sitemap_audit.config import AuditConfig

Serve = Callable[[web.Application], Awaitable[str]]


@pytest.fixture()
def report_path(tmp_path: Path) -> Path:
    return tmp_path / "reports" / "audit-sitemap.json"


@pytest.fixture()
def make_config(report_path: Path) -> Callable[..., AuditConfig]:
    """
    Factory for AuditConfig with test-friendly timings and a temporary report path.
    """

    def _make(base_url: str, **overrides) -> AuditConfig:
        values = dict(
            base_url=base_url,
            concurrency=4,
            timeout_ms=2000,
            ready_timeout=2.0,
            ready_interval=0.05,
            report_path=report_path,
        )
        values.update(overrides)
        return AuditConfig(**values)

    return _make


@pytest_asyncio.fixture
async def serve(unused_tcp_port_factory) -> AsyncIterator[Serve]:
    """Start aiohttp apps on free ports, yield their base URLs, clean up afterwards."""
    runners: list[web.AppRunner] = []

    async def _serve(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "127.0.0.1", port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{port}"

    yield _serve
    for runner in runners:
        await runner.cleanup()


def sitemap_xml(locs: Iterable[str]) -> str:
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'
    )


def site_app(
    locs: Iterable[str],
    pages: Dict[str, Tuple[int, str]],
    assets: Optional[Dict[str, int]] = None,
    head_rejected: Iterable[str] = (),
    sitemap_status: int = 200,
) -> web.Application:
    """
    Build a small site: robots.txt, sitemap.xml listing *locs*, HTML *pages*
    (path → (status, html)) and static *assets* (path → status). Assets in
    *head_rejected* answer HEAD with 405.
    """
    app = web.Application()
    xml = sitemap_xml(locs)
    rejected = set(head_rejected)

    async def robots(_):
        return web.Response(text="User-agent: *\nAllow: /", content_type="text/plain")

    async def sitemap(_):
        return web.Response(text=xml, status=sitemap_status, content_type="application/xml")

    def page_handler(status: int, markup: str):
        async def handler(_):
            return web.Response(text=markup, status=status, content_type="text/html")

        return handler

    def asset_handler(status: int):
        async def handler(_):
            return web.Response(body=b"asset", status=status, content_type="application/octet-stream")

        return handler

    app.router.add_get("/robots.txt", robots)
    app.router.add_get("/sitemap.xml", sitemap)
    for path, (status, markup) in pages.items():
        app.router.add_get(path, page_handler(status, markup))
    for path, status in (assets or {}).items():
        app.router.add_get(path, asset_handler(status), allow_head=path not in rejected)
    return app
