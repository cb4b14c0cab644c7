# File: tests/test_engine.py
# End-to-end audits against in-process aiohttp sites
from __future__ import annotations

import asyncio
import json
import os
import signal

import pytest
from aiohttp import web
from sitemap_audit.crawler.models import FetchOutcome
from sitemap_audit.engine import AuditState, Engine, run_audit
from sitemap_audit.errors import ServerNotReadyError, SitemapFetchError
from sitemap_audit.parser import get_parsers

from conftest import site_app

HOME = """
<html><head><link rel="stylesheet" href="/static/site.css"></head>
<body>
  <a href="/about">About</a>
  <img src="/img/x.png">
  <img src="https://cdn.other.com/y.png">
  <img srcset="/img/x.png 1x, /img/x@2x.png 2x">
</body></html>
"""

ABOUT = """
<html><body>
  <script src="/static/app.js"></script>
  <img src="/img/x.png">
  <a href="mailto:hello@example.com">Mail</a>
</body></html>
"""

MISSING = '<html><body><img src="/img/ghost.png"></body></html>'

ASSETS = {
    "/static/site.css": 200,
    "/img/x.png": 200,
    "/img/x@2x.png": 200,
    "/static/app.js": 200,
    "/img/ghost.png": 200,
}

#: same-origin assets referenced by HOME and ABOUT, after de-duplication
EXPECTED_ASSETS = 5


class RecordingServer:
    """TargetServer test double that records lifecycle calls."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def start(self) -> None:
        self.calls.append("start")

    async def stop(self) -> None:
        self.calls.append("stop")

    def kill(self) -> None:
        self.calls.append("kill")

    @property
    def returncode(self):
        return None


def healthy_site(extra_locs=(), extra_pages=None, assets=None, **kwargs) -> web.Application:
    pages = {"/": (200, HOME), "/about": (200, ABOUT)}
    pages.update(extra_pages or {})
    locs = ["https://example.com/", "https://example.com/about", *extra_locs]
    return site_app(locs, pages, assets or ASSETS, **kwargs)


@pytest.mark.asyncio()
async def test_clean_site(serve, make_config, report_path):
    base = await serve(healthy_site(head_rejected=["/static/app.js"]))
    engine = Engine(make_config(base), RecordingServer())
    report = await engine.run()

    assert report.clean
    assert report.base == base
    assert report.pages_checked == 2
    assert report.assets_checked == EXPECTED_ASSETS
    assert report.page_failures == ()
    assert report.asset_failures == ()
    assert engine.state is AuditState.DONE
    assert engine.server.calls == ["start", "stop"]

    saved = report_path.read_text(encoding="utf-8")
    assert saved.endswith("}\n")
    assert json.loads(saved) == {
        "base": base,
        "pagesChecked": 2,
        "assetsChecked": EXPECTED_ASSETS,
        "pageFailures": [],
        "assetFailures": [],
    }


@pytest.mark.asyncio()
async def test_missing_page_is_reported_and_not_scanned(serve, make_config, report_path):
    site = healthy_site(
        extra_locs=["https://example.com/missing"],
        extra_pages={"/missing": (404, MISSING)},
    )
    base = await serve(site)
    report = await run_audit(make_config(base), RecordingServer())

    assert not report.clean
    assert report.pages_checked == 3
    assert report.page_failures == ({"path": "/missing", "status": 404},)
    assert report.assets_checked == EXPECTED_ASSETS
    assert report.asset_failures == ()

    data = json.loads(report_path.read_text(encoding="utf-8"))
    assert data["pageFailures"] == [{"path": "/missing", "status": 404}]


@pytest.mark.asyncio()
async def test_broken_assets_are_reported(serve, make_config):
    assets = dict(ASSETS)
    assets["/img/x@2x.png"] = 404
    assets["/static/site.css"] = 500
    base = await serve(healthy_site(assets=assets))
    report = await run_audit(make_config(base), RecordingServer())

    assert report.page_failures == ()
    assert sorted(report.asset_failures, key=lambda f: f["path"]) == [
        {"path": "/img/x@2x.png", "status": 404},
        {"path": "/static/site.css", "status": 500},
    ]
    assert report.summary() == "Audit found 0 page failures and 2 asset failures."


@pytest.mark.asyncio()
async def test_sitemap_duplicates_and_sample_limit(serve, make_config):
    locs = ["https://example.com/about", "https://other.example/about?x=1", "https://example.com/"]
    site = site_app(
        ["https://example.com/about", *locs],
        {"/": (200, HOME), "/about": (200, ABOUT)},
        ASSETS,
    )
    base = await serve(site)

    full = await run_audit(make_config(base), RecordingServer())
    assert full.pages_checked == 3

    sampled = await run_audit(make_config(base, sample_limit=1), RecordingServer())
    assert sampled.pages_checked == 1
    # /about only references app.js and x.png
    assert sampled.assets_checked == 2


@pytest.mark.asyncio()
async def test_page_timeout_is_a_failure(serve, make_config):
    async def slow(_):
        await asyncio.sleep(2)
        return web.Response(text="<p>late</p>", content_type="text/html")

    site = healthy_site(extra_locs=["https://example.com/slow"])
    site.router.add_get("/slow", slow)
    base = await serve(site)
    report = await run_audit(make_config(base, timeout_ms=300), RecordingServer())

    assert report.pages_checked == 3
    assert report.page_failures == ({"path": "/slow", "status": 0, "error": "timeout"},)
    assert report.assets_checked == EXPECTED_ASSETS


@pytest.mark.asyncio()
@pytest.mark.parametrize("status", [404, 500])
async def test_sitemap_failure_is_fatal(serve, make_config, report_path, status):
    base = await serve(healthy_site(sitemap_status=status))
    server = RecordingServer()
    engine = Engine(make_config(base), server)

    with pytest.raises(SitemapFetchError, match=f"sitemap.xml: {status}"):
        await engine.run()

    assert engine.state is AuditState.FAILED
    assert server.calls == ["start", "stop"]
    assert not report_path.exists()


@pytest.mark.asyncio()
async def test_server_never_ready_is_fatal(make_config, report_path, unused_tcp_port):
    server = RecordingServer()
    config = make_config(f"http://127.0.0.1:{unused_tcp_port}", ready_timeout=0.3)
    engine = Engine(config, server)

    with pytest.raises(ServerNotReadyError):
        await engine.run()

    assert engine.state is AuditState.FAILED
    assert server.calls == ["start", "stop"]
    assert not report_path.exists()


@pytest.mark.asyncio()
async def test_strict_parsers_give_same_counts(serve, make_config):
    base = await serve(healthy_site())
    report = await Engine(
        make_config(base, parser="strict"), RecordingServer()
    ).run()

    assert report.clean
    assert report.pages_checked == 2
    assert report.assets_checked == EXPECTED_ASSETS


@pytest.mark.asyncio()
async def test_html_report_is_written(serve, make_config, tmp_path):
    base = await serve(
        healthy_site(extra_locs=["https://example.com/gone"])
    )
    html_path = tmp_path / "reports" / "audit.html"
    await run_audit(make_config(base, html_report_path=html_path), RecordingServer())

    html = html_path.read_text(encoding="utf-8")
    assert "/gone" in html
    assert "Page failures (1)" in html


def test_collect_assets_only_uses_ok_html_pages(make_config):
    base = "http://127.0.0.1:3000"
    engine = Engine(make_config(base), RecordingServer(), get_parsers("scan"))
    pages = [
        FetchOutcome(f"{base}/", 200, True, body='<img src="/a.png"><img src="https://cdn.x/b.png">'),
        FetchOutcome(f"{base}/dup", 200, True, body='<img src="/a.png"><script src="/c.js"></script>'),
        FetchOutcome(f"{base}/404", 404, False, body='<img src="/ghost.png">'),
        FetchOutcome(f"{base}/file.pdf", 200, True),
        FetchOutcome.failed(f"{base}/down", "timeout"),
    ]
    assert engine.collect_assets(pages) == [f"{base}/a.png", f"{base}/c.js"]


@pytest.mark.asyncio()
async def test_sigterm_kills_server_and_cancels_run(serve, make_config, report_path):
    async def stuck(_):
        await asyncio.sleep(5)
        return web.Response(text="<p>late</p>", content_type="text/html")

    site = healthy_site(extra_locs=["https://example.com/stuck"])
    site.router.add_get("/stuck", stuck)
    base = await serve(site)
    server = RecordingServer()
    engine = Engine(make_config(base, timeout_ms=10_000), server, handle_signals=True)

    asyncio.get_running_loop().call_later(0.3, os.kill, os.getpid(), signal.SIGTERM)
    with pytest.raises(asyncio.CancelledError):
        await engine.run()

    assert server.calls == ["start", "kill", "stop"]
    assert engine.state is AuditState.FAILED
    assert engine.report is None
    assert not report_path.exists()
