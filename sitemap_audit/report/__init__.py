# File: sitemap_audit/report/__init__.py
"""sitemap_audit.report: запись отчётов аудита (JSON и HTML), используется Engine и CLI."""

from __future__ import annotations

from sitemap_audit.report.html_report import render_html
from sitemap_audit.report.json_report import render_json

__all__ = ["render_json", "render_html"]
