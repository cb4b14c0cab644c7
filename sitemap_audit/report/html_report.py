# File: sitemap_audit/report/html_report.py
"""sitemap_audit.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, PackageLoader, select_autoescape

from sitemap_audit.aggregator import AuditReport

TEMPLATE_NAME = "report.html.j2"


def render_html(
    report: AuditReport,
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
) -> Path:
    """Рендерит HTML-отчёт из шаблона и сохраняет его по указанному пути.

    Args:
        report: объект AuditReport.
        output_path: путь к итоговому HTML-файлу.
        template_dir: директория со своим ``report.html.j2``; по умолчанию
            используется шаблон из пакета.

    Returns:
        Path до сохранённого HTML-файла.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    loader = (
        FileSystemLoader(str(template_dir))
        if template_dir is not None
        else PackageLoader("sitemap_audit", "templates")
    )
    env = Environment(loader=loader, autoescape=select_autoescape(["html", "xml", "j2"]))
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "report": report,
        "base": report.base,
        "pages_checked": report.pages_checked,
        "assets_checked": report.assets_checked,
        "page_failures": report.page_failures,
        "asset_failures": report.asset_failures,
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
