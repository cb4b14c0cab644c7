# File: sitemap_audit/parser/__init__.py
"""sitemap_audit.parser: выбор реализации извлечения URL из sitemap и HTML."""

from __future__ import annotations

from typing import Callable, List, NamedTuple

from sitemap_audit.parser.html_parser import extract_assets, parse_assets
from sitemap_audit.parser.sitemap_parser import extract_urls, parse_sitemap

__all__ = ["Parsers", "get_parsers", "extract_urls", "extract_assets"]

Extractor = Callable[[str, str], List[str]]


class Parsers(NamedTuple):
    """Pair of extractors the orchestrator depends on."""

    extract_urls: Extractor
    extract_assets: Extractor


_MODES = {
    "scan": Parsers(extract_urls, extract_assets),
    "strict": Parsers(parse_sitemap, parse_assets),
}


def get_parsers(mode: str = "scan") -> Parsers:
    """``scan``: регулярные выражения (по умолчанию), ``strict``: lxml/BeautifulSoup."""
    try:
        return _MODES[mode]
    except KeyError:
        raise ValueError(f"Неизвестный режим парсера: {mode}") from None
