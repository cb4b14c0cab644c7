# File: sitemap_audit/parser/sitemap_parser.py
"""sitemap_audit.parser.sitemap_parser: извлечение URL страниц из sitemap.xml.

Два варианта с одинаковым результатом:

* :func:`extract_urls`: поиск тегов ``<loc>`` регулярным выражением
  (по умолчанию; sitemap простая, namespace-префиксов не ожидается);
* :func:`parse_sitemap`: строгий разбор через lxml.

Оба сводят каждый ``<loc>`` к path+query и заново резолвят его от
проверяемого base URL, поэтому sitemap с другим каноническим хостом
проверяется на локальном сервере.
"""

from __future__ import annotations

import html
import re
from typing import Iterable, List
from urllib.parse import urljoin

from lxml import etree

from sitemap_audit.logger import logger
from sitemap_audit.utils import parse_absolute, remove_duplicates

__all__ = ["extract_urls", "parse_sitemap", "resolve_locations"]

_LOC_RE = re.compile(r"<loc>([^<]+)</loc>")


def resolve_locations(locations: Iterable[str], base_url: str) -> List[str]:
    """Превращает значения ``<loc>`` в уникальные абсолютные URL от *base_url*.

    Некорректные URL молча отбрасываются: это не цель аудита, а не дефект сайта.
    """
    paths: List[str] = []
    for loc in locations:
        path = parse_absolute(loc.strip())
        if path is None:
            logger.debug("Skipping malformed sitemap location: %r", loc)
            continue
        paths.append(path)
    base = base_url.rstrip("/") + "/"
    return [urljoin(base, path) for path in remove_duplicates(paths)]


def extract_urls(xml_text: str, base_url: str) -> List[str]:
    """Разбирает sitemap сканированием тегов ``<loc>``.

    Args:
        xml_text: содержимое sitemap.xml.
        base_url: origin, на котором идёт аудит.

    Returns:
        Список уникальных абсолютных URL.

    Пример:
    ```python
    from sitemap_audit.parser.sitemap_parser import extract_urls

    urls = extract_urls(xml, "http://127.0.0.1:3000")
    ```
    """
    locations = (html.unescape(m.group(1)) for m in _LOC_RE.finditer(xml_text))
    return resolve_locations(locations, base_url)


def parse_sitemap(xml_text: str, base_url: str) -> List[str]:
    """Строгий вариант :func:`extract_urls` на lxml (учитывает namespace и CDATA)."""
    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False)
    try:
        root = etree.fromstring(xml_text.encode("utf-8"), parser=parser)
    except etree.XMLSyntaxError as exc:
        logger.debug("Unparseable sitemap: %s", exc)
        return []
    if root is None:
        return []
    locs = root.findall(".//{*}loc")
    return resolve_locations((loc.text for loc in locs if loc.text), base_url)
