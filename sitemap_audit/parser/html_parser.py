# === FILE: sitemap_audit/parser/html_parser.py ===
"""Asset discovery in rendered HTML pages.

The default :func:`extract_assets` scans raw markup for ``src=``, ``href=``
and ``srcset=`` attribute values with regular expressions. This is
best-effort discovery, not a DOM: it tolerates broken markup and may miss
exotic constructs (unquoted values, spaces around ``=``).

:func:`parse_assets` returns the same kind of result from a BeautifulSoup
tree for callers that prefer a structural parse.

Both return absolute, de-duplicated URLs in first-seen order. Neither
filters by origin; the orchestrator keeps only same-origin assets.
"""
from __future__ import annotations

import html
import re
from collections.abc import Iterable, Sequence
from typing import Optional
from urllib.parse import urldefrag, urljoin, urlsplit

from bs4 import BeautifulSoup

from sitemap_audit.utils import remove_duplicates

__all__: Sequence[str] = ("extract_assets", "parse_assets", "srcset_candidates")

_ATTR_RE = re.compile(r"""\s(?:src|href)=["']([^"']*)["']""", re.IGNORECASE)
_SRCSET_RE = re.compile(r"""\ssrcset=["']([^"']+)["']""", re.IGNORECASE)

#: Values that are not fetchable over HTTP.
_SKIP_SCHEMES = ("mailto:", "tel:", "javascript:", "data:")


def srcset_candidates(srcset: str) -> list[str]:
    """URL part of each ``url descriptor`` candidate in a srcset value."""
    urls: list[str] = []
    for candidate in srcset.split(","):
        parts = candidate.strip().split()
        if parts:
            urls.append(parts[0])
    return urls


def _resolve(raw: str, page_url: str) -> Optional[str]:
    value = raw.strip()
    if not value or value.lower().startswith(_SKIP_SCHEMES):
        return None
    try:
        value, _fragment = urldefrag(value)
        if not value:
            return None
        absolute = urljoin(page_url, value)
        urlsplit(absolute).port  # raises ValueError on a malformed port
    except ValueError:
        return None
    return absolute


def _resolve_all(values: Iterable[str], page_url: str) -> list[str]:
    resolved = (_resolve(v, page_url) for v in values)
    return remove_duplicates([u for u in resolved if u is not None])


# ---------------------------------------------------------------------------
# Public functions
# ---------------------------------------------------------------------------


def extract_assets(markup: str, page_url: str) -> list[str]:
    """Return absolute asset URLs referenced by *markup* (attribute scan)."""
    values = [html.unescape(m.group(1)) for m in _ATTR_RE.finditer(markup)]
    for m in _SRCSET_RE.finditer(markup):
        values.extend(srcset_candidates(html.unescape(m.group(1))))
    return _resolve_all(values, page_url)


def parse_assets(markup: str, page_url: str) -> list[str]:
    """Same contract as :func:`extract_assets`, backed by BeautifulSoup."""
    soup = BeautifulSoup(markup, "html.parser")
    values: list[str] = []
    for tag in soup.find_all(True):
        for attr in ("src", "href"):
            value = tag.get(attr)
            if isinstance(value, str):
                values.append(value)
        srcset = tag.get("srcset")
        if isinstance(srcset, str):
            values.extend(srcset_candidates(srcset))
    return _resolve_all(values, page_url)
