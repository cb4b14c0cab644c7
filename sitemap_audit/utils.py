# File: sitemap_audit/utils.py
"""sitemap_audit.utils: URL helpers shared by the extractors and the orchestrator."""

from __future__ import annotations

from typing import Collection, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from sitemap_audit.logger import logger

__all__: Sequence[str] = (
    "DEFAULT_PORTS",
    "to_path",
    "parse_absolute",
    "origin",
    "same_origin",
    "remove_duplicates",
)

DEFAULT_PORTS = {"http": 80, "https": 443}

Origin = Tuple[str, str, Optional[int]]


def to_path(url: str) -> str:
    """Return path+query of *url* (``/a?b=1``); the report never shows scheme or host."""
    parts = urlsplit(url)
    path = parts.path or "/"
    return f"{path}?{parts.query}" if parts.query else path


def parse_absolute(url: str) -> Optional[str]:
    """Return path+query if *url* is a well-formed absolute URL, else ``None``."""
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None
    return to_path(url)


def origin(url: str) -> Optional[Origin]:
    """(scheme, host, port) with the default port filled in, or ``None``."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if not parts.hostname:
        return None
    return scheme, parts.hostname.lower(), port or DEFAULT_PORTS.get(scheme)


def same_origin(url: str, base: str) -> bool:
    """True when *url* shares scheme, host and port with *base*."""
    candidate = origin(url)
    return candidate is not None and candidate == origin(base)


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
