# sitemap_audit/crawler/models.py
"""
Data models for the sitemap_audit crawler.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Result of one HTTP attempt; status is 0 when no response arrived."""

    url: str
    status: int
    ok: bool
    body: Optional[str] = None
    error: Optional[str] = None

    @property
    def has_html(self) -> bool:
        return self.ok and self.body is not None

    @classmethod
    def failed(cls, url: str, error: str) -> FetchOutcome:
        return cls(url=url, status=0, ok=False, error=error)


# Page results carry the HTML body for asset extraction, asset results never do.
PageCheckResult = FetchOutcome
AssetCheckResult = FetchOutcome
