# File: sitemap_audit/errors.py
"""sitemap_audit.errors: Фатальные ошибки подготовки аудита.

Only setup failures are exceptions. A broken page or asset is recorded in
the report as data and never raised.
"""
from __future__ import annotations

__all__ = [
    "AuditError",
    "BuildOutputMissingError",
    "ServerNotReadyError",
    "ServerStartError",
    "SitemapFetchError",
]


class AuditError(RuntimeError):
    """Base class for errors that abort the whole audit run."""


class BuildOutputMissingError(AuditError):
    """The build output the target server needs does not exist."""


class ServerStartError(AuditError):
    """The server command could not be spawned."""


class ServerNotReadyError(AuditError):
    """The target server did not answer the readiness probe in time."""


class SitemapFetchError(AuditError):
    """sitemap.xml could not be fetched, so no audit targets exist."""

    def __init__(self, status: int, error: str | None = None) -> None:
        self.status = status
        self.error = error
        message = f"Failed to fetch sitemap.xml: {status}"
        if error:
            message += f" ({error})"
        super().__init__(message)
