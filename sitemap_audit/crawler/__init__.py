"""sitemap_audit.crawler: fetching, readiness probing and the worker pool."""
