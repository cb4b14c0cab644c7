from sitemap_audit.cli import cli

cli(prog_name="sitemap-audit")
