# === FILE: sitemap_audit/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска аудита sitemap через командную строку.

Команды:
  run       Дождаться сервера, проверить страницы из sitemap и их ресурсы
  config    Показать итоговую конфигурацию

Общие опции:
  --config PATH       Необязательный YAML/JSON конфиг (поверх него AUDIT_* из окружения)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Коды выхода команды run:
  0  ошибок нет, одна строка итога в stdout
  1  найдены неработающие страницы или ресурсы, итог и путь к отчёту в stderr
  2  фатальная ошибка подготовки (нет сборки, сервер не поднялся, нет sitemap.xml)

Пример:
  sitemap-audit run --serve "npm run start -- -p 3000" --build-dir .next --limit 50
"""
import asyncio
import os
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from sitemap_audit import __version__
from sitemap_audit.config import load_config
from sitemap_audit.engine import run_audit
from sitemap_audit.errors import AuditError
from sitemap_audit.logger import init_logging

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])

EXIT_CLEAN = 0
EXIT_FAILURES = 1
EXIT_FATAL = 2


def print_error(message: str, code: int = EXIT_FATAL):
    click.secho(message, fg='red', err=True)
    sys.exit(code)


def _load(ctx, overrides=None):
    try:
        return load_config(ctx.obj['config_path'], env=os.environ, overrides=overrides)
    except (ValidationError, OSError, ValueError, TypeError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='sitemap-audit, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Аудит sitemap.xml: доступность страниц и их ресурсов."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('run', context_settings=CONTEXT_SETTINGS)
@click.option('--base-url', '-u', default=None, help='Origin для проверки (AUDIT_BASE_URL).')
@click.option('--concurrency', '-n', type=int, default=None, help='Число воркеров (AUDIT_CONCURRENCY).')
@click.option('--timeout-ms', type=int, default=None, help='Таймаут запроса, мс (AUDIT_TIMEOUT_MS).')
@click.option(
    '--limit', '-l', 'sample_limit',
    type=int, default=None,
    help='Проверить только первые N URL из sitemap (AUDIT_SAMPLE_LIMIT).'
)
@click.option(
    '--report', '-r', 'report_path',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь JSON-отчёта (по умолчанию reports/audit-sitemap.json).'
)
@click.option(
    '--html', 'html_report_path',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Дополнительно сохранить HTML-отчёт.'
)
@click.option('--serve', 'server_command', default=None, help='Команда запуска сервера сайта.')
@click.option(
    '--build-dir', 'build_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Каталог сборки, который должен существовать до запуска сервера.'
)
@click.option('--strict', is_flag=True, help='Разбирать sitemap через lxml и HTML через BeautifulSoup.')
@click.pass_context
def run(ctx, base_url, concurrency, timeout_ms, sample_limit, report_path,
        html_report_path, server_command, build_dir, strict):
    """Запустить аудит и записать отчёт."""
    cfg = _load(ctx, {
        'base_url': base_url,
        'concurrency': concurrency,
        'timeout_ms': timeout_ms,
        'sample_limit': sample_limit,
        'report_path': report_path,
        'html_report_path': html_report_path,
        'server_command': server_command,
        'build_dir': build_dir,
        'parser': 'strict' if strict else None,
    })
    try:
        report = asyncio.run(run_audit(cfg, handle_signals=True))
    except AuditError as e:
        print_error(str(e))
    except (asyncio.CancelledError, KeyboardInterrupt):
        print_error('Аудит прерван', code=130)

    if report.clean:
        click.echo(f'{report.summary()} Report: {cfg.report_path}')
        ctx.exit(EXIT_CLEAN)
    click.echo(report.summary(), err=True)
    click.echo(f'Report: {cfg.report_path}', err=True)
    ctx.exit(EXIT_FAILURES)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = _load(ctx)
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
