# File: sitemap_audit/aggregator.py
"""sitemap_audit.aggregator: Модуль сборки итогового отчёта аудита."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Sequence, Tuple, TypedDict

from sitemap_audit.crawler.models import FetchOutcome
from sitemap_audit.utils import to_path

__all__ = ["FailureInfo", "AuditReport", "failures_of", "build_report"]


class FailureInfo(TypedDict, total=False):
    """Неудачная проверка страницы или ресурса; ``error`` есть только при сбое транспорта."""

    path: str
    status: int
    error: str


@dataclass(frozen=True, slots=True)
class AuditReport:
    """Результат одного запуска аудита. Создаётся один раз и не изменяется."""

    base: str
    pages_checked: int
    assets_checked: int
    page_failures: Tuple[FailureInfo, ...] = ()
    asset_failures: Tuple[FailureInfo, ...] = ()

    @property
    def failure_count(self) -> int:
        return len(self.page_failures) + len(self.asset_failures)

    @property
    def clean(self) -> bool:
        return self.failure_count == 0

    def to_dict(self) -> Dict[str, Any]:
        """Словарь с ключами в формате JSON-отчёта."""
        return {
            "base": self.base,
            "pagesChecked": self.pages_checked,
            "assetsChecked": self.assets_checked,
            "pageFailures": [dict(f) for f in self.page_failures],
            "assetFailures": [dict(f) for f in self.asset_failures],
        }

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление отчёта."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)

    def summary(self) -> str:
        if self.clean:
            return f"Audit OK: {self.pages_checked} pages, {self.assets_checked} assets checked."
        return (
            f"Audit found {len(self.page_failures)} page failures "
            f"and {len(self.asset_failures)} asset failures."
        )


def failures_of(results: Iterable[FetchOutcome]) -> Tuple[FailureInfo, ...]:
    """Отбирает неудачные результаты и приводит их к виду отчёта."""
    failures = []
    for result in results:
        if result.ok:
            continue
        info: FailureInfo = {"path": to_path(result.url), "status": result.status}
        if result.error is not None:
            info["error"] = result.error
        failures.append(info)
    return tuple(failures)


def build_report(
    base: str,
    pages: Sequence[str],
    page_results: Iterable[FetchOutcome],
    assets: Sequence[str],
    asset_results: Iterable[FetchOutcome],
) -> AuditReport:
    """Собирает AuditReport из списков целей и результатов обоих проходов."""
    return AuditReport(
        base=base,
        pages_checked=len(pages),
        assets_checked=len(assets),
        page_failures=failures_of(page_results),
        asset_failures=failures_of(asset_results),
    )
