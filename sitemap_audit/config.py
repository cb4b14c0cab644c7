# === FILE: sitemap_audit/config.py ===
"""
Модуль для загрузки и валидации конфигурации аудита sitemap_audit.
Используется Pydantic для описания схемы и проверки данных.

Источники настроек (по возрастанию приоритета): значения по умолчанию,
файл YAML/JSON, переменные окружения ``AUDIT_*``, опции командной строки.
Только этот модуль читает окружение; остальные компоненты получают
готовый :class:`AuditConfig` параметром.
"""
from __future__ import annotations

import errno
import json
import os
import shlex
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union
from urllib.parse import urljoin

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
)

__all__ = ["AuditConfig", "ENV_VARS", "config_from_env", "load_config"]


class AuditConfig(BaseModel):
    """Конфигурация одного запуска аудита."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: HttpUrl = Field(
        "http://127.0.0.1:3000", validate_default=True, description="Origin для проверки."
    )
    concurrency: int = Field(20, description="Число воркеров в обоих проходах.")
    timeout_ms: int = Field(15000, gt=0, description="Таймаут одного запроса (мс).")
    sample_limit: Optional[int] = Field(None, description="Ограничение числа URL из sitemap.")

    ready_path: str = Field("/robots.txt", description="Путь для проверки готовности сервера.")
    ready_timeout: float = Field(60.0, gt=0, description="Сколько ждать готовности (секунд).")
    ready_interval: float = Field(0.5, gt=0, description="Пауза между попытками (секунд).")
    sitemap_path: str = Field("/sitemap.xml", description="Путь к sitemap.xml.")

    report_path: Path = Field(Path("reports/audit-sitemap.json"), description="JSON-отчёт.")
    html_report_path: Optional[Path] = Field(None, description="Необязательный HTML-отчёт.")

    user_agent: str = Field("sitemap-audit/1.0", min_length=1, description="Заголовок User-Agent.")
    server_command: Optional[Tuple[str, ...]] = Field(
        None, description="Команда запуска проверяемого сервера."
    )
    build_dir: Optional[Path] = Field(None, description="Каталог сборки, обязательный для старта.")
    parser: Literal["scan", "strict"] = Field("scan", description="Режим извлечения URL.")

    @field_validator("concurrency", mode="after")
    @classmethod
    def _clamp_concurrency(cls, v: int) -> int:
        return max(1, v)

    @field_validator("sample_limit", mode="after")
    @classmethod
    def _unbounded_sample_limit(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            return None
        return v

    @field_validator("ready_path", "sitemap_path", mode="before")
    @classmethod
    def _leading_slash(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.startswith("/"):
            return "/" + v
        return v

    @field_validator("server_command", mode="before")
    @classmethod
    def _split_command(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = shlex.split(v)
        if isinstance(v, (list, tuple)) and not v:
            return None
        return v

    @property
    def base(self) -> str:
        """Base URL without the trailing slash pydantic adds to bare origins."""
        return str(self.base_url).rstrip("/")

    @property
    def timeout(self) -> float:
        """Per-request timeout in seconds."""
        return self.timeout_ms / 1000

    @property
    def sitemap_url(self) -> str:
        return urljoin(self.base + "/", self.sitemap_path.lstrip("/"))

    @property
    def ready_url(self) -> str:
        return urljoin(self.base + "/", self.ready_path.lstrip("/"))


#: Environment variable → config field.
ENV_VARS: Dict[str, str] = {
    "AUDIT_BASE_URL": "base_url",
    "AUDIT_CONCURRENCY": "concurrency",
    "AUDIT_TIMEOUT_MS": "timeout_ms",
    "AUDIT_SAMPLE_LIMIT": "sample_limit",
    "AUDIT_READY_PATH": "ready_path",
    "AUDIT_READY_TIMEOUT": "ready_timeout",
    "AUDIT_SITEMAP_PATH": "sitemap_path",
    "AUDIT_REPORT_PATH": "report_path",
    "AUDIT_USER_AGENT": "user_agent",
    "AUDIT_SERVER_CMD": "server_command",
    "AUDIT_BUILD_DIR": "build_dir",
    "AUDIT_PARSER": "parser",
}


def config_from_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Собирает поля конфига из переменных окружения. Пустые значения игнорируются."""
    data: dict[str, Any] = {}
    for var, field_name in ENV_VARS.items():
        value = env.get(var, "").strip()
        if value:
            data[field_name] = value
    return data


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def _read_file(path: Union[str, Path]) -> dict[str, Any]:
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")


def load_config(
    path: Union[str, Path, None] = None,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> AuditConfig:
    """
    Собирает и проверяет AuditConfig.

    ``path``: необязательный YAML/JSON файл; ``env``: окружение
    (по умолчанию ``os.environ``); ``overrides``: значения из CLI,
    ``None`` в них означает «не задано».
    Ошибки схемы пробрасываются как ``pydantic.ValidationError``.
    """
    data: dict[str, Any] = {}
    if path is not None:
        data.update(_read_file(path))
    data.update(config_from_env(os.environ if env is None else env))
    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return AuditConfig(**data)
