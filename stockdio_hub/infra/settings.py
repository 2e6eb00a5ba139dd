from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

BASE_DIR = Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class _Defaults:
    """Значения по умолчанию для конфигурации проекта."""

    data_dir: Path = BASE_DIR / "data"
    logs_dir: Path = BASE_DIR / "logs"
    log_level: str = "INFO"
    log_format: str = (
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
    )
    timezone: str = "Europe/Malta"
    refresh_time: str = "03:00"
    retry_delay_seconds: int = 15 * 60
    request_timeout: int = 10
    source_url: str = (
        "https://api.stockdio.com/data/financial/prices/v1/GetStocksSnapshot"
    )


class SettingsLoader:
    """Singleton для загрузки и кеширования конфигурации проекта.

    Источник конфигурации:
    - pyproject.toml → секция [tool.stockdio_hub]
    - при отсутствии ключа используется значение по умолчанию.

    Доступные ключи:
    - data_dir: каталог файла снимка котировок
    - logs_dir: каталог логов
    - log_level / log_format: уровень и формат сервисного лога
    - timezone: опорный часовой пояс (Europe/Malta)
    - refresh_time: время ежедневного запуска, HH:MM
    - retry_delay_seconds: задержка повтора после сетевой ошибки
    - request_timeout: таймаут HTTP-запроса в секундах
    - source_url: адрес GetStocksSnapshot
    """

    _instance: "SettingsLoader | None" = None
    _initialized: bool = False

    def __new__(cls, *args: Any, **kwargs: Any) -> "SettingsLoader":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if self.__class__._initialized:
            return
        self.__class__._initialized = True

        self._defaults = _Defaults()
        self._config: Dict[str, Any] = {}
        self.reload()

    def _load_from_pyproject(self) -> Dict[str, Any]:
        """Загрузка конфигурации из pyproject.toml (секция [tool.stockdio_hub])."""
        pyproject_path = BASE_DIR / "pyproject.toml"
        if not pyproject_path.exists():
            return {}

        with pyproject_path.open("rb") as f:
            data = tomllib.load(f)

        tool_section = data.get("tool", {})
        return tool_section.get("stockdio_hub", {}) or {}

    def reload(self) -> None:
        """Полная перезагрузка конфигурации из pyproject.toml."""
        raw = self._load_from_pyproject()
        defaults = self._defaults

        cfg: Dict[str, Any] = {}

        data_dir = Path(raw.get("data_dir", defaults.data_dir))
        logs_dir = Path(raw.get("logs_dir", defaults.logs_dir))
        # Относительные пути считаем от корня репозитория.
        if not data_dir.is_absolute():
            data_dir = BASE_DIR / data_dir
        if not logs_dir.is_absolute():
            logs_dir = BASE_DIR / logs_dir

        cfg["data_dir"] = data_dir
        cfg["logs_dir"] = logs_dir
        cfg["log_level"] = str(
            raw.get("log_level", defaults.log_level),
        ).upper()
        cfg["log_format"] = str(raw.get("log_format", defaults.log_format))
        cfg["timezone"] = str(raw.get("timezone", defaults.timezone))
        cfg["refresh_time"] = str(
            raw.get("refresh_time", defaults.refresh_time),
        )
        cfg["retry_delay_seconds"] = int(
            raw.get("retry_delay_seconds", defaults.retry_delay_seconds),
        )
        cfg["request_timeout"] = int(
            raw.get("request_timeout", defaults.request_timeout),
        )
        cfg["source_url"] = str(raw.get("source_url", defaults.source_url))

        cfg["snapshot_file"] = data_dir / "stocks_snapshot.json"
        cfg["cron_log_file"] = logs_dir / "cron-stockdio-log.txt"
        cfg["actions_log_file"] = logs_dir / "actions.log"

        self._config = cfg

    def get(self, key: str, default: Any | None = None) -> Any:
        """Получить значение конфигурации по ключу.

        Если ключ не найден, возвращается default.
        """
        return self._config.get(key, default)
