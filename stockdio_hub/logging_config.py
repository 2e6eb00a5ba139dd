from __future__ import annotations

import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from .core.utils import DATE_FORMAT
from .infra.settings import SettingsLoader

CRON_SEPARATOR = "=" * 43

_actions_logger: Optional[logging.Logger] = None
_cron_logger: Optional[logging.Logger] = None


class CronLogFormatter(logging.Formatter):
    """Форматтер диагностического лога.

    Каждая запись — отдельный блок:
    строка-разделитель, время в опорном поясе, сообщение, пустая строка.
    """

    def __init__(self, tz_name: str) -> None:
        super().__init__(fmt="%(asctime)s\n%(message)s", datefmt=DATE_FORMAT)
        self._tz = ZoneInfo(tz_name)

    def formatTime(  # noqa: N802
        self,
        record: logging.LogRecord,
        datefmt: str | None = None,
    ) -> str:
        moment = datetime.fromtimestamp(record.created, self._tz)
        return moment.strftime(datefmt or DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        return f"{CRON_SEPARATOR}\n{super().format(record)}\n"


def get_actions_logger() -> logging.Logger:
    """Вернуть сервисный логгер (обновления снимка, планировщик).

    Реализует ленивую инициализацию и использует SettingsLoader
    для получения путей и настроек.
    """
    global _actions_logger

    if _actions_logger is not None:
        return _actions_logger

    settings = SettingsLoader()
    logs_dir = Path(settings.get("logs_dir"))
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_file = settings.get("actions_log_file", logs_dir / "actions.log")

    logger = logging.getLogger("stockdio_hub.actions")
    logger.setLevel(settings.get("log_level", "INFO"))

    if not logger.handlers:
        log_format = settings.get(
            "log_format",
            "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        )
        formatter = logging.Formatter(
            fmt=log_format,
            datefmt="%Y-%m-%dT%H:%M:%S",
        )

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=1_000_000,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    _actions_logger = logger
    return logger


def get_cron_logger() -> logging.Logger:
    """Вернуть логгер диагностического файла cron-stockdio-log.txt.

    Запись в файл — best-effort: если файл открыть не удалось,
    логгер получает NullHandler, а причина уходит в сервисный лог.
    """
    global _cron_logger

    if _cron_logger is not None:
        return _cron_logger

    settings = SettingsLoader()
    log_file = Path(settings.get("cron_log_file"))

    logger = logging.getLogger("stockdio_hub.cron")
    logger.setLevel(logging.INFO)
    logger.propagate = False

    if not logger.handlers:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler: logging.Handler = RotatingFileHandler(
                log_file,
                maxBytes=1_000_000,
                backupCount=5,
                encoding="utf-8",
            )
        except OSError as exc:
            get_actions_logger().warning(
                "CRON_LOG unavailable path=%s error=%s",
                log_file,
                exc,
            )
            file_handler = logging.NullHandler()
        file_handler.setFormatter(
            CronLogFormatter(settings.get("timezone", "Europe/Malta")),
        )
        logger.addHandler(file_handler)

    _cron_logger = logger
    return logger
