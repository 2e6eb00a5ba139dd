from __future__ import annotations

import logging
from typing import Any, Protocol

from ..logging_config import get_cron_logger


class DiagnosticLog(Protocol):
    """Приёмник диагностических записей о сбоях обновления."""

    def log(self, message: str, *values: Any) -> None:
        ...


def render_value(value: Any) -> str:
    """Строка вида '<тип>: \\t <значение>'; None и bool пишутся как 0/1."""
    type_name = type(value).__name__
    if value is None or isinstance(value, bool):
        value = int(bool(value))
    return f"{type_name}: \t {value}"


class FileDiagnosticLog:
    """Диагностический лог в файле cron-stockdio-log.txt.

    Best-effort: ошибки записи обрабатывает сам logging и не пробрасывает,
    поэтому вызов log() не может прервать обновление снимка.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or get_cron_logger()

    def log(self, message: str, *values: Any) -> None:
        lines = [message]
        lines.extend(render_value(value) for value in values)
        self._logger.error("\n".join(lines))
