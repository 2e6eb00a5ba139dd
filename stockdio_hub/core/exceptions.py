from __future__ import annotations

from typing import Any


class SnapshotError(Exception):
    """Базовое исключение для ошибок обновления снимка котировок."""


class TransportError(SnapshotError):
    """Сетевая ошибка: недоступен хост, DNS или истёк таймаут."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ProtocolError(SnapshotError):
    """Код status.code в ответе API отсутствует или не равен 0."""

    def __init__(self, code: Any = None) -> None:
        super().__init__(
            "Status code of API response is not set or not equal 0.",
        )
        self.code = code


class EmptyResultError(SnapshotError):
    """Ответ корректен по статусу, но первая ячейка данных пуста."""

    def __init__(self, envelope: Any) -> None:
        super().__init__("Required data is empty in response.")
        self.envelope = envelope


class ConfigIncompleteError(SnapshotError):
    """Не заданы API-ключ или список тикеров: обновление ещё не включено."""
