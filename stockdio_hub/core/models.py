from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import TransportError

# Строки таблицы GetStocksSnapshot: список колонок в порядке API.
SnapshotValues = List[List[Any]]


class RefreshOutcome(str, Enum):
    """Итог одного запуска обновления снимка."""

    SKIPPED = "skipped"
    TRANSPORT_ERROR = "transport_error"
    PROTOCOL_ERROR = "protocol_error"
    EMPTY_RESULT = "empty_result"
    STORE_ERROR = "store_error"
    ACCEPTED = "accepted"


@dataclass(frozen=True)
class RequestParameters:
    """Параметры запроса GetStocksSnapshot.

    Собираются заново на каждый запуск и нигде не сохраняются.
    """

    app_key: str
    symbols: str
    stock_exchange: str = ""

    def as_query(self) -> Dict[str, str]:
        """Вернуть query-параметры в порядке app-key, symbols, stockExchange.

        stockExchange передаётся только если задан: без него API
        по умолчанию использует биржи США.
        """
        query = {
            "app-key": self.app_key,
            "symbols": self.symbols,
        }
        if self.stock_exchange:
            query["stockExchange"] = self.stock_exchange
        return query


@dataclass(frozen=True)
class StocksSnapshot:
    """Принятый снимок котировок и момент его получения (секунды)."""

    values: SnapshotValues
    timestamp: int


@dataclass(frozen=True)
class FetchResult:
    """Результат HTTP-запроса: либо тело ответа, либо TransportError."""

    body: Optional[str] = None
    error: Optional[TransportError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
