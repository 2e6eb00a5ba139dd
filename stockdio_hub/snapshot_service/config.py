from __future__ import annotations

import os
from dataclasses import dataclass

from ..core.exceptions import ConfigIncompleteError
from ..core.models import RequestParameters

# Имена переменных окружения, из которых берутся настройки провайдера.
APP_KEY_ENV = "STOCKDIO_APP_KEY"
SYMBOLS_ENV = "STOCKDIO_SYMBOLS"
STOCK_EXCHANGE_ENV = "STOCKDIO_STOCK_EXCHANGE"

SYMBOLS_SEPARATOR = ";"


@dataclass(frozen=True)
class ProviderConfig:
    """Настройки запроса к Stockdio.

    Здесь фиксируем:
    - app_key: ключ приложения Stockdio;
    - symbols: тикеры через ';' (например, 'AAPL;MSFT');
    - stock_exchange: код биржи, пустая строка — биржи США по умолчанию.

    Пустой app_key или symbols означает, что обновление ещё не включено.
    """

    app_key: str = ""
    symbols: str = ""
    stock_exchange: str = ""

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """Прочитать настройки из окружения; default="" гарантирует тип str."""
        return cls(
            app_key=os.getenv(APP_KEY_ENV, ""),
            symbols=os.getenv(SYMBOLS_ENV, ""),
            stock_exchange=os.getenv(STOCK_EXCHANGE_ENV, ""),
        )

    @property
    def trimmed_symbols(self) -> str:
        return self.symbols.strip(SYMBOLS_SEPARATOR)

    @property
    def is_complete(self) -> bool:
        return bool(self.app_key) and bool(self.trimmed_symbols)

    def to_request_parameters(self) -> RequestParameters:
        """Собрать параметры запроса или сообщить о неполной конфигурации."""
        if not self.is_complete:
            raise ConfigIncompleteError(
                "Не задан ключ Stockdio или список тикеров.",
            )
        return RequestParameters(
            app_key=self.app_key,
            symbols=self.trimmed_symbols,
            stock_exchange=self.stock_exchange,
        )
