from __future__ import annotations

from time import monotonic
from typing import List, Mapping

import requests

from ..core.exceptions import TransportError
from ..core.models import FetchResult, RequestParameters
from ..infra.settings import SettingsLoader
from ..logging_config import get_actions_logger

# Каждый read() возвращает хотя бы один байт, и дедлайн проверяется
# после каждой порции, даже если сервер отдаёт тело по байту.
READ_CHUNK_SIZE = 1


def fetch(
    base_url: str,
    query_params: Mapping[str, str],
    timeout_seconds: float,
) -> FetchResult:
    """Выполнить GET base_url?query_params не дольше timeout_seconds.

    timeout_seconds — общий дедлайн на весь запрос, включая чтение тела:
    таймаут requests ограничивает только каждое отдельное ожидание сокета,
    поэтому тело читается потоком и сверяется с monotonic().

    Значения параметров URL-кодируются requests. Любая сетевая ошибка
    (DNS, соединение, таймаут, дедлайн) возвращается как TransportError
    внутри FetchResult и дальше не пробрасывается. HTTP-статус не
    проверяется: решение о приёме ответа принимает только проверка конверта.
    """
    logger = get_actions_logger()

    start = monotonic()
    deadline = start + timeout_seconds
    try:
        with requests.get(
            base_url,
            params=dict(query_params),
            timeout=timeout_seconds,
            stream=True,
        ) as response:
            chunks: List[bytes] = []
            for chunk in response.iter_content(chunk_size=READ_CHUNK_SIZE):
                if monotonic() > deadline:
                    return FetchResult(
                        error=TransportError(
                            f"deadline exceeded after {timeout_seconds}s "
                            "while reading response body",
                        ),
                    )
                chunks.append(chunk)
            status_code = response.status_code
            encoding = response.encoding or "utf-8"
    except requests.exceptions.RequestException as exc:
        return FetchResult(
            error=TransportError(f"{type(exc).__name__}: {exc}"),
        )
    elapsed_ms = int((monotonic() - start) * 1000)

    logger.info(
        "SNAPSHOT_FETCH http_status=%s elapsed_ms=%d",
        status_code,
        elapsed_ms,
    )
    body = b"".join(chunks).decode(encoding, errors="replace")
    return FetchResult(body=body)


class StockdioClient:
    """Клиент Stockdio GetStocksSnapshot.

    api doc: https://services.stockdio.com/#!i_Data_GetStocksSnapshot
    """

    def __init__(
        self,
        source_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = SettingsLoader()
        self.source_url = source_url or settings.get("source_url")
        # API периодически отвечает медленно, поэтому таймаут задан явно.
        self.timeout = timeout or settings.get("request_timeout", 10)

    def fetch(self, params: RequestParameters) -> FetchResult:
        """Запросить снимок котировок для заданных параметров."""
        return fetch(self.source_url, params.as_query(), self.timeout)
