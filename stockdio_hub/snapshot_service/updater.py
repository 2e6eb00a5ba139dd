from __future__ import annotations

import json
from typing import Protocol

from ..core.exceptions import (
    ConfigIncompleteError,
    EmptyResultError,
    ProtocolError,
)
from ..core.models import RefreshOutcome
from ..core.utils import timestamp_in_timezone
from ..decorators import log_job
from ..infra.settings import SettingsLoader
from ..logging_config import get_actions_logger
from .api_clients import StockdioClient
from .config import ProviderConfig
from .diagnostics import DiagnosticLog, FileDiagnosticLog
from .storage import JsonSnapshotStore
from .validator import parse_snapshot_response


class RetryScheduler(Protocol):
    def schedule_retry(self, delay_seconds: int) -> None:
        ...


class SnapshotUpdater:
    """Координатор одного цикла обновления снимка котировок.

    Задачи:
    - проверка, что обновление включено (есть ключ и тикеры);
    - запрос к Stockdio с ограничением по времени;
    - проверка конверта ответа;
    - атомарная запись снимка и timestamp;
    - диагностический лог сбоев и разовый повтор после сетевой ошибки.

    Ни один сбой не трогает ранее сохранённый снимок.
    """

    def __init__(
        self,
        store: JsonSnapshotStore | None = None,
        client: StockdioClient | None = None,
        diagnostic_log: DiagnosticLog | None = None,
        retry_scheduler: RetryScheduler | None = None,
        tz_name: str | None = None,
        retry_delay_seconds: int | None = None,
    ) -> None:
        settings = SettingsLoader()
        self.store = store or JsonSnapshotStore()
        self.client = client or StockdioClient()
        self.diagnostic_log = diagnostic_log or FileDiagnosticLog()
        self.retry_scheduler = retry_scheduler
        self.tz_name = tz_name or settings.get("timezone")
        self.retry_delay_seconds = (
            retry_delay_seconds
            if retry_delay_seconds is not None
            else settings.get("retry_delay_seconds")
        )

        self._logger = get_actions_logger()

    @log_job("SNAPSHOT_REFRESH", quiet_outcomes=(RefreshOutcome.SKIPPED,))
    def run(self, config: ProviderConfig) -> RefreshOutcome:
        """Запустить один цикл обновления снимка.

        Алгоритм:
        1. Нет ключа или тикеров → тихо выходим (обновление не включено).
        2. Собираем параметры запроса и вызываем API (таймаут 10 с).
        3. Сетевая ошибка → пишем в диагностический лог, ставим
           разовый повтор через 15 минут.
        4. status.code отсутствует или не 0 → пишем код в лог.
        5. Пустая первая ячейка → пишем весь ответ в лог.
        6. Иначе сохраняем data.values и timestamp одной записью.
        7. Ошибка записи на диск → пишем в лог, прежний снимок остаётся.

        Повтор ставится только после сетевой ошибки; в остальных случаях
        следующая попытка — очередной ежедневный запуск.
        """
        logger = self._logger

        try:
            params = config.to_request_parameters()
        except ConfigIncompleteError:
            return RefreshOutcome.SKIPPED

        logger.info(
            "SNAPSHOT_UPDATE status=START symbols=%s exchange=%s",
            params.symbols,
            params.stock_exchange or "-",
        )

        result = self.client.fetch(params)
        if not result.ok:
            logger.error(
                "SNAPSHOT_UPDATE status=TRANSPORT_ERROR error=%s",
                result.error,
            )
            self.diagnostic_log.log(
                f"API request, transport error: {result.error}",
            )
            self._schedule_retry()
            return RefreshOutcome.TRANSPORT_ERROR

        try:
            values = parse_snapshot_response(result.body or "")
        except ProtocolError as exc:
            logger.error(
                "SNAPSHOT_UPDATE status=PROTOCOL_ERROR code=%s",
                exc.code,
            )
            self.diagnostic_log.log(str(exc), exc.code)
            return RefreshOutcome.PROTOCOL_ERROR
        except EmptyResultError as exc:
            logger.warning("SNAPSHOT_UPDATE status=EMPTY_RESULT")
            self.diagnostic_log.log(
                str(exc),
                json.dumps(exc.envelope, ensure_ascii=False, indent=4),
            )
            return RefreshOutcome.EMPTY_RESULT

        try:
            snapshot = self.store.save(
                values,
                timestamp_in_timezone(self.tz_name),
            )
        except OSError as exc:
            logger.error("SNAPSHOT_UPDATE status=STORE_ERROR error=%s", exc)
            self.diagnostic_log.log("Snapshot store write failed.", str(exc))
            return RefreshOutcome.STORE_ERROR

        logger.info(
            "SNAPSHOT_UPDATE status=OK rows=%d timestamp=%d",
            len(snapshot.values),
            snapshot.timestamp,
        )
        return RefreshOutcome.ACCEPTED

    def _schedule_retry(self) -> None:
        if self.retry_scheduler is None:
            self._logger.warning(
                "SNAPSHOT_UPDATE retry skipped: no scheduler attached",
            )
            return
        self.retry_scheduler.schedule_retry(self.retry_delay_seconds)
