from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.job import Job
from apscheduler.jobstores.base import ConflictingIdError, JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..core.models import RefreshOutcome
from ..core.utils import (
    format_timestamp,
    next_daily_occurrence,
    now_in_timezone,
    parse_wall_clock,
)
from ..infra.settings import SettingsLoader
from ..logging_config import get_actions_logger
from .config import ProviderConfig
from .updater import SnapshotUpdater

# Идентичность задачи: (имя, аргумент). Ежедневная задача и разовый
# повтор вызывают один и тот же обработчик с одним и тем же аргументом.
JOB_NAME = "cron_hook_stockdio_snapshot"
JOB_ARG = "cron_id_stockdio_snapshot"
RETRY_SUFFIX = ".retry"
RECURRENCE = "daily"


def create_background_scheduler(tz_name: str) -> BackgroundScheduler:
    """Создать фоновый планировщик с одним исполнителем."""
    jobstores = {
        "default": MemoryJobStore(),
    }
    executors = {
        "default": ThreadPoolExecutor(max_workers=1),
    }
    job_defaults = {
        "coalesce": True,  # пропущенные запуски схлопываются в один
        "max_instances": 1,
        "misfire_grace_time": 60 * 60,
    }
    return BackgroundScheduler(
        jobstores=jobstores,
        executors=executors,
        job_defaults=job_defaults,
        timezone=ZoneInfo(tz_name),
    )


class RefreshScheduler:
    """Расписание обновления снимка котировок.

    - ежедневный запуск в refresh_time (по умолчанию 03:00) опорного пояса;
    - разовый повтор через retry_delay_seconds после сетевой ошибки;
    - диагностика ближайшего запуска и сброс расписания.

    Конструктор ничего не регистрирует: хост-процесс вызывает
    start() и ensure_scheduled() явно.
    """

    def __init__(
        self,
        config_provider: Callable[[], ProviderConfig] = ProviderConfig.from_env,
        updater: SnapshotUpdater | None = None,
        scheduler: BaseScheduler | None = None,
        tz_name: str | None = None,
        refresh_time: str | None = None,
        job_name: str = JOB_NAME,
        job_arg: str = JOB_ARG,
    ) -> None:
        settings = SettingsLoader()
        self.tz_name = tz_name or settings.get("timezone")
        self.refresh_time = parse_wall_clock(
            refresh_time or settings.get("refresh_time"),
        )
        self.job_name = job_name
        self.job_arg = job_arg
        self.config_provider = config_provider

        self._scheduler = scheduler or create_background_scheduler(self.tz_name)
        self.updater = updater or SnapshotUpdater(
            retry_scheduler=self,
            tz_name=self.tz_name,
        )

        self._lock = threading.Lock()
        self._logger = get_actions_logger()

    @property
    def job_id(self) -> str:
        return self.job_name

    @property
    def retry_job_id(self) -> str:
        return f"{self.job_name}{RETRY_SUFFIX}"

    @property
    def scheduler(self) -> BaseScheduler:
        return self._scheduler

    # ---------- Жизненный цикл ----------

    def start(self, paused: bool = False) -> None:
        if not self._scheduler.running:
            self._scheduler.start(paused=paused)
            self._logger.info("SCHEDULER started timezone=%s", self.tz_name)

    def shutdown(self, wait: bool = True) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            self._logger.info("SCHEDULER shutdown complete")

    # ---------- Регистрация ----------

    def ensure_scheduled(self) -> bool:
        """Зарегистрировать ежедневную задачу, если её ещё нет.

        Возвращает True, если задача была зарегистрирована сейчас,
        и False, если она уже существовала.
        """
        with self._lock:
            if self._scheduler.get_job(self.job_id) is not None:
                return False

            now = now_in_timezone(self.tz_name)
            anchor = next_daily_occurrence(now, self.refresh_time)
            trigger = IntervalTrigger(
                days=1,
                start_date=anchor,
                timezone=ZoneInfo(self.tz_name),
            )
            try:
                self._scheduler.add_job(
                    self.on_tick,
                    trigger=trigger,
                    args=[self.job_arg],
                    id=self.job_id,
                    name=f"{self.job_name} ({RECURRENCE})",
                    next_run_time=anchor,
                    replace_existing=False,
                )
            except ConflictingIdError:
                return False

        self._logger.info(
            "SCHEDULER registered job=%s first_run=%s schedule=%s",
            self.job_id,
            format_timestamp(anchor, self.tz_name),
            RECURRENCE,
        )
        return True

    def schedule_retry(self, delay_seconds: int) -> None:
        """Поставить разовый запуск через delay_seconds.

        Ежедневная задача не затрагивается; ожидающий повтор,
        если он уже есть, переносится на новое время.
        """
        # Задержка отсчитывается в UTC: переход на летнее время её не меняет.
        run_at = (
            datetime.now(timezone.utc) + timedelta(seconds=delay_seconds)
        ).astimezone(ZoneInfo(self.tz_name))
        self._scheduler.add_job(
            self.on_tick,
            trigger=DateTrigger(run_date=run_at, timezone=ZoneInfo(self.tz_name)),
            args=[self.job_arg],
            id=self.retry_job_id,
            name=f"{self.job_name} (retry)",
            next_run_time=run_at,
            replace_existing=True,
        )
        self._logger.info(
            "SCHEDULER retry job=%s run_at=%s",
            self.retry_job_id,
            format_timestamp(run_at, self.tz_name),
        )

    def cancel(self) -> None:
        """Снять ежедневную задачу (административный сброс)."""
        with self._lock:
            try:
                self._scheduler.remove_job(self.job_id)
            except JobLookupError:
                return
        self._logger.info("SCHEDULER unscheduled job=%s", self.job_id)

    def reschedule(self) -> bool:
        """Снять задачу и зарегистрировать её заново от текущего момента.

        Нужен после смены refresh_time.
        """
        self.cancel()
        return self.ensure_scheduled()

    # ---------- Выполнение ----------

    def on_tick(self, job_arg: str) -> Optional[RefreshOutcome]:
        """Обработчик срабатывания задачи.

        Чужой аргумент означает срабатывание другой задачи на том же
        канале: такое срабатывание игнорируется.
        """
        if job_arg != self.job_arg:
            self._logger.warning(
                "SCHEDULER tick ignored job_arg=%s expected=%s",
                job_arg,
                self.job_arg,
            )
            return None
        return self.updater.run(self.config_provider())

    # ---------- Диагностика ----------

    def _next_run_time(self, job_id: str) -> Optional[datetime]:
        job: Job | None = self._scheduler.get_job(job_id)
        if job is None:
            return None
        return getattr(job, "next_run_time", None)

    def status(self) -> str:
        """Текстовый отчёт о ближайшем запуске. Ничего не меняет."""
        next_run = self._next_run_time(self.job_id)
        if next_run is None:
            return "Cron event is not scheduled."

        lines: List[str] = [
            "Cron event is scheduled for: "
            f"{format_timestamp(next_run, self.tz_name)}",
            f"Cron event schedule: {RECURRENCE}",
        ]
        retry_at = self._next_run_time(self.retry_job_id)
        if retry_at is not None:
            lines.append(
                "Retry is scheduled for: "
                f"{format_timestamp(retry_at, self.tz_name)}",
            )
        return "\n".join(lines)

    def check_cron_event(self) -> str:
        return self.status()
