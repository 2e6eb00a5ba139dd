from __future__ import annotations

import shlex
from typing import List, Optional

from ..core.models import RefreshOutcome
from ..core.utils import format_timestamp
from ..snapshot_service.config import ProviderConfig
from ..snapshot_service.scheduler import RefreshScheduler
from ..snapshot_service.storage import JsonSnapshotStore

_service: Optional[RefreshScheduler] = None

_OUTCOME_MESSAGES = {
    RefreshOutcome.ACCEPTED: "Снимок обновлён.",
    RefreshOutcome.SKIPPED: (
        "Обновление не включено: задайте STOCKDIO_APP_KEY и STOCKDIO_SYMBOLS."
    ),
    RefreshOutcome.TRANSPORT_ERROR: (
        "API недоступен. Повтор запланирован, прежний снимок сохранён."
    ),
    RefreshOutcome.PROTOCOL_ERROR: (
        "API вернул ошибку в status.code. Прежний снимок сохранён."
    ),
    RefreshOutcome.EMPTY_RESULT: (
        "API вернул пустые данные. Прежний снимок сохранён."
    ),
    RefreshOutcome.STORE_ERROR: (
        "Не удалось записать снимок на диск. Прежний снимок сохранён."
    ),
}


def _get_service() -> RefreshScheduler:
    global _service
    if _service is None:
        _service = RefreshScheduler()
    return _service


def _parse_show_snapshot_args(args: List[str]) -> int | None:
    """Разобрать аргументы команды show-snapshot.

    Поддерживается флаг:
    --rows <N>
    """
    rows: int | None = None

    idx = 0
    while idx < len(args):
        token = args[idx]
        if token == "--rows":
            if idx + 1 >= len(args):
                raise ValueError(
                    "Флаг --rows требует значения: положительное целое число.",
                )
            if rows is not None:
                raise ValueError(
                    "Параметр --rows нельзя указывать несколько раз.",
                )
            try:
                value = int(args[idx + 1])
            except ValueError as exc:
                raise ValueError(
                    "Значение --rows должно быть целым числом.",
                ) from exc
            if value <= 0:
                raise ValueError("Значение --rows должно быть положительным.")
            rows = value
            idx += 2
        else:
            raise ValueError(
                f"Неизвестный аргумент для show-snapshot: {token}",
            )

    return rows


def _handle_update_snapshot(args: List[str]) -> None:
    """Обработчик команды update-snapshot."""
    if args:
        print("Команда update-snapshot не принимает аргументов.")
        return

    print("Запуск обновления снимка...")
    service = _get_service()
    outcome = service.updater.run(ProviderConfig.from_env())
    print(_OUTCOME_MESSAGES[outcome])
    if outcome not in (RefreshOutcome.ACCEPTED, RefreshOutcome.SKIPPED):
        print("Подробности смотрите в logs/cron-stockdio-log.txt.")


def _handle_show_snapshot(args: List[str]) -> None:
    """Обработчик команды show-snapshot."""
    try:
        rows = _parse_show_snapshot_args(args)
    except ValueError as exc:
        print(str(exc))
        return

    service = _get_service()
    snapshot = JsonSnapshotStore().load()
    if snapshot is None:
        print(
            "Снимок котировок ещё не сохранён. "
            "Выполните 'update-snapshot', чтобы загрузить данные.",
        )
        return

    updated = format_timestamp(snapshot.timestamp, service.tz_name)
    print(f"Snapshot from cache (updated at {updated}, {service.tz_name}):")

    values = snapshot.values if rows is None else snapshot.values[:rows]
    for row in values:
        if isinstance(row, list):
            print("- " + " | ".join(str(cell) for cell in row))
        else:
            print(f"- {row}")


def _handle_check_cron(args: List[str]) -> None:
    """Обработчик команды check-cron."""
    print(_get_service().check_cron_event())


def _handle_reset_cron(args: List[str]) -> None:
    """Обработчик команды reset-cron: перерегистрация ежедневной задачи."""
    service = _get_service()
    service.reschedule()
    print(service.check_cron_event())


def _dispatch_command(command: str, args: List[str]) -> None:
    """Диспетчер команд CLI."""
    if command == "update-snapshot":
        _handle_update_snapshot(args)
    elif command == "show-snapshot":
        _handle_show_snapshot(args)
    elif command == "check-cron":
        _handle_check_cron(args)
    elif command == "reset-cron":
        _handle_reset_cron(args)
    elif command in {"exit", "quit"}:
        print("Выход из Stockdio Hub.")
        raise SystemExit
    else:
        print(
            "Неизвестная команда "
            f"'{command}'. Попробуйте: update-snapshot, show-snapshot, "
            "check-cron, reset-cron.",
        )


def run_cli() -> None:
    """Основной цикл CLI.

    Планировщик работает в фоне, пока открыт CLI.
    """
    service = _get_service()
    service.start()
    service.ensure_scheduled()

    print("Stockdio Hub CLI. Введите команду или 'exit' для выхода.")
    try:
        while True:
            try:
                raw = input("> ").strip()
            except EOFError:
                print()
                break

            if not raw:
                continue

            try:
                parts = shlex.split(raw)
            except ValueError as exc:
                print(f"Ошибка разбора команды: {exc}")
                continue

            command, *arg_tokens = parts
            try:
                _dispatch_command(command, arg_tokens)
            except SystemExit:
                break
    finally:
        service.shutdown()
