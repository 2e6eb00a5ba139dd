from __future__ import annotations

import json
import os
from datetime import datetime, time, timedelta
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def now_in_timezone(tz_name: str) -> datetime:
    """Текущее время в указанном часовом поясе (не в локальном времени машины)."""
    return datetime.now(ZoneInfo(tz_name))


def timestamp_in_timezone(tz_name: str) -> int:
    """Текущий timestamp в секундах, снятый в опорном часовом поясе."""
    return int(now_in_timezone(tz_name).timestamp())


def format_timestamp(value: datetime | int | float, tz_name: str) -> str:
    """Отформатировать момент времени как YYYY-MM-DD HH:MM:SS в поясе tz_name."""
    tz = ZoneInfo(tz_name)
    if isinstance(value, datetime):
        moment = value.astimezone(tz)
    else:
        moment = datetime.fromtimestamp(value, tz)
    return moment.strftime(DATE_FORMAT)


def parse_wall_clock(value: str) -> time:
    """Разобрать строку HH:MM в datetime.time."""
    if not isinstance(value, str):
        raise TypeError("Время запуска должно быть строкой HH:MM.")
    try:
        hour_str, minute_str = value.strip().split(":", 1)
        return time(int(hour_str), int(minute_str))
    except ValueError as exc:
        raise ValueError(
            f"Некорректное время запуска '{value}', ожидается HH:MM.",
        ) from exc


def next_daily_occurrence(now: datetime, at: time) -> datetime:
    """Ближайшее наступление времени at (в поясе now), строго позже now."""
    candidate = datetime.combine(now.date(), at, tzinfo=now.tzinfo)
    if candidate <= now:
        candidate = datetime.combine(
            now.date() + timedelta(days=1),
            at,
            tzinfo=now.tzinfo,
        )
    return candidate


def load_json(path: Path, default: Any) -> Any:
    """Загрузить JSON из файла или вернуть default при ошибке."""
    try:
        with path.open("r", encoding="utf-8") as file:
            return json.load(file)
    except FileNotFoundError:
        return default
    except json.JSONDecodeError:
        return default


def atomic_write_json(path: Path, data: Any) -> None:
    """Атомарная запись JSON в файл.

    Пишем во временный файл и затем заменяем основной через os.replace,
    поэтому читатель видит либо старое, либо новое содержимое целиком.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
