from __future__ import annotations

from functools import wraps
from time import monotonic
from typing import Any, Callable, Collection, Optional

from .logging_config import get_actions_logger

FuncType = Callable[..., Any]


def log_job(
    action: Optional[str] = None,
    quiet_outcomes: Collection[Any] = (),
) -> Callable[[FuncType], FuncType]:
    """Декоратор для логирования запусков фоновой задачи.

    Логируем на уровне INFO структуру:
    - timestamp (через форматтер логгера)
    - action (например, SNAPSHOT_REFRESH)
    - outcome (значение, которое вернула задача)
    - duration_ms
    - result (OK/ERROR)
    - error_type и error_message при исключениях

    Итоги из quiet_outcomes не логируются вовсе (например, запуск,
    пропущенный из-за выключенного обновления).

    Декоратор не глотает исключения — только фиксирует их в логах.
    """

    quiet = tuple(quiet_outcomes)

    def decorator(func: FuncType) -> FuncType:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger = get_actions_logger()
            act = action or func.__name__.upper()
            started = monotonic()

            try:
                result = func(*args, **kwargs)
            except Exception as exc:  # noqa: BLE001
                duration_ms = int((monotonic() - started) * 1000)
                logger.error(
                    "%s result=ERROR duration_ms=%d error_type='%s' "
                    "error_message='%s'",
                    act,
                    duration_ms,
                    type(exc).__name__,
                    exc,
                )
                raise

            if result in quiet:
                return result

            duration_ms = int((monotonic() - started) * 1000)
            outcome = getattr(result, "value", result)
            logger.info(
                "%s result=OK outcome=%s duration_ms=%d",
                act,
                outcome,
                duration_ms,
            )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator
