from __future__ import annotations

import json
from typing import Any, Dict

from ..core.exceptions import EmptyResultError, ProtocolError
from ..core.models import SnapshotValues

OK_STATUS_CODE = 0


def _status_code(envelope: Any) -> Any:
    """Достать status.code или None, если поле отсутствует."""
    if not isinstance(envelope, dict):
        return None
    status = envelope.get("status")
    if not isinstance(status, dict):
        return None
    return status.get("code")


def _first_cell(envelope: Dict[str, Any]) -> Any:
    """Достать data.values[0][0] или None, если такой ячейки нет."""
    data = envelope.get("data")
    if not isinstance(data, dict):
        return None
    values = data.get("values")
    if not isinstance(values, list) or not values:
        return None
    first_row = values[0]
    if not isinstance(first_row, list) or not first_row:
        return None
    return first_row[0]


def parse_snapshot_response(raw_body: str) -> SnapshotValues:
    """Разобрать тело ответа и вернуть data.values для сохранения.

    Ожидаемый формат:
    {
      "status": {"code": 0},
      "data": {"values": [["123.45", ...], ...]}
    }

    Правила:
    - тело не JSON, status.code отсутствует или не равен 0 → ProtocolError;
    - data.values[0][0] отсутствует или пуст после strip() → EmptyResultError;
    - иначе возвращается data.values без изменений.
    """
    try:
        envelope = json.loads(raw_body)
    except (TypeError, ValueError):
        envelope = None

    code = _status_code(envelope)
    if isinstance(code, bool) or code != OK_STATUS_CODE:
        raise ProtocolError(code)

    first_cell = _first_cell(envelope)
    if first_cell is None or not str(first_cell).strip():
        raise EmptyResultError(envelope)

    return envelope["data"]["values"]
