from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from ..core.models import SnapshotValues, StocksSnapshot
from ..core.utils import atomic_write_json, load_json
from ..infra.settings import SettingsLoader

# Ключи, под которыми потребители читают снимок и его timestamp.
SNAPSHOT_KEY = "stocks_snapshot"
TIMESTAMP_KEY = "stocks_snapshot_timestamp"


class JsonSnapshotStore:
    """Хранилище последнего принятого снимка котировок.

    Формат файла stocks_snapshot.json:
    {
      "stocks_snapshot": [["AAPL", "123.45", ...], ...],
      "stocks_snapshot_timestamp": 1760756400
    }

    Снимок и timestamp пишутся одной атомарной записью,
    поэтому читатель никогда не видит одно без другого.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path or SettingsLoader().get("snapshot_file"))

    def load(self) -> StocksSnapshot | None:
        """Загрузить текущий снимок.

        При отсутствии файла или некорректном формате возвращается None.
        """
        data = load_json(self.path, default=None)
        if not isinstance(data, dict):
            return None

        values = data.get(SNAPSHOT_KEY)
        timestamp = data.get(TIMESTAMP_KEY)
        if not isinstance(values, list):
            return None
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            return None

        return StocksSnapshot(values=values, timestamp=timestamp)

    def save(self, values: SnapshotValues, timestamp: int) -> StocksSnapshot:
        """Сохранить снимок вместе с timestamp.

        timestamp не может уйти назад относительно уже сохранённого:
        при сдвиге часов остаётся прежнее значение.
        """
        previous = self.load()
        if previous is not None and previous.timestamp > timestamp:
            timestamp = previous.timestamp

        data_to_write: Dict[str, Any] = {
            SNAPSHOT_KEY: values,
            TIMESTAMP_KEY: int(timestamp),
        }
        atomic_write_json(self.path, data_to_write)
        return StocksSnapshot(values=values, timestamp=int(timestamp))
