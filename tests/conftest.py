from __future__ import annotations

import logging
from typing import Any, List, Tuple
from unittest.mock import Mock

import pytest

from stockdio_hub import logging_config
from stockdio_hub.core.exceptions import TransportError
from stockdio_hub.core.models import FetchResult, RequestParameters
from stockdio_hub.infra.settings import SettingsLoader
from stockdio_hub.snapshot_service.config import ProviderConfig
from stockdio_hub.snapshot_service.storage import JsonSnapshotStore
from stockdio_hub.snapshot_service.updater import SnapshotUpdater

TZ = "Europe/Malta"

PRIOR_VALUES = [["MSFT", "401.10", "+1.2"]]
PRIOR_TIMESTAMP = 1_700_000_000


class RecordingDiagnosticLog:
    def __init__(self) -> None:
        self.entries: List[Tuple[str, Tuple[Any, ...]]] = []

    def log(self, message: str, *values: Any) -> None:
        self.entries.append((message, values))


class FakeClient:
    def __init__(self, result: FetchResult) -> None:
        self.result = result
        self.calls: List[RequestParameters] = []

    def fetch(self, params: RequestParameters) -> FetchResult:
        self.calls.append(params)
        return self.result


def body_result(body: str) -> FetchResult:
    return FetchResult(body=body)


def transport_result(message: str = "ReadTimeout: read timed out") -> FetchResult:
    return FetchResult(error=TransportError(message))


LOGGER_NAMES = ("stockdio_hub.actions", "stockdio_hub.cron")


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path, monkeypatch):
    """Send logs and the snapshot file into tmp_path, never into the repo."""
    config = SettingsLoader()._config
    logs_dir = tmp_path / "logs"
    data_dir = tmp_path / "data"
    monkeypatch.setitem(config, "logs_dir", logs_dir)
    monkeypatch.setitem(config, "actions_log_file", logs_dir / "actions.log")
    monkeypatch.setitem(
        config, "cron_log_file", logs_dir / "cron-stockdio-log.txt"
    )
    monkeypatch.setitem(config, "data_dir", data_dir)
    monkeypatch.setitem(
        config, "snapshot_file", data_dir / "stocks_snapshot.json"
    )
    monkeypatch.setattr(logging_config, "_actions_logger", None)
    monkeypatch.setattr(logging_config, "_cron_logger", None)
    _drop_handlers()

    yield tmp_path

    _drop_handlers()


def _drop_handlers() -> None:
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


@pytest.fixture
def store(tmp_path) -> JsonSnapshotStore:
    return JsonSnapshotStore(tmp_path / "stocks_snapshot.json")


@pytest.fixture
def seeded_store(store: JsonSnapshotStore) -> JsonSnapshotStore:
    store.save(PRIOR_VALUES, PRIOR_TIMESTAMP)
    return store


@pytest.fixture
def diagnostic_log() -> RecordingDiagnosticLog:
    return RecordingDiagnosticLog()


@pytest.fixture
def retry_scheduler() -> Mock:
    return Mock()


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(app_key="key-123", symbols="AAPL;MSFT")


@pytest.fixture
def make_updater(seeded_store, diagnostic_log, retry_scheduler):
    def factory(result: FetchResult) -> Tuple[SnapshotUpdater, FakeClient]:
        client = FakeClient(result)
        updater = SnapshotUpdater(
            store=seeded_store,
            client=client,
            diagnostic_log=diagnostic_log,
            retry_scheduler=retry_scheduler,
            tz_name=TZ,
            retry_delay_seconds=900,
        )
        return updater, client

    return factory
