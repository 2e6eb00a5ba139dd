import logging

import pytest

from stockdio_hub.core.models import RefreshOutcome
from stockdio_hub.decorators import log_job


def test_log_job_records_outcome(caplog) -> None:
    @log_job("SNAPSHOT_REFRESH")
    def job() -> RefreshOutcome:
        return RefreshOutcome.ACCEPTED

    with caplog.at_level(logging.INFO, logger="stockdio_hub.actions"):
        assert job() is RefreshOutcome.ACCEPTED

    assert any(
        "SNAPSHOT_REFRESH result=OK outcome=accepted" in record.getMessage()
        for record in caplog.records
    )


def test_log_job_reraises(caplog) -> None:
    @log_job()
    def broken_job() -> None:
        raise RuntimeError("disk full")

    with caplog.at_level(logging.INFO, logger="stockdio_hub.actions"):
        with pytest.raises(RuntimeError):
            broken_job()

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "BROKEN_JOB result=ERROR" in errors[0].getMessage()
    assert "error_type='RuntimeError'" in errors[0].getMessage()


def test_log_job_stays_silent_for_quiet_outcome(caplog) -> None:
    @log_job("SNAPSHOT_REFRESH", quiet_outcomes=(RefreshOutcome.SKIPPED,))
    def job() -> RefreshOutcome:
        return RefreshOutcome.SKIPPED

    with caplog.at_level(logging.DEBUG, logger="stockdio_hub.actions"):
        assert job() is RefreshOutcome.SKIPPED

    assert caplog.records == []
