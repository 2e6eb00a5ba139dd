import pytest

from stockdio_hub.cli.interface import _parse_show_snapshot_args


def test_show_snapshot_without_rows() -> None:
    assert _parse_show_snapshot_args([]) is None


def test_show_snapshot_rows() -> None:
    assert _parse_show_snapshot_args(["--rows", "3"]) == 3


@pytest.mark.parametrize(
    "args",
    [
        ["--rows"],
        ["--rows", "0"],
        ["--rows", "x"],
        ["--rows", "1", "--rows", "2"],
        ["--currency", "USD"],
    ],
)
def test_show_snapshot_rejects_bad_args(args) -> None:
    with pytest.raises(ValueError):
        _parse_show_snapshot_args(args)
