import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import patch

import pytest
import requests

from stockdio_hub.core.exceptions import TransportError
from stockdio_hub.core.models import RequestParameters
from stockdio_hub.snapshot_service.api_clients import StockdioClient, fetch

SOURCE_URL = "https://api.stockdio.com/data/financial/prices/v1/GetStocksSnapshot"


class FakeResponse:
    def __init__(self, status_code: int, body: bytes, encoding=None) -> None:
        self.status_code = status_code
        self.encoding = encoding
        self._body = body
        self.closed = False

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        self.closed = True

    def iter_content(self, chunk_size: int = 1):
        for index in range(0, len(self._body), chunk_size):
            yield self._body[index:index + chunk_size]


class DripHandler(BaseHTTPRequestHandler):
    body = b'{"status": {"code": 0}, "data": {"values": [["AAPL"]]}}'
    interval = 0.3

    def do_GET(self) -> None:  # noqa: N802
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(self.body)))
        self.end_headers()
        self.wfile.flush()
        try:
            for index in range(len(self.body)):
                time.sleep(self.interval)
                self.wfile.write(self.body[index:index + 1])
                self.wfile.flush()
        except (BrokenPipeError, ConnectionResetError):
            return

    def log_message(self, format, *args) -> None:  # noqa: A002
        return


class FastDripHandler(DripHandler):
    interval = 0.005


@pytest.fixture
def drip_server():
    servers = []

    def start(handler=DripHandler) -> str:
        server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
        server.daemon_threads = True
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        host, port = server.server_address
        return f"http://{host}:{port}/GetStocksSnapshot"

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()


def test_timeout_becomes_transport_error() -> None:
    with patch(
        "stockdio_hub.snapshot_service.api_clients.requests.get",
        side_effect=requests.exceptions.ReadTimeout("read timed out"),
    ):
        result = fetch(SOURCE_URL, {"app-key": "k"}, 10)

    assert result.ok is False
    assert result.body is None
    assert isinstance(result.error, TransportError)
    assert "ReadTimeout" in result.error.message


def test_connection_error_becomes_transport_error() -> None:
    with patch(
        "stockdio_hub.snapshot_service.api_clients.requests.get",
        side_effect=requests.exceptions.ConnectionError("Name or service not known"),
    ):
        result = fetch(SOURCE_URL, {"app-key": "k"}, 10)

    assert isinstance(result.error, TransportError)
    assert "Name or service not known" in str(result.error)


def test_non_2xx_body_is_returned() -> None:
    response = FakeResponse(503, b'{"status": {"code": 1}}')
    with patch(
        "stockdio_hub.snapshot_service.api_clients.requests.get",
        return_value=response,
    ):
        result = fetch(SOURCE_URL, {"app-key": "k"}, 10)

    assert result.ok is True
    assert result.body == '{"status": {"code": 1}}'
    assert response.closed is True


def test_body_decoded_with_response_encoding() -> None:
    response = FakeResponse(200, "Zürich".encode("latin-1"), encoding="latin-1")
    with patch(
        "stockdio_hub.snapshot_service.api_clients.requests.get",
        return_value=response,
    ):
        result = fetch(SOURCE_URL, {"app-key": "k"}, 10)

    assert result.body == "Zürich"


def test_client_sends_params_with_timeout() -> None:
    params = RequestParameters(app_key="key-123", symbols="AAPL;MSFT")
    client = StockdioClient(source_url=SOURCE_URL, timeout=10)
    response = FakeResponse(200, b"{}")

    with patch(
        "stockdio_hub.snapshot_service.api_clients.requests.get",
        return_value=response,
    ) as get_mock:
        client.fetch(params)

    get_mock.assert_called_once_with(
        SOURCE_URL,
        params={"app-key": "key-123", "symbols": "AAPL;MSFT"},
        timeout=10,
        stream=True,
    )


def test_slow_body_is_cut_at_deadline(drip_server) -> None:
    started = time.monotonic()
    result = fetch(drip_server(), {"app-key": "k"}, 1)
    elapsed = time.monotonic() - started

    assert elapsed < 2.0
    assert result.ok is False
    assert isinstance(result.error, TransportError)
    assert "deadline exceeded" in result.error.message


def test_slow_body_within_deadline_is_returned(drip_server) -> None:
    result = fetch(drip_server(FastDripHandler), {"app-key": "k"}, 60)

    assert result.ok is True
    assert result.body == DripHandler.body.decode("utf-8")


def test_symbols_are_url_encoded() -> None:
    params = RequestParameters(
        app_key="key-123",
        symbols="AAPL;MSFT",
        stock_exchange="LSE",
    )

    prepared = requests.Request(
        "GET",
        SOURCE_URL,
        params=params.as_query(),
    ).prepare()

    assert prepared.url == (
        f"{SOURCE_URL}?app-key=key-123&symbols=AAPL%3BMSFT&stockExchange=LSE"
    )
