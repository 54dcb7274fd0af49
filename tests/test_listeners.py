"""
Tests for address parsing and in-process HTTP listeners.
"""

import socket
import threading

import pytest

from linesearch.app import create_app
from linesearch.listeners import format_url, parse_address, start_listeners, stop_listeners
from linesearch_client import LineSearchClient

from conftest import free_port


class TestParseAddress:
    """Test ip:port parsing."""

    def test_ipv4(self):
        assert parse_address("127.0.0.1:8080") == ("127.0.0.1", 8080)

    def test_ipv6(self):
        assert parse_address("[::1]:9000") == ("::1", 9000)

    def test_port_zero(self):
        assert parse_address("0.0.0.0:0") == ("0.0.0.0", 0)

    def test_surrounding_whitespace(self):
        assert parse_address(" 127.0.0.1:80 ") == ("127.0.0.1", 80)

    @pytest.mark.parametrize("address", [
        "",
        "127.0.0.1",
        ":8080",
        "localhost:8080",
        "127.0.0.1:",
        "127.0.0.1:http",
        "127.0.0.1:70000",
        "127.0.0.1:-1",
        "300.1.1.1:80",
        "::1:80",
        "[::1]",
        "[not-ip]:80",
    ])
    def test_invalid(self, address):
        with pytest.raises(ValueError):
            parse_address(address)

    def test_format_url(self):
        assert format_url("127.0.0.1", 80) == "http://127.0.0.1:80"
        assert format_url("::1", 80) == "http://[::1]:80"


class TestListeners:
    """Test starting and stopping listeners that share one index."""

    @pytest.fixture(autouse=True)
    def setup(self, word_index):
        self.app = create_app(index=word_index)
        self.listeners = []

        yield

        stop_listeners(self.listeners)

    def test_single_listener(self):
        self.listeners = start_listeners(["127.0.0.1:0"], self.app)
        assert len(self.listeners) == 1

        listener = self.listeners[0]
        assert listener.port != 0
        client = LineSearchClient(host="127.0.0.1", port=listener.port)
        assert client.health() == True
        assert client.search("hello") == [0]
        assert client.fetch(8) == "A line after an empty line."
        client.close()

    def test_two_listeners_share_index(self):
        self.listeners = start_listeners(["127.0.0.1:0", "127.0.0.1:0"], self.app)
        assert len(self.listeners) == 2
        assert self.listeners[0].port != self.listeners[1].port

        for listener in self.listeners:
            client = LineSearchClient(host="127.0.0.1", port=listener.port)
            assert client.search("empty line") == [6, 8]
            assert client.stats()["line_count"] == 10
            client.close()

    def test_bad_address_is_skipped(self):
        self.listeners = start_listeners(["not-an-address", "127.0.0.1:0"], self.app)
        assert len(self.listeners) == 1

    def test_busy_port_is_skipped(self):
        port = free_port()
        with socket.create_server(("127.0.0.1", port)):
            self.listeners = start_listeners([f"127.0.0.1:{port}", "127.0.0.1:0"], self.app)
            assert len(self.listeners) == 1
            assert self.listeners[0].port != port

    def test_all_addresses_fail(self):
        self.listeners = start_listeners(["bogus", "1.2.3:4"], self.app)
        assert self.listeners == []

    def test_concurrent_requests(self):
        self.listeners = start_listeners(["127.0.0.1:0", "127.0.0.1:0"], self.app)
        errors = []

        def worker(port):
            client = LineSearchClient(host="127.0.0.1", port=port)
            try:
                for _ in range(20):
                    if client.search("a line") != [1, 4, 8]:
                        errors.append("search")
                    if client.fetch(9) != "repeated repeated words.":
                        errors.append("fetch")
            finally:
                client.close()

        threads = [threading.Thread(target=worker, args=(l.port,))
                   for l in self.listeners for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert errors == []

    def test_stop_closes_port(self):
        self.listeners = start_listeners(["127.0.0.1:0"], self.app)
        port = self.listeners[0].port
        stop_listeners(self.listeners)
        self.listeners = []

        client = LineSearchClient(host="127.0.0.1", port=port)
        assert client.health() == False
        client.close()
