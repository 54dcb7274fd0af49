"""
HTTP listeners: one threaded werkzeug server per bound address.

All listeners serve the same Flask app, and through it the same word index.
An address that fails to parse or bind is logged and skipped.
"""

import ipaddress
import logging
import socket
import threading
from typing import List, Tuple

from werkzeug.serving import make_server

logger = logging.getLogger(__name__)

SHUTDOWN_JOIN_TIMEOUT = 5.0  # seconds


def parse_address(address: str) -> Tuple[str, int]:
    """
    Parse "ip:port" (IPv4) or "[ip]:port" (IPv6) into (host, port).
    Host names are not accepted. Raises ValueError on bad input.
    """
    host, sep, port_str = address.strip().rpartition(":")
    if not sep or not host:
        raise ValueError("invalid socket address syntax")

    if host.startswith("[") and host.endswith("]"):
        host = str(ipaddress.IPv6Address(host[1:-1]))
    else:
        host = str(ipaddress.IPv4Address(host))

    if not (port_str.isascii() and port_str.isdigit()):
        raise ValueError(f"invalid port {port_str!r}")
    port = int(port_str)
    if port > 65535:
        raise ValueError(f"port {port} out of range")

    return host, port


def format_url(host: str, port: int) -> str:
    if ":" in host:
        return f"http://[{host}]:{port}"
    return f"http://{host}:{port}"


class Listener:
    """A bound socket plus the werkzeug server and thread accepting on it."""

    def __init__(self, host: str, port: int, app):
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        # Bind here so failures surface as OSError
        self._socket = socket.create_server((host, port), family=family)
        try:
            self.host = host
            self.port = self._socket.getsockname()[1]
            self.server = make_server(host, self.port, app, threaded=True,
                                      fd=self._socket.fileno())
        except Exception:
            self._socket.close()
            raise

        self.thread = threading.Thread(
            target=self.server.serve_forever,
            name=f"listener-{host}:{self.port}",
            daemon=True
        )

    @property
    def url(self) -> str:
        return format_url(self.host, self.port)

    def start(self):
        self.thread.start()

    def stop(self):
        """Stop accepting, close the sockets and wait for the thread."""
        if self.thread.is_alive():
            self.server.shutdown()
        self.server.server_close()
        self._socket.close()
        self.thread.join(timeout=SHUTDOWN_JOIN_TIMEOUT)


def start_listeners(addresses: List[str], app) -> List[Listener]:
    """Start a listener for every usable address. Never raises for a bad address."""
    listeners = []

    for address in addresses:
        logger.info("Attempting to start server on %s...", address)
        try:
            host, port = parse_address(address)
        except ValueError as e:
            logger.error("Invalid address format '%s': %s", address, e)
            continue

        try:
            listener = Listener(host, port, app)
        except OSError as e:
            logger.error("Failed to start server on %s: %s", address, e)
            continue

        listener.start()
        logger.info("Server listening on %s", listener.url)
        listeners.append(listener)

    return listeners


def stop_listeners(listeners: List[Listener]):
    for listener in listeners:
        logger.debug("Stopping listener %s", listener.url)
        listener.stop()
