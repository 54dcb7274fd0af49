"""
Pytest fixtures for line search tests.
"""

import os
import socket
import subprocess
import sys
import time

import pytest

from linesearch.indexes import WordIndex

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Line 7 is intentionally blank
TEST_DB_LINES = [
    "Hello world!",
    "A test line.",
    "Some more text, in the middle.",
    "UPPERCASE lowercase",
    "A line with a comma, and a period.",
    "Numbers 123 numbers.",
    "An empty line follows this one.",
    "",
    "A line after an empty line.",
    "repeated repeated words.",
]

ROUND_TRIP_LINES = [
    "Hello world!",
    "A test line.",
    "UPPERCASE lowercase",
    "A line with a comma, and a period.",
]


@pytest.fixture
def test_db(tmp_path):
    """Write the standard test corpus to a file and return its path."""
    path = tmp_path / "db.txt"
    path.write_text("\n".join(TEST_DB_LINES) + "\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def word_index(test_db):
    return WordIndex.build(test_db)


@pytest.fixture
def round_trip_index():
    return WordIndex.from_lines(ROUND_TRIP_LINES)


def free_port():
    """Ask the OS for a port that is free right now."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def start_server(*args, cwd=None):
    """Start `python -m linesearch.run_server` with the given CLI args."""
    env = dict(os.environ)
    env["PYTHONPATH"] = PROJECT_ROOT + os.pathsep + env.get("PYTHONPATH", "")
    return subprocess.Popen(
        [sys.executable, "-m", "linesearch.run_server", *args],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=cwd,
        env=env
    )


def stop_server(proc):
    """Gracefully stop server."""
    proc.terminate()
    try:
        proc.wait(timeout=5)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()


def wait_ready(client, attempts=30):
    for _ in range(attempts):
        if client.health():
            return True
        time.sleep(0.2)
    return False


@pytest.fixture
def server_process(test_db):
    """Start a fresh server on a free port. Yields (proc, port)."""
    port = free_port()
    proc = start_server("--addresses", f"127.0.0.1:{port}", "--db", test_db)

    yield proc, port

    stop_server(proc)


@pytest.fixture
def client(server_process):
    """Create a client connected to the test server."""
    from linesearch_client import LineSearchClient

    _, port = server_process
    c = LineSearchClient(host="127.0.0.1", port=port)
    assert wait_ready(c), "server did not become healthy"

    yield c
    c.close()
