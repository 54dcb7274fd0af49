"""
Line search JSON-RPC client class.
"""

import itertools
from typing import Any, List, Optional

import requests

from linesearch.errors import INVALID_RECORD_ID, RpcError


class LineSearchClient:
    def __init__(self, host: str = "localhost", port: int = 5000):
        self.base_url = f"http://{host}:{port}"
        self.session = requests.Session()
        self._ids = itertools.count(1)

    def call(self, method: str, params=None, timeout: float = 10) -> Any:
        """
        Make one JSON-RPC call and return its result.
        Raises RpcError for an error response and
        requests.RequestException if the server cannot be reached.
        """
        payload = {"jsonrpc": "2.0", "method": method, "id": next(self._ids)}
        if params is not None:
            payload["params"] = params

        response = self.session.post(self.base_url + "/", json=payload, timeout=timeout)
        response.raise_for_status()
        data = response.json()

        if "error" in data:
            error = data["error"]
            raise RpcError(error.get("message", ""), code=error.get("code"))
        return data.get("result")

    def search(self, query: str) -> List[int]:
        """
        Search for lines containing every word of the query.
        Returns ascending line numbers, [] on transport failure.
        """
        try:
            return self.call("search", [query])
        except requests.RequestException:
            return []

    def fetch(self, line_number: int) -> Optional[str]:
        """
        Fetch the text of a line.
        Returns None if the line does not exist or the server is unreachable.
        """
        try:
            return self.call("fetch", [line_number])
        except RpcError as e:
            if e.code == INVALID_RECORD_ID:
                return None
            raise
        except requests.RequestException:
            return None

    def initialize(self, client_name: str, client_version: str = None,
                   protocol_version: str = None) -> dict:
        """Perform the capability handshake and return the server's result."""
        client_info = {"name": client_name}
        if client_version is not None:
            client_info["version"] = client_version

        params = {"capabilities": {}, "clientInfo": client_info}
        if protocol_version is not None:
            params["protocolVersion"] = protocol_version

        return self.call("initialize", params)

    def stats(self) -> dict:
        """Get index statistics."""
        try:
            response = self.session.get(f"{self.base_url}/stats", timeout=10)
            if response.status_code == 200:
                return response.json()
            return {}
        except requests.RequestException:
            return {}

    def health(self) -> bool:
        """Check if server is healthy."""
        try:
            response = self.session.get(f"{self.base_url}/health", timeout=5)
            return response.status_code == 200
        except requests.RequestException:
            return False

    def close(self):
        """Close the session."""
        self.session.close()
