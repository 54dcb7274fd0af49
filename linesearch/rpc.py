"""
JSON-RPC 2.0 method handlers and request dispatch.

Methods:
    search(query)       Line numbers containing all words of the query.
    fetch(line)         Literal text of a line.
    initialize(...)     Capability handshake.

Request:
    {"jsonrpc": "2.0", "method": "search", "params": ["hello world"], "id": 1}

Response:
    {"jsonrpc": "2.0", "result": [0, 4], "id": 1}

Error:
    {"jsonrpc": "2.0", "error": {"code": -32602, "message": "..."}, "id": 1}

Params may be positional (a one-element array) or named
({"query": ...} for search, {"line": ...} for fetch).
"""

import json
import logging
from typing import Any, Optional

from .errors import (
    PARSE_ERROR,
    INTERNAL_ERROR,
    RpcError,
    InvalidRequest,
    MethodNotFound,
    InvalidParams,
    InvalidRecordId,
)
from .indexes.word_index import WordIndex

logger = logging.getLogger(__name__)

SEARCH_PARAMS_MESSAGE = "Invalid parameters: Expected a single string query."
FETCH_PARAMS_MESSAGE = "Invalid parameters: Expected a single unsigned integer line number."

# Sentinel for "no id member", which marks a notification
_NO_ID = object()


def make_response(result: Any = None, error: Optional[dict] = None, request_id=None) -> dict:
    """Build a JSON-RPC response object. `error` wins over `result`."""
    response = {"jsonrpc": "2.0"}

    if error is not None:
        response["error"] = error
    else:
        response["result"] = result

    response["id"] = request_id
    return response


def make_error(code: int, message: str, request_id=None) -> dict:
    return make_response(error={"code": code, "message": message}, request_id=request_id)


def _json_type(value) -> str:
    """Name a decoded JSON value's type for error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _single_param(params, name: str, message: str):
    """Extract the only parameter from `[value]` or `{name: value}`."""
    if isinstance(params, list) and len(params) == 1:
        return params[0]
    if isinstance(params, dict) and set(params) == {name}:
        return params[name]
    raise InvalidParams(message)


# ============== Method handlers ==============

def handle_search(word_index: WordIndex, params) -> list:
    query = _single_param(params, "query", SEARCH_PARAMS_MESSAGE)
    if not isinstance(query, str):
        raise InvalidParams(SEARCH_PARAMS_MESSAGE)

    results = word_index.search(query)
    logger.debug("Results for search query %r: %s", query, results)
    return results


def handle_fetch(word_index: WordIndex, params) -> str:
    line_number = _single_param(params, "line", FETCH_PARAMS_MESSAGE)
    if isinstance(line_number, bool) or not isinstance(line_number, int) or line_number < 0:
        raise InvalidParams(FETCH_PARAMS_MESSAGE)

    line = word_index.fetch(line_number)
    if line is None:
        logger.warning("Invalid record ID for fetch line_number %d: out of bounds", line_number)
        raise InvalidRecordId("Invalid record ID: Line number out of bounds.")
    return line


def _parse_initialize_params(params) -> Optional[dict]:
    """
    Validate initialize params.

    Expected shape:
        {"protocolVersion": str?, "capabilities": {...},
         "clientInfo": {"name": str, "version": str?}?}

    Unknown members are ignored. Returns the client info dict or None.
    """
    if not isinstance(params, dict):
        raise ValueError(f"invalid type: {_json_type(params)}, expected an object")

    protocol_version = params.get("protocolVersion")
    if protocol_version is not None and not isinstance(protocol_version, str):
        raise ValueError(
            f"invalid type for `protocolVersion`: {_json_type(protocol_version)}, expected a string"
        )

    if "capabilities" not in params:
        raise ValueError("missing field `capabilities`")
    capabilities = params["capabilities"]
    if not isinstance(capabilities, dict):
        raise ValueError(
            f"invalid type for `capabilities`: {_json_type(capabilities)}, expected an object"
        )

    client_info = params.get("clientInfo")
    if client_info is None:
        return None
    if not isinstance(client_info, dict):
        raise ValueError(
            f"invalid type for `clientInfo`: {_json_type(client_info)}, expected an object"
        )
    if "name" not in client_info:
        raise ValueError("missing field `clientInfo.name`")
    if not isinstance(client_info["name"], str):
        raise ValueError(
            f"invalid type for `clientInfo.name`: {_json_type(client_info['name'])}, expected a string"
        )
    version = client_info.get("version")
    if version is not None and not isinstance(version, str):
        raise ValueError(
            f"invalid type for `clientInfo.version`: {_json_type(version)}, expected a string"
        )
    return client_info


def handle_initialize(word_index: WordIndex, params) -> dict:
    try:
        client_info = _parse_initialize_params(params)
    except ValueError as e:
        logger.error("Failed to parse initialize parameters: %s", e)
        raise InvalidParams(f"Invalid parameters for initialize: {e}")

    if client_info is not None:
        logger.info(
            "Client name: %s, version: %s",
            client_info["name"], client_info.get("version") or "N/A"
        )

    return {
        "capabilities": {
            "tools": {"listChanged": True},
            "search": {"enabled": True},
            "fetch": {"enabled": True},
        }
    }


# Method registry
METHODS = {
    "search": handle_search,
    "fetch": handle_fetch,
    "initialize": handle_initialize,
}


def dispatch(word_index: WordIndex, method: str, params=None) -> Any:
    """Call a registered method. Raises MethodNotFound for unknown names."""
    handler = METHODS.get(method)
    if handler is None:
        raise MethodNotFound(f"Method not found: {method}")
    return handler(word_index, params)


# ============== Request handling ==============

def _handle_single(word_index: WordIndex, request) -> Optional[dict]:
    """Handle one decoded request object. Returns None for notifications."""
    if not isinstance(request, dict):
        return make_error(InvalidRequest.code, "Request must be an object")

    request_id = request.get("id", _NO_ID)
    if request_id is not _NO_ID and request_id is not None and (
        isinstance(request_id, bool) or not isinstance(request_id, (str, int))
    ):
        return make_error(InvalidRequest.code, "Invalid request id")

    echo_id = None if request_id is _NO_ID else request_id

    if request.get("jsonrpc") != "2.0":
        return make_error(InvalidRequest.code, "Missing or invalid jsonrpc version", echo_id)

    method = request.get("method")
    if not method or not isinstance(method, str):
        return make_error(InvalidRequest.code, "Missing or invalid method", echo_id)

    params = request.get("params")
    if params is not None and not isinstance(params, (list, dict)):
        return make_error(InvalidRequest.code, "Params must be an array or an object", echo_id)

    logger.debug("RPC %r called with params: %r", method, params)

    try:
        result = dispatch(word_index, method, params)
        response = make_response(result=result, request_id=echo_id)
    except RpcError as e:
        if isinstance(e, InvalidParams):
            logger.error("Invalid params for %r: %s", method, e.message)
        response = make_error(e.code, e.message, echo_id)
    except Exception as e:
        logger.exception("Unexpected error in method %r", method)
        response = make_error(INTERNAL_ERROR, f"Internal error: {e}", echo_id)

    if request_id is _NO_ID:
        if "error" in response:
            logger.debug("Dropping error for notification %r: %s", method, response["error"])
        return None
    return response


def handle_request(data: bytes, word_index: WordIndex):
    """
    Handle a raw JSON-RPC payload (single request or batch).

    Returns a response dict, a list of response dicts for a batch, or None
    when there is nothing to send back (notifications only).
    """
    try:
        request = json.loads(data.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Failed to parse request body: %s", e)
        return make_error(PARSE_ERROR, f"Parse error: {e}")

    if isinstance(request, list):
        if not request:
            return make_error(InvalidRequest.code, "Empty batch")

        responses = []
        for item in request:
            response = _handle_single(word_index, item)
            if response is not None:
                responses.append(response)
        return responses or None

    return _handle_single(word_index, request)
