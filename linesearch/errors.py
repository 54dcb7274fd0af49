"""
Error types and JSON-RPC error codes for linesearch.
"""

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Application error: fetch of a line number past the end of the corpus
INVALID_RECORD_ID = -32001


class LineSearchError(Exception):
    """Base exception for all linesearch errors."""

    pass


class RpcError(LineSearchError):
    """Error reported to the caller as a JSON-RPC error object."""

    code = INTERNAL_ERROR

    def __init__(self, message: str, code: int = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class InvalidRequest(RpcError):
    code = INVALID_REQUEST


class MethodNotFound(RpcError):
    code = METHOD_NOT_FOUND


class InvalidParams(RpcError):
    code = INVALID_PARAMS


class InvalidRecordId(RpcError):
    """Request was well formed but names a line that does not exist."""

    code = INVALID_RECORD_ID
