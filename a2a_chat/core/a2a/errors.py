"""
Exceptions raised by the A2A client.
"""

from typing import Dict, Optional, Any


class A2AClientError(Exception):
    """Base exception for A2A client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Optional[Dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class NetworkError(A2AClientError):
    """Raised when network communication fails."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class HTTPStatusError(A2AClientError):
    """Raised when the relay or agent answers with a non-success status."""

    def __init__(self, status_code: int, body: Optional[str] = None):
        super().__init__(f"HTTP error! status: {status_code}", status_code=status_code)
        self.body = body


class A2AProtocolError(A2AClientError):
    """Raised when a response carries a JSON-RPC error object."""

    def __init__(self, error: Any):
        if not isinstance(error, dict):
            error = {"message": str(error)}
        super().__init__(error.get("message") or "Unknown error", response_data=error)
        self.code = error.get("code")
        self.data = error.get("data")


class UnknownResponseError(A2AClientError):
    """Raised when a result has a kind the client cannot interpret."""

    def __init__(self, kind: Optional[str] = None, response_data: Optional[Dict] = None):
        super().__init__("Unknown response format", response_data=response_data)
        self.kind = kind
