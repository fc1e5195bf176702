"""Connector error types and normalization of httpx failures."""

from typing import Any, Dict, Optional

import httpx


class ConnectorError(Exception):
    """Base error raised by the Mollie connector."""


class RemoteAPIError(ConnectorError):
    """The Mollie API answered with a non-2xx status."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.status_code = status_code


class TransportFailure(ConnectorError):
    """The request never got an HTTP answer (DNS, TLS, connection reset, ...)."""


class NotImplementedOperation(ConnectorError):
    """The operation is not supported by the remote API."""

    def __init__(self, operation: str):
        super().__init__(f"Not Implemented: {operation}")
        self.operation = operation


class InvalidLinkOptions(ConnectorError):
    """Pay-link options are missing a numeric amount or a description."""


class LinkError(ConnectorError):
    """The pay-link endpoint did not return a URL."""


def normalize_error(exc: Exception) -> Exception:
    """Turn an httpx exception into a ConnectorError without transport objects."""
    if isinstance(exc, ConnectorError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        try:
            body = exc.response.json() if exc.response.content else None
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error = body["error"]
            return RemoteAPIError(error.get("message") or str(exc), details=error, status_code=status_code)
        return RemoteAPIError(str(exc), status_code=status_code)
    if isinstance(exc, httpx.HTTPError):
        return TransportFailure(str(exc))
    return exc
