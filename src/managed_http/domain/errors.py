"""Errors raised while executing a request."""

from typing import Optional


class ClientError(Exception):
    """Base error for a failed request execution.

    The underlying cause, when there is one, is chained as ``__cause__``.
    """

    stage = "request"

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class RequestBuildError(ClientError):
    """The URL is malformed or the request could not be constructed."""

    stage = "build"


class RequestExecutionError(ClientError):
    """The request could not be completed (connection, timeout, TLS)."""

    stage = "execute"


class BodyReadError(ClientError):
    """The response body could not be read to the end."""

    stage = "read"
