"""Managed HTTP client - pooled GET execution with guaranteed body release."""

import logging
import re
import time
from typing import Iterator, Optional, Sequence

import httpx
from pydantic import ValidationError

from ..config.settings import Settings
from ..domain.errors import BodyReadError, RequestBuildError, RequestExecutionError
from ..domain.models import Credentials, HeaderEntry, Response
from ..infrastructure.http.client import HTTPClientFactory

logger = logging.getLogger(__name__)

METHOD = "GET"

# RFC 7230 token characters allowed in a header field name.
_HEADER_NAME = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_FORBIDDEN_VALUE_CHARS = ("\r", "\n", "\x00")


class _OwnedStream(httpx.SyncByteStream):
    """Response stream whose close is deferred to an explicit release().

    httpx closes a stream as soon as it has been read to the end; holding the
    close back lets the wrapper release the connection exactly once, after
    the outcome of the read is known. When a deadline is given, reading fails
    with a timeout once it has passed, however slowly the bytes trickle in.
    """

    def __init__(self, stream: httpx.SyncByteStream, deadline: Optional[float] = None) -> None:
        self._stream = stream
        self._deadline = deadline
        self._released = False

    def __iter__(self) -> Iterator[bytes]:
        self._check_deadline()
        for chunk in self._stream:
            self._check_deadline()
            yield chunk

    def _check_deadline(self) -> None:
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise httpx.ReadTimeout("request deadline exceeded while reading body")

    def close(self) -> None:
        pass

    def release(self) -> None:
        if not self._released:
            self._released = True
            self._stream.close()


def _check_header(entry: HeaderEntry) -> None:
    if not _HEADER_NAME.match(entry.key):
        raise ValueError(f"invalid header name {entry.key!r}")
    if any(char in entry.value for char in _FORBIDDEN_VALUE_CHARS):
        raise ValueError(f"invalid value for header {entry.key!r}")


class ClientWrapper:
    """Owns one pooled client and executes GET requests through it.

    Every call drains the response body fully and releases the connection
    before returning, so the shared pool is never held by a caller. The
    wrapper keeps no per-request state and can be used from many threads.

    Usage:
        ```python
        with new_client(skip_tls_verification=False) as client:
            response = client.get_response("https://example.org/")
            print(response.status_code, len(response.body))
        ```
    """

    def __init__(self, http_client: httpx.Client, deadline_seconds: Optional[float] = None) -> None:
        """Initialize the wrapper.

        Args:
            http_client: Pooled client shared by every request of this wrapper.
            deadline_seconds: Time budget for a whole request, body included.
                Defaults to the client's read timeout.
        """
        self._client = http_client
        if deadline_seconds is None:
            deadline_seconds = http_client.timeout.read
        self._deadline_seconds = deadline_seconds

    @property
    def instance(self) -> httpx.Client:
        """The underlying pooled client."""
        return self._client

    def execute(
        self,
        url: str,
        body: Optional[bytes] = None,
        credentials: Optional[Credentials] = None,
        headers: Optional[Sequence[HeaderEntry]] = None,
    ) -> Response:
        """Execute a GET request and return the fully read response.

        Args:
            url: Absolute http(s) URL to request.
            body: Optional request payload, sent even though the method is GET.
            credentials: Optional basic-auth credentials.
            headers: Optional headers, applied in order; the last value wins
                for a repeated key.

        Returns:
            Response with the complete body, status line and status code.

        Raises:
            RequestBuildError: The URL is malformed or the request is invalid.
            RequestExecutionError: The request could not be completed.
            BodyReadError: The response body could not be read to the end.
        """
        request = self._build_request(url, body, credentials, headers)

        deadline = None
        if self._deadline_seconds is not None:
            deadline = time.monotonic() + self._deadline_seconds
        try:
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise RequestExecutionError(
                f"error executing request for url [{url}] - [{e}]", url=url
            ) from e

        stream = _OwnedStream(response.stream, deadline=deadline)
        response.stream = stream
        try:
            content = response.read()
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise BodyReadError(
                f"error reading response body for url [{url}] - [{e}]", url=url
            ) from e
        finally:
            self._release(url, stream)

        logger.debug("GET %s -> %d (%d bytes)", url, response.status_code, len(content))
        return Response(
            body=content,
            status=f"{response.status_code} {response.reason_phrase}".rstrip(),
            status_code=response.status_code,
        )

    def _build_request(
        self,
        url: str,
        body: Optional[bytes],
        credentials: Optional[Credentials],
        headers: Optional[Sequence[HeaderEntry]],
    ) -> httpx.Request:
        try:
            # An empty payload sends no body at all.
            if isinstance(body, (bytes, str)) and not body:
                body = None
            request = self._client.build_request(METHOD, url, content=body)
            if credentials is not None:
                auth = httpx.BasicAuth(credentials.username, credentials.password)
                request = next(auth.auth_flow(request))
            for entry in headers or ():
                _check_header(entry)
                request.headers[entry.key] = entry.value
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise RequestBuildError(
                f"error creating request for url [{url}] - [{e}]", url=url
            ) from e

        if request.url.scheme not in ("http", "https"):
            raise RequestBuildError(
                f"error creating request for url [{url}] - [unsupported protocol scheme "
                f"{request.url.scheme!r}]",
                url=url,
            )
        return request

    @staticmethod
    def _release(url: str, stream: "_OwnedStream") -> None:
        """Close the response stream; a failure here never changes the outcome."""
        try:
            stream.release()
        except Exception:
            logger.warning("error closing response body for url [%s]", url, exc_info=True)

    @staticmethod
    def _credentials(url: str, username: str, password: str) -> Credentials:
        try:
            return Credentials(username=username, password=password)
        except ValidationError as e:
            raise RequestBuildError(
                f"error creating request for url [{url}] - [invalid credentials: {e}]", url=url
            ) from e

    def get_response(self, url: str) -> Response:
        """Execute a plain GET request on url."""
        return self.execute(url)

    def get_response_with_credentials(self, url: str, username: str, password: str) -> Response:
        """Execute a GET request on url with basic-auth credentials."""
        return self.execute(url, credentials=self._credentials(url, username, password))

    def get_response_with_payload_and_auth(
        self, url: str, username: str, password: str, payload: bytes
    ) -> Response:
        """Execute a GET request sending payload and basic-auth credentials."""
        return self.execute(
            url,
            body=payload,
            credentials=self._credentials(url, username, password),
        )

    def get_response_with_payload_auth_and_headers(
        self,
        url: str,
        username: str,
        password: str,
        payload: bytes,
        headers: Sequence[HeaderEntry],
    ) -> Response:
        """Execute a GET request sending payload, basic-auth credentials and headers."""
        return self.execute(
            url,
            body=payload,
            credentials=self._credentials(url, username, password),
            headers=headers,
        )

    def get_response_with_payload_and_headers(
        self, url: str, payload: bytes, headers: Sequence[HeaderEntry]
    ) -> Response:
        """Execute a GET request sending payload and custom headers."""
        return self.execute(url, body=payload, headers=headers)

    def close(self) -> None:
        """Close the pooled client and every connection it holds."""
        self._client.close()

    def __enter__(self) -> "ClientWrapper":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def new_client(
    skip_tls_verification: bool = False,
    settings: Optional[Settings] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> ClientWrapper:
    """Create a ClientWrapper around a freshly built pooled client.

    Args:
        skip_tls_verification: Accept any server certificate. Only for trusted
            or test endpoints.
        settings: Optional settings overriding the environment defaults.
        transport: Optional transport, mainly for tests.

    Returns:
        Ready-to-use ClientWrapper.
    """
    http_client = HTTPClientFactory.create(
        skip_tls_verification=skip_tls_verification,
        settings=settings,
        transport=transport,
    )
    return ClientWrapper(http_client)
