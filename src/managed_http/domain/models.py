"""Value types exchanged with callers of the client wrapper."""

from pydantic import BaseModel, ConfigDict


class HeaderEntry(BaseModel):
    """One header to set on an outgoing request."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str


class Credentials(BaseModel):
    """Username/password pair sent as HTTP Basic authentication."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str


class Response(BaseModel):
    """Fully drained response of a single request.

    Instances are only built once the body has been read to the end and the
    underlying connection released.
    """

    model_config = ConfigDict(frozen=True)

    body: bytes
    status: str
    status_code: int
