"""Domain layer - value types and errors."""

from .errors import BodyReadError, ClientError, RequestBuildError, RequestExecutionError
from .models import Credentials, HeaderEntry, Response

__all__ = [
    "BodyReadError",
    "ClientError",
    "Credentials",
    "HeaderEntry",
    "RequestBuildError",
    "RequestExecutionError",
    "Response",
]
