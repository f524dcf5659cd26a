"""managed-http - pooled GET client with guaranteed response draining."""

from .application.client_wrapper import ClientWrapper, new_client
from .config.settings import Settings, get_settings
from .domain.errors import BodyReadError, ClientError, RequestBuildError, RequestExecutionError
from .domain.models import Credentials, HeaderEntry, Response

__version__ = "0.1.0"

__all__ = [
    "BodyReadError",
    "ClientError",
    "ClientWrapper",
    "Credentials",
    "HeaderEntry",
    "RequestBuildError",
    "RequestExecutionError",
    "Response",
    "Settings",
    "get_settings",
    "new_client",
]
