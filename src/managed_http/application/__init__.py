"""Application layer - the managed client wrapper."""

from .client_wrapper import ClientWrapper, new_client

__all__ = ["ClientWrapper", "new_client"]
