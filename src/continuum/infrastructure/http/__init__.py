"""HTTP infrastructure."""

from continuum.infrastructure.http.server import RPCServer

__all__ = ["RPCServer"]
