"""Presentation layer."""

from continuum.presentation.rpc_handlers import error_middleware, register_routes

__all__ = ["error_middleware", "register_routes"]
