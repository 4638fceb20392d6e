"""Outbound message delivery."""

from continuum.infrastructure.messaging.logging_sink import LoggingMessageSink

__all__ = ["LoggingMessageSink"]
