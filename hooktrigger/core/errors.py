"""
Error taxonomy. Every error propagates to the caller as the terminal
result of one invocation; nothing here is retried.
"""
from __future__ import annotations


class HookTriggerError(Exception):
    """Base class for all hooktrigger errors."""


class ConfigurationError(HookTriggerError, ValueError):
    """Invalid task configuration, detected before any network I/O."""


class StorageError(HookTriggerError):
    """An external content reference could not be resolved or read."""


class TransportError(HookTriggerError):
    """Connection, DNS, TLS or socket-level failure while dispatching."""


class WebhookTimeoutError(HookTriggerError, TimeoutError):
    """Polling never observed a success status within the timeout budget."""

    def __init__(self, message: str, attempts: int = 0, last_status: int | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_status = last_status


class DecodingError(HookTriggerError, ValueError):
    """Response declared a content type its body does not satisfy."""
