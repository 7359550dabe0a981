"""Exceptions shared across services and adapters."""


class ConcurrentUpdateError(RuntimeError):
    """Raised when a row changed between read and write."""
