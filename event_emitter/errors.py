"""
Error taxonomy for the event dispatcher.

Registration errors are raised synchronously and leave the registry
untouched. Handler errors are never wrapped, except by
:class:`AggregateFailure` when a concurrent ``emit_async`` collects them.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence


class EmitterError(Exception):
    """Base class for all dispatcher errors."""


class ConfigurationError(EmitterError, ValueError):
    """Raised when dispatcher options are invalid."""


class InvalidHandlerError(EmitterError, TypeError):
    """Raised when a value that cannot act as a handler is registered."""

    def __init__(self, key: Hashable, handler: object, message: str | None = None):
        self.key = key
        self.handler = handler
        self.message = message or (
            f"Handler for event {key!r} must be callable, got {type(handler).__name__}"
        )
        super().__init__(self.message)


class HandlerLimitExceededError(EmitterError):
    """Raised when a key already holds ``max_handlers_per_key`` handlers."""

    def __init__(self, key: Hashable, limit: int):
        self.key = key
        self.limit = limit
        self.message = (
            f"Event {key!r} already has {limit} handlers (max_handlers_per_key={limit}). "
            "This may indicate a leak, such as subscribing a freshly created closure "
            "on every request. If the handlers are intentional, raise "
            "max_handlers_per_key in EmitterOptions."
        )
        super().__init__(self.message)


class AggregateFailure(EmitterError):
    """
    Raised by a concurrent ``emit_async`` when one or more handlers fail.

    Attributes:
        key: Event key that was emitted
        errors: Underlying exceptions, in handler registration order
    """

    def __init__(self, key: Hashable, errors: Sequence[BaseException]):
        self.key = key
        self.errors = list(errors)
        noun = "handler" if len(self.errors) == 1 else "handlers"
        self.message = f"{len(self.errors)} {noun} failed for event {key!r}"
        super().__init__(self.message)
