"""
event-emitter package.

An in-process publish/subscribe dispatcher:
- Events (handler registry, sync and async emission)
- Config (dispatcher options)
- Middleware (ASGI integration for Starlette / FastAPI)
"""

from event_emitter.config import EmitterOptions
from event_emitter.errors import (
    AggregateFailure,
    ConfigurationError,
    EmitterError,
    HandlerLimitExceededError,
    InvalidHandlerError,
)
from event_emitter.events import (
    Dispatcher,
    EmitAsyncMode,
    EventHandler,
    EventHandlers,
    EventKey,
    create_emitter,
)
from event_emitter.logging_config import configure_logging, get_logger
from event_emitter.middleware import EmitterMiddleware, get_emitter

__version__ = "0.1.0"

__all__ = [
    "AggregateFailure",
    "ConfigurationError",
    "Dispatcher",
    "EmitAsyncMode",
    "EmitterError",
    "EmitterMiddleware",
    "EmitterOptions",
    "EventHandler",
    "EventHandlers",
    "EventKey",
    "HandlerLimitExceededError",
    "InvalidHandlerError",
    "configure_logging",
    "create_emitter",
    "get_emitter",
    "get_logger",
]
