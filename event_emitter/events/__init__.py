"""
Event dispatch module.

Provides the in-process dispatcher: handler registry plus synchronous and
asynchronous emission.
"""

from event_emitter.events.dispatcher import (
    Dispatcher,
    EmitAsyncMode,
    EventHandler,
    EventHandlers,
    EventKey,
    create_emitter,
)

__all__ = [
    "Dispatcher",
    "EmitAsyncMode",
    "EventHandler",
    "EventHandlers",
    "EventKey",
    "create_emitter",
]
