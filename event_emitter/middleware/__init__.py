"""
Host framework integration.

Makes a dispatcher available to request handlers of ASGI apps
(Starlette, FastAPI).
"""

from event_emitter.middleware.asgi import (
    DEFAULT_STATE_KEY,
    EmitterMiddleware,
    get_emitter,
)

__all__ = [
    "DEFAULT_STATE_KEY",
    "EmitterMiddleware",
    "get_emitter",
]
