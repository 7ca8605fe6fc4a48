"""
ASGI middleware exposing a dispatcher on every request.

Example:
    from fastapi import FastAPI, Request

    from event_emitter.middleware import EmitterMiddleware, get_emitter

    app = FastAPI()
    app.add_middleware(EmitterMiddleware, handlers={"todo:created": [audit]})

    @app.post("/todo")
    async def create_todo(request: Request):
        await get_emitter(request).emit_async("todo:created", request, {"id": "2"})
        return {"message": "Todo created"}
"""

from __future__ import annotations

from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Receive, Scope, Send

from event_emitter.config import EmitterOptions
from event_emitter.events.dispatcher import Dispatcher, EventHandlers
from event_emitter.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_STATE_KEY = "emitter"


class EmitterMiddleware:
    """
    Set one shared dispatcher on the state of every HTTP and WebSocket
    connection, then hand over to the wrapped app.

    Args:
        app: Wrapped ASGI application
        handlers: Initial handlers, used when no dispatcher is given
        options: Dispatcher options, used when no dispatcher is given
        dispatcher: Existing dispatcher to share instead of creating one
        state_key: Attribute name on ``request.state``
    """

    def __init__(
        self,
        app: ASGIApp,
        handlers: EventHandlers | None = None,
        options: EmitterOptions | None = None,
        *,
        dispatcher: Dispatcher | None = None,
        state_key: str = DEFAULT_STATE_KEY,
    ):
        self.app = app
        self.dispatcher = dispatcher if dispatcher is not None else Dispatcher(handlers, options)
        self.state_key = state_key
        logger.debug(
            "emitter_middleware_installed",
            state_key=state_key,
            keys=len(self.dispatcher.keys()),
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        # Copy so lifespan state shared between connections is left alone
        state = dict(scope.get("state") or {})
        state[self.state_key] = self.dispatcher
        await self.app({**scope, "state": state}, receive, send)


def get_emitter(connection: HTTPConnection, state_key: str = DEFAULT_STATE_KEY) -> Dispatcher:
    """Return the dispatcher set by EmitterMiddleware on a request or websocket.

    Raises:
        RuntimeError: EmitterMiddleware is not installed on the app
    """
    dispatcher = getattr(connection.state, state_key, None)
    if dispatcher is None:
        raise RuntimeError(
            f"No dispatcher on request.state.{state_key}; is EmitterMiddleware installed?"
        )
    return dispatcher
