"""
In-process event dispatcher.

Provides:
- Handler registration per event key with duplicate and per-key limit guards
- Synchronous fire-and-forget emission
- Asynchronous emission, concurrent or sequential, with error aggregation

Handlers are called as ``handler(carrier, payload)``. The carrier (for
example the current request) is forwarded untouched and never inspected.

Example:
    from event_emitter import create_emitter

    async def on_created(request, todo):
        await notify(todo)

    ee = create_emitter({"todo:created": [audit]})
    ee.on("todo:created", on_created)

    ee.emit("todo:created", request, todo)
    await ee.emit_async("todo:created", request, todo, mode="sequential")
"""

from __future__ import annotations

import asyncio
import inspect
import threading
from collections.abc import Awaitable, Callable, Hashable, Iterable, Mapping
from enum import Enum
from typing import Any

from event_emitter.config import EmitterOptions
from event_emitter.errors import (
    AggregateFailure,
    ConfigurationError,
    HandlerLimitExceededError,
    InvalidHandlerError,
)
from event_emitter.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Types & Enums
# =============================================================================

EventKey = Hashable

# Handler type: can be sync or async function
EventHandler = Callable[[Any, Any], None] | Callable[[Any, Any], Awaitable[None]]

EventHandlers = Mapping[EventKey, Iterable[EventHandler]]


class EmitAsyncMode(str, Enum):
    """How ``emit_async`` runs the handlers of one key."""

    CONCURRENT = "concurrent"
    SEQUENTIAL = "sequential"


def _same_handler(a: Any, b: Any) -> bool:
    """Identity match; bound methods match when bound to the same object."""
    if a is b:
        return True
    if inspect.ismethod(a) and inspect.ismethod(b):
        return a.__self__ is b.__self__ and a.__func__ is b.__func__
    return False


def _contains(registered: list[Any], handler: Any) -> bool:
    return any(_same_handler(h, handler) for h in registered)


def _handler_name(handler: Any) -> str:
    return getattr(handler, "__qualname__", None) or type(handler).__name__


def _check_handler(key: EventKey, handler: Any) -> None:
    """Raise InvalidHandlerError unless handler accepts (carrier, payload)."""
    if not callable(handler):
        raise InvalidHandlerError(key, handler)

    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        # Some builtins and C callables expose no signature
        return

    try:
        signature.bind(None, None)
    except TypeError as e:
        raise InvalidHandlerError(
            key,
            handler,
            f"Handler {_handler_name(handler)} for event {key!r} "
            f"must accept (carrier, payload): {e}",
        ) from e


# =============================================================================
# Dispatcher
# =============================================================================


class Dispatcher:
    """
    Registry of handlers per event key plus the emission operations.

    A handler is registered at most once per key, matched by identity: the
    same function object, or two bound methods of the same function on the
    same instance, count as one handler. Separately created closures or
    callable objects are distinct even when they compare equal.

    The registry is guarded by a re-entrant lock so dispatchers may be shared
    between threads. Handlers always run outside the lock, on a snapshot of
    the key's list, so a handler may subscribe or unsubscribe freely.
    """

    def __init__(
        self,
        handlers: EventHandlers | None = None,
        options: EmitterOptions | None = None,
    ):
        """
        Initialize dispatcher.

        Args:
            handlers: Initial handlers per event key. Each sequence is taken
                as-is; duplicates and the per-key limit are only enforced by
                :meth:`subscribe`.
            options: Dispatcher options (defaults to EmitterOptions())
        """
        if options is None:
            options = EmitterOptions()
        elif not isinstance(options, EmitterOptions):
            raise ConfigurationError(
                f"options must be EmitterOptions, got {type(options).__name__}"
            )
        self._options = options

        self._lock = threading.RLock()
        self._handlers: dict[EventKey, list[EventHandler]] = {}
        self._pending: set[asyncio.Future] = set()

        for key, seed in (handlers or {}).items():
            seeded = list(seed)
            for handler in seeded:
                _check_handler(key, handler)
            self._handlers[key] = seeded

    @property
    def options(self) -> EmitterOptions:
        return self._options

    # -------------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------------

    def subscribe(self, key: EventKey, handler: EventHandler) -> None:
        """
        Add a handler for the given event key.

        Subscribing a handler that is already registered for the key does
        nothing.

        Args:
            key: Event key to listen for
            handler: Callable invoked as ``handler(carrier, payload)``;
                may be sync or async

        Raises:
            InvalidHandlerError: handler cannot be called with two arguments
            HandlerLimitExceededError: key already holds the maximum number
                of handlers
        """
        _check_handler(key, handler)

        limit = self._options.max_handlers_per_key
        with self._lock:
            registered = self._handlers.setdefault(key, [])
            if _contains(registered, handler):
                return

            if len(registered) >= limit:
                logger.warning(
                    "handler_limit_exceeded",
                    key=repr(key),
                    handler=_handler_name(handler),
                    limit=limit,
                )
                raise HandlerLimitExceededError(key, limit)

            registered.append(handler)

        logger.debug(
            "handler_subscribed",
            key=repr(key),
            handler=_handler_name(handler),
        )

    def unsubscribe(self, key: EventKey, handler: EventHandler | None = None) -> None:
        """
        Remove a handler for the given event key.

        If ``handler`` is None, every handler for the key is removed. Removing
        something that is not registered is not an error.

        Args:
            key: Event key to unregister from
            handler: Handler to remove
        """
        with self._lock:
            if handler is None:
                removed = self._handlers.pop(key, None)
                if removed is None:
                    return
            else:
                registered = self._handlers.get(key)
                if not registered or not _contains(registered, handler):
                    return
                self._handlers[key] = [
                    h for h in registered if not _same_handler(h, handler)
                ]

        logger.debug(
            "handler_unsubscribed",
            key=repr(key),
            handler=_handler_name(handler) if handler is not None else "*",
        )

    # Names used by the original emitter API
    on = subscribe
    off = unsubscribe

    def handlers(self, key: EventKey) -> tuple[EventHandler, ...]:
        """Return a snapshot of the handlers registered for key."""
        with self._lock:
            return tuple(self._handlers.get(key, ()))

    def keys(self) -> tuple[EventKey, ...]:
        """Return the event keys that currently have handlers."""
        with self._lock:
            return tuple(key for key, registered in self._handlers.items() if registered)

    # -------------------------------------------------------------------------
    # Emission
    # -------------------------------------------------------------------------

    def emit(self, key: EventKey, carrier: Any, payload: Any = None) -> None:
        """
        Invoke every handler for key, in registration order.

        A handler that raises stops the loop and the exception propagates to
        the caller; later handlers are not invoked. Async handlers are not
        awaited: when an event loop is running they are scheduled as detached
        tasks whose failures the dispatcher never sees, otherwise the
        coroutine is dropped with a warning. Use :meth:`emit_async` to wait
        for async handlers.

        Args:
            key: Event key
            carrier: Context forwarded as the first handler argument
            payload: Value forwarded as the second handler argument
        """
        for handler in self.handlers(key):
            result = handler(carrier, payload)
            if inspect.isawaitable(result):
                self._detach(key, handler, result)

    async def emit_async(
        self,
        key: EventKey,
        carrier: Any,
        payload: Any = None,
        mode: EmitAsyncMode | str = EmitAsyncMode.CONCURRENT,
    ) -> None:
        """
        Invoke every handler for key and wait for them.

        Args:
            key: Event key
            carrier: Context forwarded as the first handler argument
            payload: Value forwarded as the second handler argument
            mode: ``concurrent`` starts all handlers at once and waits for all
                of them; ``sequential`` awaits them one by one

        Raises:
            AggregateFailure: concurrent mode, one or more handlers failed
            Exception: sequential mode, the first handler error, unwrapped
        """
        mode = EmitAsyncMode(mode)
        handlers = self.handlers(key)
        if not handlers:
            return

        logger.debug(
            "event_dispatching_async",
            key=repr(key),
            mode=mode.value,
            handlers=len(handlers),
        )

        if mode is EmitAsyncMode.SEQUENTIAL:
            for handler in handlers:
                await self._invoke(handler, carrier, payload)
            return

        results = await asyncio.gather(
            *(self._invoke(handler, carrier, payload) for handler in handlers),
            return_exceptions=True,
        )
        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            raise AggregateFailure(key, errors)

    @staticmethod
    async def _invoke(handler: EventHandler, carrier: Any, payload: Any) -> None:
        result = handler(carrier, payload)
        if inspect.isawaitable(result):
            await result

    def _detach(self, key: EventKey, handler: EventHandler, result: Awaitable[Any]) -> None:
        """Schedule an async handler's result without waiting for it."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            if inspect.iscoroutine(result):
                result.close()
            logger.warning(
                "async_handler_dropped",
                key=repr(key),
                handler=_handler_name(handler),
                reason="no running event loop",
            )
            return

        future = asyncio.ensure_future(result)
        # The loop only keeps weak references to tasks
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)


def create_emitter(
    handlers: EventHandlers | None = None,
    options: EmitterOptions | None = None,
) -> Dispatcher:
    """
    Create a dispatcher, optionally seeded with handlers.

    Usage:
        ee = create_emitter({
            "foo": [lambda carrier, payload: print("Foo:", payload)],
        })
        ee.on("bar", on_bar)
        ee.emit("foo", request, 42)
    """
    return Dispatcher(handlers, options)
