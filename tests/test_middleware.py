import asyncio

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from starlette.requests import Request as StarletteRequest

from event_emitter import Dispatcher, EmitterMiddleware, get_emitter


def _build_app(**middleware_kwargs):
    app = FastAPI()
    app.add_middleware(EmitterMiddleware, **middleware_kwargs)
    return app


def test_request_flow_with_sync_handler():
    calls = []

    def on_created(carrier, payload):
        calls.append((carrier, payload))

    app = _build_app(handlers={"todo:created": [on_created]})
    seen_requests = []

    @app.post("/todo")
    def create_todo(request: Request):
        seen_requests.append(request)
        get_emitter(request).emit("todo:created", request, {"id": "2", "text": "Buy milk"})
        return {"message": "Todo created"}

    client = TestClient(app)
    response = client.post("/todo")

    assert response.status_code == 200
    assert response.json() == {"message": "Todo created"}
    assert calls == [(seen_requests[0], {"id": "2", "text": "Buy milk"})]


def test_request_flow_with_async_handler():
    calls = []

    async def on_created(carrier, payload):
        await asyncio.sleep(0)
        calls.append((carrier.url.path, payload))

    app = _build_app(handlers={"todo:created": [on_created]})

    @app.post("/todo")
    async def create_todo(request: Request):
        await get_emitter(request).emit_async("todo:created", request, {"id": "2"})
        return {"message": "Todo created"}

    response = TestClient(app).post("/todo")

    assert response.status_code == 200
    assert calls == [("/todo", {"id": "2"})]


def test_dispatcher_is_shared_between_requests():
    app = _build_app()
    seen = []

    @app.get("/ping")
    def ping(request: Request):
        seen.append(get_emitter(request))
        return {"ok": True}

    client = TestClient(app)
    client.get("/ping")
    client.get("/ping")

    assert len(seen) == 2
    assert seen[0] is seen[1]
    assert isinstance(seen[0], Dispatcher)


def test_existing_dispatcher_and_custom_state_key():
    dispatcher = Dispatcher()
    app = _build_app(dispatcher=dispatcher, state_key="events")
    seen = []

    @app.get("/ping")
    def ping(request: Request):
        seen.append(get_emitter(request, state_key="events"))
        return {"ok": True}

    TestClient(app).get("/ping")

    assert seen == [dispatcher]


def test_handlers_subscribed_in_route_persist():
    calls = []

    def on_ping(carrier, payload):
        calls.append(payload)

    app = _build_app()

    @app.get("/subscribe")
    def subscribe(request: Request):
        get_emitter(request).subscribe("ping", on_ping)
        return {"ok": True}

    @app.get("/ping")
    def ping(request: Request):
        get_emitter(request).emit("ping", request, "pong")
        return {"ok": True}

    client = TestClient(app)
    client.get("/subscribe")
    client.get("/subscribe")
    client.get("/ping")

    assert calls == ["pong"]


def test_get_emitter_without_middleware():
    request = StarletteRequest({"type": "http", "method": "GET", "path": "/", "headers": []})

    with pytest.raises(RuntimeError, match="EmitterMiddleware"):
        get_emitter(request)


def test_lifespan_scope_passes_through():
    received = []

    async def app(scope, receive, send):
        received.append(scope)

    middleware = EmitterMiddleware(app)
    scope = {"type": "lifespan", "state": {}}
    asyncio.run(middleware(scope, None, None))

    assert received == [scope]
    assert "emitter" not in scope["state"]


def test_http_scope_state_is_copied():
    received = []

    async def app(scope, receive, send):
        received.append(scope)

    middleware = EmitterMiddleware(app)
    shared_state = {"db": "conn"}
    asyncio.run(middleware({"type": "http", "state": shared_state}, None, None))

    assert received[0]["state"] == {"db": "conn", "emitter": middleware.dispatcher}
    assert shared_state == {"db": "conn"}
