"""
Shared fixtures.

Two kinds of fake servers are provided:

- ``scripted_transport``: a TransportClient whose outcomes per URL are
  scripted, for exact attempt counting without HTTP in between.
- ``app``: a small FastAPI echo / failure-injection app mounted in-process
  through ``httpx.ASGITransport``, for end-to-end tests through httpx.
"""

import asyncio
import json
import uuid
from collections import defaultdict
from typing import Mapping, Optional, Union

import httpx
import pytest
import structlog
from fastapi import FastAPI, Query, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from kyhttp import BatchConfig, ClientConfig, KyClient, TransportError, TransportResult

Outcome = Union[int, str]


class ScriptedTransport:
    """
    TransportClient replaying scripted outcomes per URL.

    Each URL maps to a list of outcomes consumed in order; the last one
    repeats forever. An int is a status code, FAILURE a transport
    error returned in the result, RAISE a TransportError raised from
    execute(). Unscripted URLs answer ``default``.
    """

    FAILURE = "transport-failure"
    RAISE = "transport-raise"

    def __init__(
        self,
        script: Optional[Mapping[str, list[Outcome]]] = None,
        default: Outcome = 200,
        delay: float = 0.0,
    ):
        self.script = {url: list(outcomes) for url, outcomes in (script or {}).items()}
        self.default = default
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.max_in_flight = 0
        self.closed = False
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def calls_to(self, url: str) -> int:
        return sum(1 for _, called in self.calls if called == url)

    def _next_outcome(self, url: str) -> Outcome:
        outcomes = self.script.get(url)
        if not outcomes:
            return self.default
        return outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]

    async def execute(self, method, url, headers, body) -> TransportResult:
        self.calls.append((method, url))
        self._in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            outcome = self._next_outcome(url)
        finally:
            self._in_flight -= 1

        if outcome == self.RAISE:
            raise TransportError(f"Connection reset: {url}")
        if outcome == self.FAILURE:
            return TransportResult(
                status=0, error=TransportError(f"Network error: cannot reach {url}")
            )
        payload = {"url": url, "status": outcome, "call": self.calls_to(url)}
        return TransportResult(
            status=int(outcome),
            body=json.dumps(payload).encode(),
            headers={"content-type": "application/json"},
        )

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def scripted_transport():
    """Factory for ScriptedTransport instances."""
    return ScriptedTransport


def create_test_app() -> FastAPI:
    """Echo and failure-injection endpoints in the spirit of httpbin."""
    app = FastAPI(title="kyhttp test server")
    app.state.flaky_calls = defaultdict(int)

    def echo(request: Request) -> dict:
        return {
            "url": str(request.url),
            "args": dict(request.query_params),
            "headers": dict(request.headers),
        }

    @app.get("/get")
    async def get(request: Request):
        return echo(request)

    @app.get("/headers")
    async def headers(request: Request):
        return {"headers": dict(request.headers)}

    @app.post("/post")
    async def post(request: Request):
        body = await request.body()
        data = echo(request)
        data["json"] = json.loads(body) if body else None
        data["data"] = body.decode("utf-8")
        return data

    @app.get("/uuid")
    async def make_uuid():
        return {"uuid": str(uuid.uuid4())}

    @app.get("/text")
    async def text():
        return PlainTextResponse("definitely not json")

    @app.get("/status/{code}")
    async def status(code: int):
        return Response(status_code=code)

    @app.get("/flaky/{key}")
    async def flaky(key: str, request: Request, failures: int = Query(0, ge=0)):
        calls = request.app.state.flaky_calls
        calls[key] += 1
        if calls[key] <= failures:
            return Response(status_code=503)
        return {"key": key, "calls": calls[key]}

    @app.get("/redirect/{hops}")
    async def redirect(hops: int):
        target = f"/redirect/{hops - 1}" if hops > 1 else "/get"
        return RedirectResponse(url=target, status_code=302)

    return app


@pytest.fixture
def app():
    return create_test_app()


@pytest.fixture
def client_config():
    """Client configuration pointed at the in-process app."""
    return ClientConfig(
        base_url="http://testserver",
        batch=BatchConfig(poll_interval=0.01),
    )


@pytest.fixture
async def client(app, client_config):
    async with KyClient(client_config, http_transport=httpx.ASGITransport(app=app)) as client:
        yield client


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()
