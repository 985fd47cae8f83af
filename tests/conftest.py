import socket
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer
from multidict import MultiDict

from tautulli.client import ClientOptions, TautulliClient

API_PATH = '/api/v2'
API_KEY = 'test'


@dataclass
class RecordedRequest:
    method: str
    query: MultiDict
    headers: Dict[str, str]


class FakeTautulli:
    """Local HTTP server standing in for Tautulli.

    Only ``/api/v2`` is served; anything else answers 500 so that tests catch
    clients that drop the base URL path. Tests replace ``handler``.
    """

    def __init__(self):
        self.handler: Optional[Callable[[web.Request], Awaitable[web.StreamResponse]]] = None
        self.requests: List[RecordedRequest] = []
        self.server: Optional[TestServer] = None

    @property
    def base_url(self) -> str:
        return str(self.server.make_url('/'))

    async def _dispatch(self, request: web.Request) -> web.StreamResponse:
        self.requests.append(RecordedRequest(request.method, MultiDict(request.query), dict(request.headers)))
        if self.handler is None:
            return web.json_response({'response': {'result': 'success', 'message': None, 'data': {}}})
        return await self.handler(request)

    async def _wrong_prefix(self, request: web.Request) -> web.StreamResponse:
        return web.Response(status=500, text="Client base URL path prefix is not preserved in the request URL.")

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(API_PATH, self._dispatch)
        app.router.add_route('*', '/{tail:.*}', self._wrong_prefix)
        return app


@pytest_asyncio.fixture
async def tautulli_server():
    fake = FakeTautulli()
    server = TestServer(fake.app())
    await server.start_server()
    fake.server = server
    yield fake
    await server.close()


@pytest.fixture
def client(tautulli_server):
    return TautulliClient(tautulli_server.base_url, API_KEY, options=ClientOptions(debug=True))


@pytest.fixture
def unused_base_url():
    """Base URL of a port nothing listens on."""
    with socket.socket() as sock:
        sock.bind(('127.0.0.1', 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}/"
