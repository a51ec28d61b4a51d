"""
Shared fixtures: an in-process fake Natter server.

The server speaks just enough of the Natter API for the client:

    POST /sessions             Basic or JSON credentials; bearer or cookie mode
    GET|POST /spaces           protected (bearer header, or cookie + CSRF)
    GET  /boom                 protected, always 500
    GET  /caps                 echoes the access_token it received
    GET  /lists/{name}         a list of capability URLs (see ``LISTS``)
    GET  /items/{n}            one list element (see ``DELAYS``)
    GET  /html                 200 with a non-JSON body
"""

import asyncio
import base64
import itertools
import json

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from natter_client.run_config import ClientRunConfig

USERS = {"alice": "s3cret", "blocked": "whatever"}

MODE = web.AppKey("mode", str)
CSRF_IN_COOKIE = web.AppKey("csrf_in_cookie", bool)
LOG = web.AppKey("log", list)
TOKENS = web.AppKey("tokens", set)
SESSIONS = web.AppKey("sessions", dict)
IN_FLIGHT = web.AppKey("in_flight", list)

# Relative links are resolved by the client against the list URL.
LISTS = {
    "ordered": [
        "/items/1#tok-1",
        "/items/2#tok-2",
        "/items/3#tok-3",
    ],
    "with-broken": [
        "/items/1#tok-1",
        "/items/404#tok-x",
        {"uri": "/items/3#tok-3"},
    ],
}

# Earlier elements answer more slowly than later ones.
DELAYS = {"1": 0.15, "2": 0.05}

_counter = itertools.count(1)


def _record(request: web.Request) -> None:
    request.app[LOG].append({
        "method": request.method,
        "path": request.path,
        "raw_query": request.rel_url.raw_query_string,
        "headers": dict(request.headers),
    })


def _credentials(request: web.Request, body: dict):
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Basic "):
        username, _, password = base64.b64decode(auth[6:]).decode().partition(":")
        return username, password
    return body.get("username"), body.get("password")


def _authenticated(request: web.Request) -> bool:
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth[7:] in request.app[TOKENS]
    session_id = request.cookies.get("JSESSIONID")
    csrf = request.app[SESSIONS].get(session_id)
    if csrf is None:
        return False
    if request.method in ("GET", "HEAD", "OPTIONS"):
        return True
    return request.headers.get("X-CSRF-Token") == csrf


async def sessions(request: web.Request) -> web.Response:
    _record(request)
    text = await request.text()
    body = json.loads(text) if text else {}
    username, password = _credentials(request, body)
    if username == "blocked":
        return web.json_response({"error": "forbidden"}, status=403)
    if USERS.get(username) != password:
        return web.json_response({"error": "bad credentials"}, status=401)

    n = next(_counter)
    if request.app[MODE] == "bearer":
        token = f"tok/{n}+="
        request.app[TOKENS].add(token)
        return web.json_response({"token": token}, status=201)

    session_id, csrf = f"sid-{n}", f"csrf-{n}"
    request.app[SESSIONS][session_id] = csrf
    resp = web.json_response({"token": csrf}, status=201)
    resp.set_cookie("JSESSIONID", session_id, httponly=True, path="/")
    if request.app[CSRF_IN_COOKIE]:
        resp.set_cookie("csrfToken", csrf, path="/")
    return resp


async def spaces(request: web.Request) -> web.Response:
    _record(request)
    if not _authenticated(request):
        return web.json_response({"error": "unauthorized"}, status=401)
    if request.method == "GET":
        return web.json_response([{"name": "general", "uri": "/spaces/1"}])
    body = await request.json()
    return web.json_response(
        {"name": body["name"], "uri": "/spaces/1"}, status=201
    )


async def boom(request: web.Request) -> web.Response:
    _record(request)
    return web.Response(status=500, reason="Internal Server Error")


async def caps(request: web.Request) -> web.Response:
    _record(request)
    return web.json_response({"received": request.query.get("access_token")})


async def lists(request: web.Request) -> web.Response:
    _record(request)
    if request.query.get("access_token") != "list-token":
        return web.json_response({"error": "forbidden"}, status=403)
    name = request.match_info["name"]
    if name == "not-a-list":
        return web.json_response({"items": []})
    return web.json_response(LISTS[name])


async def items(request: web.Request) -> web.Response:
    _record(request)
    n = request.match_info["n"]
    if n == "404":
        return web.json_response({"error": "not found"}, status=404)
    in_flight = request.app[IN_FLIGHT]
    in_flight.append(n)
    try:
        # Only one element may ever be in flight during a traversal.
        assert len(in_flight) == 1, f"concurrent item fetches: {in_flight}"
        await asyncio.sleep(DELAYS.get(n, 0))
    finally:
        in_flight.remove(n)
    return web.json_response({
        "index": int(n),
        "token": request.query.get("access_token"),
    })


async def not_json(request: web.Request) -> web.Response:
    _record(request)
    return web.Response(text="<html>nope</html>", content_type="text/html")


def build_app(mode: str = "bearer", csrf_in_cookie: bool = False) -> web.Application:
    app = web.Application()
    app[MODE] = mode
    app[CSRF_IN_COOKIE] = csrf_in_cookie
    app[LOG] = []
    app[TOKENS] = set()
    app[SESSIONS] = {}
    app[IN_FLIGHT] = []
    app.router.add_post("/sessions", sessions)
    app.router.add_route("*", "/spaces", spaces)
    app.router.add_get("/boom", boom)
    app.router.add_get("/caps", caps)
    app.router.add_get("/lists/{name}", lists)
    app.router.add_get("/items/{n}", items)
    app.router.add_get("/html", not_json)
    return app


async def _serve(app: web.Application):
    server = TestServer(app)
    await server.start_server()
    return server


@pytest_asyncio.fixture
async def bearer_server():
    server = await _serve(build_app("bearer"))
    yield server
    await server.close()


@pytest_asyncio.fixture
async def cookie_server():
    server = await _serve(build_app("cookie"))
    yield server
    await server.close()


@pytest_asyncio.fixture
async def cookie_server_csrf_cookie():
    server = await _serve(build_app("cookie", csrf_in_cookie=True))
    yield server
    await server.close()


def server_url(server: TestServer, path: str = "") -> str:
    return str(server.make_url(path))


def server_log(server: TestServer) -> list:
    return server.app[LOG]


@pytest.fixture
def make_config(tmp_path):
    """Build a ``ClientRunConfig`` pointed at *server*, isolated from the env."""
    def _make(server: TestServer, **overrides) -> ClientRunConfig:
        values = {
            "api_url": server_url(server),
            "storage_path": str(tmp_path / "storage.json"),
            "unsafe_cookies": True,
            "verify_tls": False,
        }
        values.update(overrides)
        return ClientRunConfig(**values)
    return _make
