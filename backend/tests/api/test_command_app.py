"""Command App — end-to-end tests through FastAPI + httpx.

Tests cover:
    - GET and POST calls answer HTTP 200 with the Envelope and cache headers
    - Failures travel inside the Envelope (still HTTP 200)
    - Provider priority through the full stack
    - gzip negotiation on the real wire
    - Controller-written raw responses, 405 for other methods, health probe
    - Global error handlers for FastAPI routes
"""

import gzip

import pytest
from fastapi import APIRouter
from httpx import ASGITransport, AsyncClient

from jsoncommand.config import Settings
from jsoncommand.core.errors import AccessDeniedError
from jsoncommand.main import build_providers, create_app
from jsoncommand.services.controller_providers import StaticControllerProvider

from tests.fakes import CalcController, FallbackController


def _app():
    settings = Settings(_env_file=None, enable_entry_point_controllers=False)
    providers = [
        StaticControllerProvider({"Calc": CalcController}, name="primary"),
        StaticControllerProvider(
            {"Calc": FallbackController, "Other": FallbackController}, name="fallback",
        ),
    ]
    return create_app(settings=settings, providers=providers)


@pytest.fixture
async def client():
    async with AsyncClient(
        transport=ASGITransport(app=_app()), base_url="http://test",
    ) as c:
        yield c


# -- command calls -------------------------------------------------------------

async def test_get_call(client):
    resp = await client.get("/json/Calc/add", params={"json": "[20, 22]"})
    assert resp.status_code == 200
    assert resp.json() == {"data": 42, "status": True}
    assert resp.headers["content-type"] == "application/json"
    assert resp.headers["cache-control"] == "private, no-cache, no-store"


async def test_get_null_result_exact_bytes(client):
    resp = await client.get("/json/Calc/nothing", params={"json": "[]"})
    assert resp.content == b'{"data":null,"status":true}'


async def test_get_without_json_param(client):
    resp = await client.get("/json/Calc/add")
    assert resp.status_code == 200
    assert resp.json()["status"] is False
    assert resp.json()["data"]


async def test_post_call(client):
    resp = await client.post("/json/Calc/add", content=b"[1, 2]")
    assert resp.json() == {"data": 3, "status": True}


async def test_post_empty_body(client):
    resp = await client.post("/json/Calc/add", content=b"")
    assert resp.status_code == 200
    assert resp.json() == {
        "data": "error: Call to server had incorrect Content-Length specified.",
        "status": False,
    }


async def test_post_unicode_arguments(client):
    resp = await client.post(
        "/json/Calc/echo", content='["naïve ✓"]'.encode("utf-8"),
    )
    assert resp.json() == {"data": "naïve ✓", "status": True}


async def test_handler_failure_still_http_200(client):
    resp = await client.get("/json/Calc/boom", params={"json": "[]"})
    assert resp.status_code == 200
    assert resp.json()["status"] is False
    assert "ValueError boom" in resp.json()["data"]


async def test_upstream_connection_reset_answers_with_envelope(client):
    resp = await client.get("/json/Calc/upstream", params={"json": "[]"})
    assert resp.status_code == 200
    assert resp.json() == {"data": "error: Invalid JSON request made.", "status": False}


async def test_unserializable_result_answers_with_envelope(client):
    resp = await client.get("/json/Calc/opaque", params={"json": "[]"})
    assert resp.status_code == 200
    assert resp.json()["status"] is False


async def test_unknown_controller(client):
    resp = await client.get("/json/Ghost/run", params={"json": "[]"})
    assert resp.json() == {
        "data": "error: Unable to locate controller named 'Ghost'.", "status": False,
    }


async def test_primary_provider_wins(client):
    resp = await client.get("/json/Calc/whoami", params={"json": "[]"})
    assert resp.json()["data"] == "calc"
    resp = await client.get("/json/Other/whoami", params={"json": "[]"})
    assert resp.json()["data"] == "fallback"


async def test_forced_failure_via_context(client):
    resp = await client.post("/json/Calc/refuse", content=b'["not today"]')
    assert resp.json() == {"data": "not today", "status": False}


# -- compression ---------------------------------------------------------------

async def test_large_response_gzipped_when_accepted(client):
    resp = await client.get(
        "/json/Calc/big", params={"json": "[3000]"},
        headers={"Accept-Encoding": "gzip"},
    )
    assert resp.headers["content-encoding"] == "gzip"
    assert int(resp.headers["content-length"]) < 3000
    assert resp.json()["data"] == "x" * 3000


async def test_large_response_plain_when_gzip_not_accepted(client):
    resp = await client.get(
        "/json/Calc/big", params={"json": "[3000]"},
        headers={"Accept-Encoding": "identity"},
    )
    assert "content-encoding" not in resp.headers
    assert len(resp.content) > 3000


async def test_small_response_never_gzipped(client):
    resp = await client.get(
        "/json/Calc/big", params={"json": "[10]"},
        headers={"Accept-Encoding": "gzip"},
    )
    assert "content-encoding" not in resp.headers


async def test_gzip_body_is_valid_gzip():
    async with AsyncClient(
        transport=ASGITransport(app=_app()), base_url="http://test",
    ) as c:
        async with c.stream(
            "GET", "/json/Calc/big", params={"json": "[2000]"},
            headers={"Accept-Encoding": "gzip"},
        ) as resp:
            raw = b"".join([chunk async for chunk in resp.aiter_raw()])
    assert gzip.decompress(raw).startswith(b'{"data":"xxxx')


# -- transport edge cases ------------------------------------------------------

async def test_controller_raw_write_passes_through(client):
    resp = await client.get("/json/Calc/stream_raw", params={"json": "[]"})
    assert resp.content == b"raw"
    assert resp.headers["content-type"] == "text/plain"


async def test_other_methods_not_allowed(client):
    resp = await client.put("/json/Calc/add", content=b"[1, 2]")
    assert resp.status_code == 405
    assert resp.headers["allow"] == "GET, POST"


async def test_health_reports_provider_chain(client):
    resp = await client.get("/api/v1/health/")
    assert resp.status_code == 200
    assert resp.json()["providers"] == ["primary", "fallback"]


# -- app wiring and error handlers ---------------------------------------------

def test_build_providers_from_settings():
    settings = Settings(
        _env_file=None,
        controllers={"Decoder": "json:JSONDecoder"},
        enable_entry_point_controllers=True,
    )
    names = [p.name for p in build_providers(settings)]
    assert names == ["static", "plugins"]


def test_build_providers_without_plugins():
    settings = Settings(_env_file=None, enable_entry_point_controllers=False)
    assert [p.name for p in build_providers(settings)] == ["static"]


async def test_custom_prefix_mount():
    settings = Settings(_env_file=None, url_prefix="rpc/v2")
    app = create_app(
        settings=settings,
        providers=[StaticControllerProvider({"Calc": CalcController})],
    )
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.get("/rpc/v2/Calc/add", params={"json": "[1, 1]"})
    assert resp.json() == {"data": 2, "status": True}


async def test_error_handlers_wrap_route_failures_in_envelopes():
    app = _app()
    router = APIRouter()

    @router.get("/denied")
    async def denied():
        raise AccessDeniedError("token revoked")

    @router.get("/crash")
    async def crash():
        raise RuntimeError("secret internals")

    app.include_router(router)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        denied_resp = await c.get("/denied")
        crash_resp = await c.get("/crash")

    assert denied_resp.status_code == 200
    assert denied_resp.json() == {"data": "error: token revoked", "status": False}
    assert crash_resp.status_code == 500
    assert crash_resp.json()["status"] is False
    assert "secret" not in crash_resp.text
