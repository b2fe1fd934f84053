# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for HttpSession, its CSRF token view, and SessionFilter."""

from __future__ import annotations

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from flyguard.ports.session import CsrfTokenSession
from flyguard.core.config import Config
from flyguard.session import (
    PAGE_TOKENS_KEY,
    HttpSession,
    InMemorySessionStore,
    SessionFilter,
    SessionProperties,
    SessionStore,
)
from flyguard.web.adapters.starlette.filter_chain import WebFilterChainMiddleware


# ---------------------------------------------------------------------------
# HttpSession
# ---------------------------------------------------------------------------


class TestHttpSession:
    def test_attributes(self) -> None:
        session = HttpSession("s1")
        session.set_attribute("user", "alice")
        assert session.get_attribute("user") == "alice"
        assert session.get_attribute_names() == ["user"]
        session.remove_attribute("user")
        assert session.get_attribute("user") is None

    def test_modified_tracking(self) -> None:
        session = HttpSession("s1", {"x": 1})
        assert session.modified is False
        session.set_attribute("x", 2)
        assert session.modified is True

    def test_invalidate(self) -> None:
        session = HttpSession("s1")
        session.invalidate()
        assert session.invalidated is True


class TestHttpSessionTokens:
    def test_implements_port(self) -> None:
        assert isinstance(HttpSession("s1").csrf_tokens("KEY"), CsrfTokenSession)

    def test_reads_and_writes_session_attributes(self) -> None:
        session = HttpSession("s1")
        tokens = session.csrf_tokens("KEY")

        tokens.set_master_token("M1")
        tokens.set_page_tokens({"/a": "P1"})

        assert tokens.id == "s1"
        assert session.get_attribute("KEY") == "M1"
        assert session.get_attribute(PAGE_TOKENS_KEY) == {"/a": "P1"}
        assert tokens.get_page_tokens() is session.get_attribute(PAGE_TOKENS_KEY)


# ---------------------------------------------------------------------------
# InMemorySessionStore
# ---------------------------------------------------------------------------


class TestInMemorySessionStore:
    @pytest.mark.asyncio
    async def test_save_get_delete(self) -> None:
        store = InMemorySessionStore()
        await store.save("s1", {"a": 1}, ttl=60)
        assert await store.get("s1") == {"a": 1}
        await store.delete("s1")
        assert await store.get("s1") is None

    @pytest.mark.asyncio
    async def test_entries_expire_after_ttl(self) -> None:
        now = [100.0]
        store = InMemorySessionStore(clock=lambda: now[0])
        await store.save("s1", {"a": 1}, ttl=30)

        now[0] = 129.0
        assert await store.get("s1") == {"a": 1}
        now[0] = 130.0
        assert await store.get("s1") is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_save_extends_expiry(self) -> None:
        now = [0.0]
        store = InMemorySessionStore(clock=lambda: now[0])
        await store.save("s1", {}, ttl=10)
        now[0] = 8.0
        await store.save("s1", {"b": 2}, ttl=10)
        now[0] = 15.0
        assert await store.get("s1") == {"b": 2}

    def test_implements_store_port(self) -> None:
        assert isinstance(InMemorySessionStore(), SessionStore)


# ---------------------------------------------------------------------------
# SessionFilter
# ---------------------------------------------------------------------------


async def _visit(request: Request) -> PlainTextResponse:
    session = request.state.session
    if session is None:
        return PlainTextResponse("none")
    count = (session.get_attribute("count") or 0) + 1
    session.set_attribute("count", count)
    return PlainTextResponse(f"{session.id}:{count}")


async def _login(request: Request) -> PlainTextResponse:
    session = request.state.session or request.state.session_factory()
    session.set_attribute("user", "alice")
    return PlainTextResponse(session.id)


async def _logout(request: Request) -> PlainTextResponse:
    request.state.session.invalidate()
    return PlainTextResponse("bye")


def _make_app(store: InMemorySessionStore, *, create_eagerly: bool = True) -> Starlette:
    return Starlette(
        routes=[Route("/visit", _visit), Route("/login", _login), Route("/logout", _logout)],
        middleware=[
            Middleware(
                WebFilterChainMiddleware,
                filters=[SessionFilter(store, create_eagerly=create_eagerly)],
            )
        ],
    )


class TestSessionFilter:
    def test_session_persists_across_requests(self) -> None:
        client = TestClient(_make_app(InMemorySessionStore()))

        first = client.get("/visit").text
        second = client.get("/visit").text

        session_id, count = first.split(":")
        assert count == "1"
        assert second == f"{session_id}:2"
        assert client.cookies.get("FLYGUARD_SESSION") == session_id

    def test_lazy_mode_creates_sessions_on_demand(self) -> None:
        client = TestClient(_make_app(InMemorySessionStore(), create_eagerly=False))

        assert client.get("/visit").text == "none"
        assert "FLYGUARD_SESSION" not in client.cookies

        session_id = client.get("/login").text
        assert client.cookies.get("FLYGUARD_SESSION") == session_id
        assert client.get("/visit").text == f"{session_id}:1"

    def test_invalidated_session_is_dropped(self) -> None:
        client = TestClient(_make_app(InMemorySessionStore()))
        session_id = client.get("/visit").text.split(":")[0]

        client.get("/logout")
        new_id = client.get("/visit").text.split(":")[0]

        assert new_id != session_id

    def test_from_properties_uses_configured_cookie(self) -> None:
        properties = SessionProperties(cookie_name="APP_SESSION", ttl=60)
        app = Starlette(
            routes=[Route("/visit", _visit)],
            middleware=[
                Middleware(
                    WebFilterChainMiddleware,
                    filters=[SessionFilter.from_properties(InMemorySessionStore(), properties)],
                )
            ],
        )
        client = TestClient(app)

        session_id = client.get("/visit").text.split(":")[0]

        assert client.cookies.get("APP_SESSION") == session_id


# ---------------------------------------------------------------------------
# SessionProperties
# ---------------------------------------------------------------------------


class TestSessionProperties:
    def test_packaged_defaults(self) -> None:
        properties = Config.with_defaults().bind(SessionProperties)
        assert properties.cookie_name == "FLYGUARD_SESSION"
        assert properties.ttl == 1800
        assert properties.create_eagerly is True

    def test_kebab_case_keys(self) -> None:
        config = Config.with_defaults(
            {"flyguard": {"session": {"cookie-name": "SID", "create-eagerly": False}}}
        )
        properties = config.bind(SessionProperties)
        assert properties.cookie_name == "SID"
        assert properties.create_eagerly is False

    def test_ttl_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="SessionProperties"):
            Config({"flyguard": {"session": {"ttl": 0}}}).bind(SessionProperties)
