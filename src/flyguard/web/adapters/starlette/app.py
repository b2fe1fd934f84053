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
"""Wiring helpers for protecting a Starlette application."""

from __future__ import annotations

from collections.abc import Sequence

from starlette.middleware import Middleware

from flyguard.core.config import Config
from flyguard.csrf.guard import CsrfGuard
from flyguard.logging.structlog_adapter import StructlogAdapter
from flyguard.session.filter import SessionFilter, SessionProperties
from flyguard.session.store import InMemorySessionStore, SessionStore
from flyguard.web.adapters.starlette.csrf_filter import CsrfGuardFilter
from flyguard.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from flyguard.web.filters import WebFilter


def csrf_middleware(
    guard: CsrfGuard,
    store: SessionStore | None = None,
    *,
    session_cookie: str = "FLYGUARD_SESSION",
    session_ttl: int = 1800,
    create_sessions: bool = True,
    exclude_patterns: list[str] | None = None,
    extra_filters: Sequence[WebFilter] = (),
) -> Middleware:
    """Build the filter-chain middleware running sessions and the CSRF guard.

    Usage::

        guard = CsrfGuard.from_config(Config.from_file("flyguard.yaml"))
        app = Starlette(routes=routes, middleware=[csrf_middleware(guard)])
    """
    session_filter = SessionFilter(
        store if store is not None else InMemorySessionStore(),
        cookie_name=session_cookie,
        ttl=session_ttl,
        create_eagerly=create_sessions,
    )
    return _chain(session_filter, CsrfGuardFilter(guard, exclude_patterns=exclude_patterns), extra_filters)


def csrf_middleware_from_config(
    config: Config,
    store: SessionStore | None = None,
    *,
    exclude_patterns: list[str] | None = None,
    extra_filters: Sequence[WebFilter] = (),
    configure_logging: bool = True,
) -> Middleware:
    """Build the middleware from the ``flyguard.*`` sections of *config*.

    Logging is configured first (``flyguard.logging``) so the guard's
    construction event is already rendered the configured way; the session
    filter reads ``flyguard.session`` and the guard ``flyguard.csrf``.

    Raises:
        ValueError: A section fails validation.
        TokenGenerationException: The configured random source is unsupported.
    """
    if configure_logging:
        StructlogAdapter().configure(config)
    session_filter = SessionFilter.from_properties(
        store if store is not None else InMemorySessionStore(),
        config.bind(SessionProperties),
    )
    guard = CsrfGuard.from_config(config)
    return _chain(session_filter, CsrfGuardFilter(guard, exclude_patterns=exclude_patterns), extra_filters)


def _chain(
    session_filter: SessionFilter,
    csrf_filter: CsrfGuardFilter,
    extra_filters: Sequence[WebFilter],
) -> Middleware:
    return Middleware(WebFilterChainMiddleware, filters=[session_filter, csrf_filter, *extra_filters])
