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
"""SessionFilter — loads and persists HTTP sessions via cookies."""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from flyguard.core.config import config_properties, kebab_case
from flyguard.session.session import HttpSession
from flyguard.session.store import SessionStore
from flyguard.web.filters import SESSION_FILTER_ORDER, CallNext, OncePerRequestFilter

_DEFAULT_COOKIE_NAME = "FLYGUARD_SESSION"
_DEFAULT_TTL = 1800  # 30 minutes


@config_properties(prefix="flyguard.session")
class SessionProperties(BaseModel):
    """Settings under ``flyguard.session``."""

    model_config = ConfigDict(alias_generator=kebab_case, populate_by_name=True, frozen=True)

    cookie_name: str = _DEFAULT_COOKIE_NAME
    ttl: int = Field(default=_DEFAULT_TTL, ge=1)
    create_eagerly: bool = True


class SessionFilter(OncePerRequestFilter):
    """Manages server-side sessions via a configurable cookie.

    Reads the session cookie, loads session data from the ``SessionStore``
    and attaches the ``HttpSession`` to ``request.state.session``.

    With ``create_eagerly=False`` a request without a known session gets
    ``request.state.session = None`` and a ``request.state.session_factory``
    callable; downstream code creates the session on demand. Whatever
    session ends up on ``request.state`` is persisted after the response.
    """

    order = SESSION_FILTER_ORDER

    def __init__(
        self,
        store: SessionStore,
        cookie_name: str = _DEFAULT_COOKIE_NAME,
        ttl: int = _DEFAULT_TTL,
        *,
        create_eagerly: bool = True,
    ) -> None:
        self._store = store
        self._cookie_name = cookie_name
        self._ttl = ttl
        self._create_eagerly = create_eagerly

    @classmethod
    def from_properties(cls, store: SessionStore, properties: SessionProperties) -> SessionFilter:
        return cls(
            store,
            cookie_name=properties.cookie_name,
            ttl=properties.ttl,
            create_eagerly=properties.create_eagerly,
        )

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        session = await self._load_session(request)
        if session is None and self._create_eagerly:
            session = self._new_session()

        request.state.session = session
        request.state.session_factory = lambda: self._attach_new_session(request)

        try:
            response = await call_next(request)
        finally:
            session = getattr(request.state, "session", None)
            if session is not None:
                await self._persist_session(session)

        if session is None:
            return response

        if session.invalidated:
            response.delete_cookie(key=self._cookie_name)
        elif session.is_new:
            response.set_cookie(
                key=self._cookie_name,
                value=session.id,
                httponly=True,
                samesite="lax",
                max_age=self._ttl,
            )

        return response

    async def _load_session(self, request: Any) -> HttpSession | None:
        cookies = getattr(request, "cookies", {})
        session_id = cookies.get(self._cookie_name)
        if not session_id:
            return None
        data = await self._store.get(session_id)
        if data is None:
            return None
        return HttpSession(session_id, data)

    @staticmethod
    def _new_session() -> HttpSession:
        return HttpSession(uuid.uuid4().hex, is_new=True)

    def _attach_new_session(self, request: Any) -> HttpSession:
        session = self._new_session()
        request.state.session = session
        return session

    async def _persist_session(self, session: HttpSession) -> None:
        """Save or delete the session in the store based on its state."""
        if session.invalidated:
            await self._store.delete(session.id)
        elif session.modified:
            await self._store.save(session.id, session.get_data(), self._ttl)
