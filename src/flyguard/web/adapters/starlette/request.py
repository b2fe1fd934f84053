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
"""StarletteCsrfRequest — adapts a Starlette request to the CsrfRequest port."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

from flyguard.session.session import HttpSession, HttpSessionTokens

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class StarletteCsrfRequest:
    """Read-only view of a Starlette request for the synchronous guard.

    Form fields are read up-front by :meth:`from_request`; the raw body is
    kept on ``request.state.cached_body`` so the filter chain can replay it
    to the downstream application.

    The session is taken from ``request.state.session`` (set by
    :class:`~flyguard.session.filter.SessionFilter`).
    """

    def __init__(
        self,
        request: Any,
        session_key: str,
        form: Mapping[str, str] | None = None,
    ) -> None:
        self._request = request
        self._session_key = session_key
        self._form: Mapping[str, str] = form or {}

    @classmethod
    async def from_request(cls, request: Any, session_key: str) -> StarletteCsrfRequest:
        content_type = request.headers.get("content-type", "")
        form: dict[str, str] = {}
        if content_type.startswith(_FORM_CONTENT_TYPES):
            request.state.cached_body = await request.body()
            form_data = await request.form()
            try:
                for name, value in form_data.multi_items():
                    if isinstance(value, str):
                        form.setdefault(name, value)
            finally:
                await form_data.close()
        return cls(request, session_key, form)

    @property
    def raw(self) -> Any:
        return self._request

    @property
    def path(self) -> str:
        return self._request.url.path

    @property
    def method(self) -> str:
        return self._request.method.upper()

    def get_header(self, name: str) -> str | None:
        return self._request.headers.get(name)

    def get_parameter(self, name: str) -> str | None:
        value = self._request.query_params.get(name)
        if value is None:
            value = self._form.get(name)
        return value

    def get_session(self, create: bool = False) -> HttpSessionTokens | None:
        state = self._request.state
        session: HttpSession | None = getattr(state, "session", None)
        if session is None:
            if not create:
                return None
            factory = getattr(state, "session_factory", None)
            session = factory() if factory is not None else HttpSession(uuid.uuid4().hex, is_new=True)
            state.session = session
        return session.csrf_tokens(self._session_key)
