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
"""CsrfGuardFilter — synchronizer-token CSRF protection for Starlette apps.

* Requests without a session pass straight through; a session the handler
  opened still gets its tokens issued.
* A session without a master token gets one before validation, whether it
  was just created or was loaded from a store that predates the guard.
* :meth:`CsrfGuard.validate` decides; an invalid request never reaches the
  handler and is answered from the :class:`DenialResponse` the failure
  actions shaped (403 JSON by default).
* :meth:`CsrfGuard.update_tokens` runs after every request so the next one
  finds its tokens in the session.

Misconfiguration (:class:`IntegrityViolationException`,
:class:`TokenGenerationException`) is not turned into a 403: it propagates.
"""

from __future__ import annotations

from typing import Any

from starlette.responses import JSONResponse

from flyguard.csrf.actions import DenialResponse
from flyguard.csrf.guard import CsrfGuard
from flyguard.web.adapters.starlette.request import StarletteCsrfRequest
from flyguard.web.filters import CSRF_FILTER_ORDER, CallNext, OncePerRequestFilter


def render_denial(denial: DenialResponse) -> JSONResponse:
    return JSONResponse(
        {"error": denial.message},
        status_code=denial.status_code,
        headers=denial.headers or None,
    )


def csrf_token(request: Any, uri: str | None = None) -> str | None:
    """Template helper: the token to embed in a form posting to *uri*."""
    guard: CsrfGuard | None = getattr(request.state, "csrf_guard", None)
    csrf_request: StarletteCsrfRequest | None = getattr(request.state, "csrf_request", None)
    if guard is None or csrf_request is None:
        return None
    return guard.get_token_value(csrf_request, uri)


class CsrfGuardFilter(OncePerRequestFilter):
    """Runs the CSRF guard for every request that carries a session.

    Ordering: inside the SessionFilter (``SESSION_FILTER_ORDER``) so the
    session is already on ``request.state``.
    """

    order = CSRF_FILTER_ORDER

    def __init__(self, guard: CsrfGuard, exclude_patterns: list[str] | None = None) -> None:
        self._guard = guard
        self.configure_patterns(exclude_patterns=exclude_patterns)

    @property
    def guard(self) -> CsrfGuard:
        return self._guard

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        session_key = self._guard.configuration.session_key
        session = getattr(request.state, "session", None)
        if session is None:
            response = await call_next(request)
            # the handler may have opened a session
            if getattr(request.state, "session", None) is not None:
                self._guard.update_tokens(StarletteCsrfRequest(request, session_key))
            return response

        csrf_request = await StarletteCsrfRequest.from_request(request, session_key)
        request.state.csrf_guard = self._guard
        request.state.csrf_request = csrf_request

        # new sessions, and stored sessions that predate the guard
        tokens = csrf_request.get_session(create=False)
        if tokens is not None and tokens.get_master_token() is None:
            self._guard.on_session_created(tokens)

        result = self._guard.validate(csrf_request)
        if result.valid:
            response = await call_next(request)
        else:
            response = render_denial(result.response or DenialResponse())

        self._guard.update_tokens(csrf_request)
        return response
