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
"""Token verification strategies.

A strategy compares the token presented by a request against the tokens
stored in its session. Failures are returned as :class:`ValidationError`
values rather than raised: a failed check means "deny this request", not
"the guard is broken".
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from flyguard.ports.request import CsrfRequest
from flyguard.ports.session import CsrfTokenSession

AJAX_HEADER_NAME = "X-Requested-With"
"""Header whose presence marks a request as an ajax request."""


class ValidationFailure(Enum):
    """Why a request failed token verification."""

    MISSING = "required token is missing from the request"
    SESSION_MISMATCH = "request token does not match session token"
    PAGE_MISMATCH = "request token does not match page token"


@dataclass(frozen=True)
class ValidationError:
    """A recoverable token verification failure."""

    reason: ValidationFailure
    strategy: str

    @property
    def message(self) -> str:
        return self.reason.value

    @property
    def is_missing(self) -> bool:
        return self.reason is ValidationFailure.MISSING

    @property
    def is_mismatch(self) -> bool:
        return not self.is_missing

    def __str__(self) -> str:
        return self.message


def is_ajax_request(request: CsrfRequest) -> bool:
    return request.get_header(AJAX_HEADER_NAME) is not None


def _tokens_equal(expected: str, actual: str) -> bool:
    return secrets.compare_digest(expected.encode("utf-8"), actual.encode("utf-8"))


class VerificationStrategy(Protocol):
    """Checks the request token against the session's stored tokens."""

    name: str

    def verify(
        self,
        request: CsrfRequest,
        session: CsrfTokenSession,
        token_name: str,
    ) -> ValidationError | None: ...


class HeaderTokenStrategy:
    """Ajax requests: the token travels in a header named after the token."""

    name = "header"

    def verify(
        self,
        request: CsrfRequest,
        session: CsrfTokenSession,
        token_name: str,
    ) -> ValidationError | None:
        token_from_request = request.get_header(token_name)
        if not token_from_request:
            return ValidationError(ValidationFailure.MISSING, self.name)
        if not _tokens_equal(session.get_master_token() or "", token_from_request):
            return ValidationError(ValidationFailure.SESSION_MISMATCH, self.name)
        return None


class PageTokenStrategy:
    """Per-page tokens: the page's own token wins, the master token is the fallback."""

    name = "page"

    def verify(
        self,
        request: CsrfRequest,
        session: CsrfTokenSession,
        token_name: str,
    ) -> ValidationError | None:
        token_from_request = request.get_parameter(token_name)
        if not token_from_request:
            return ValidationError(ValidationFailure.MISSING, self.name)

        page_tokens = session.get_page_tokens() or {}
        token_from_page = page_tokens.get(request.path)
        if token_from_page is not None:
            if not _tokens_equal(token_from_page, token_from_request):
                return ValidationError(ValidationFailure.PAGE_MISMATCH, self.name)
            return None

        if not _tokens_equal(session.get_master_token() or "", token_from_request):
            return ValidationError(ValidationFailure.SESSION_MISMATCH, self.name)
        return None


class SessionTokenStrategy:
    """Session-wide token submitted as a request parameter."""

    name = "session"

    def verify(
        self,
        request: CsrfRequest,
        session: CsrfTokenSession,
        token_name: str,
    ) -> ValidationError | None:
        token_from_request = request.get_parameter(token_name)
        if not token_from_request:
            return ValidationError(ValidationFailure.MISSING, self.name)
        if not _tokens_equal(session.get_master_token() or "", token_from_request):
            return ValidationError(ValidationFailure.SESSION_MISMATCH, self.name)
        return None
