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
"""Tests for token verification strategies."""

from __future__ import annotations

from flyguard.csrf.strategies import (
    HeaderTokenStrategy,
    PageTokenStrategy,
    SessionTokenStrategy,
    ValidationFailure,
    is_ajax_request,
)
from flyguard.session.session import HttpSession, HttpSessionTokens

SESSION_KEY = "CSRF_KEY"
TOKEN_NAME = "CSRF_TOKEN"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Request:
    def __init__(
        self,
        path: str = "/admin/x",
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.path = path
        self.method = "POST"
        self._params = params or {}
        self._headers = {k.lower(): v for k, v in (headers or {}).items()}

    def get_header(self, name: str) -> str | None:
        return self._headers.get(name.lower())

    def get_parameter(self, name: str) -> str | None:
        return self._params.get(name)

    def get_session(self, create: bool = False) -> None:
        return None


def _session(master: str = "M1", pages: dict[str, str] | None = None) -> HttpSessionTokens:
    session = HttpSession("s1").csrf_tokens(SESSION_KEY)
    session.set_master_token(master)
    if pages is not None:
        session.set_page_tokens(pages)
    return session


# ---------------------------------------------------------------------------
# Session strategy
# ---------------------------------------------------------------------------


class TestSessionTokenStrategy:
    def test_missing_parameter(self) -> None:
        error = SessionTokenStrategy().verify(_Request(), _session(), TOKEN_NAME)
        assert error is not None
        assert error.reason is ValidationFailure.MISSING
        assert error.message == "required token is missing from the request"

    def test_empty_parameter_counts_as_missing(self) -> None:
        error = SessionTokenStrategy().verify(_Request(params={TOKEN_NAME: ""}), _session(), TOKEN_NAME)
        assert error is not None and error.is_missing

    def test_mismatch(self) -> None:
        error = SessionTokenStrategy().verify(_Request(params={TOKEN_NAME: "WRONG"}), _session(), TOKEN_NAME)
        assert error is not None
        assert error.reason is ValidationFailure.SESSION_MISMATCH
        assert error.is_mismatch

    def test_match(self) -> None:
        assert SessionTokenStrategy().verify(_Request(params={TOKEN_NAME: "M1"}), _session(), TOKEN_NAME) is None


# ---------------------------------------------------------------------------
# Page strategy
# ---------------------------------------------------------------------------


class TestPageTokenStrategy:
    def test_page_token_wins_over_master(self) -> None:
        session = _session(master="M1", pages={"/admin/x": "P1"})
        strategy = PageTokenStrategy()

        assert strategy.verify(_Request(params={TOKEN_NAME: "P1"}), session, TOKEN_NAME) is None

        error = strategy.verify(_Request(params={TOKEN_NAME: "M1"}), session, TOKEN_NAME)
        assert error is not None
        assert error.reason is ValidationFailure.PAGE_MISMATCH

    def test_falls_back_to_master_without_page_entry(self) -> None:
        session = _session(master="M1", pages={"/other": "P2"})
        strategy = PageTokenStrategy()

        assert strategy.verify(_Request(params={TOKEN_NAME: "M1"}), session, TOKEN_NAME) is None

        error = strategy.verify(_Request(params={TOKEN_NAME: "P2"}), session, TOKEN_NAME)
        assert error is not None
        assert error.reason is ValidationFailure.SESSION_MISMATCH

    def test_falls_back_to_master_without_map(self) -> None:
        assert PageTokenStrategy().verify(_Request(params={TOKEN_NAME: "M1"}), _session(), TOKEN_NAME) is None

    def test_missing_parameter(self) -> None:
        error = PageTokenStrategy().verify(_Request(), _session(pages={}), TOKEN_NAME)
        assert error is not None and error.is_missing


# ---------------------------------------------------------------------------
# Header strategy
# ---------------------------------------------------------------------------


class TestHeaderTokenStrategy:
    def test_reads_token_from_header(self) -> None:
        request = _Request(headers={TOKEN_NAME: "M1"}, params={TOKEN_NAME: "WRONG"})
        assert HeaderTokenStrategy().verify(request, _session(), TOKEN_NAME) is None

    def test_parameter_is_ignored(self) -> None:
        error = HeaderTokenStrategy().verify(_Request(params={TOKEN_NAME: "M1"}), _session(), TOKEN_NAME)
        assert error is not None and error.is_missing

    def test_mismatch(self) -> None:
        error = HeaderTokenStrategy().verify(_Request(headers={TOKEN_NAME: "X"}), _session(), TOKEN_NAME)
        assert error is not None
        assert error.reason is ValidationFailure.SESSION_MISMATCH
        assert error.strategy == "header"


class TestIsAjaxRequest:
    def test_detects_requested_with_header(self) -> None:
        assert is_ajax_request(_Request(headers={"X-Requested-With": "XMLHttpRequest"})) is True
        assert is_ajax_request(_Request()) is False
