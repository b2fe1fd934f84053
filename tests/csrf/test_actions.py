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
"""Tests for failure actions and the ActionDispatcher."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from flyguard.csrf.actions import (
    ActionDispatcher,
    DenialResponse,
    EmptyAction,
    ErrorAction,
    InvalidateAction,
    LogAction,
    RedirectAction,
    RotateAction,
    build_action,
    build_actions,
)
from flyguard.csrf.guard import CsrfGuard
from flyguard.csrf.properties import CsrfGuardConfiguration, CsrfGuardProperties
from flyguard.csrf.store import TokenStore
from flyguard.csrf.strategies import ValidationError, ValidationFailure
from flyguard.kernel.exceptions import (
    ConfigurationException,
    IntegrityViolationException,
    TokenGenerationException,
)
from flyguard.session.session import HttpSession, HttpSessionTokens

SESSION_KEY = "CSRF_KEY"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Request:
    def __init__(self, session: HttpSession | None = None) -> None:
        self.path = "/admin/x"
        self.method = "POST"
        self.session = session

    def get_header(self, name: str) -> str | None:
        return None

    def get_parameter(self, name: str) -> str | None:
        return None

    def get_session(self, create: bool = False) -> HttpSessionTokens | None:
        if self.session is None:
            return None
        return self.session.csrf_tokens(SESSION_KEY)


class _ExplodingAction:
    name = "explode"

    def execute(self, request, response, error, guard) -> None:
        raise RuntimeError("boom")


class _MarkingAction:
    name = "mark"

    def __init__(self) -> None:
        self.calls = 0

    def execute(self, request, response, error, guard) -> None:
        self.calls += 1


class _BrokenPrng:
    def randbytes(self, n: int) -> bytes:
        raise OSError("urandom unavailable")


class _IntegrityAction:
    name = "integrity"

    def execute(self, request, response, error, guard) -> None:
        raise IntegrityViolationException("no master token")


_ERROR = ValidationError(ValidationFailure.SESSION_MISMATCH, "session")


def _guard() -> CsrfGuard:
    properties = CsrfGuardProperties(session_key=SESSION_KEY, protect=True)
    return CsrfGuard(CsrfGuardConfiguration.from_properties(properties, actions=[]))


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class TestActionDispatcher:
    def test_failing_action_does_not_stop_the_rest(self) -> None:
        marker = _MarkingAction()
        dispatcher = ActionDispatcher([_ExplodingAction(), marker, _ExplodingAction(), marker])

        dispatcher.dispatch(_Request(), DenialResponse(), _ERROR, _guard())

        assert marker.calls == 2

    def test_failing_action_is_logged(self) -> None:
        dispatcher = ActionDispatcher([_ExplodingAction()])
        guard = _guard()
        with capture_logs() as logs:
            dispatcher.dispatch(_Request(), DenialResponse(), _ERROR, guard)

        failures = [entry for entry in logs if entry["event"] == "csrf_action_failed"]
        assert len(failures) == 1
        assert failures[0]["action"] == "explode"
        assert failures[0]["log_level"] == "error"

    def test_token_generation_failure_propagates(self) -> None:
        properties = CsrfGuardProperties(session_key=SESSION_KEY, protect=True)
        guard = CsrfGuard(
            CsrfGuardConfiguration.from_properties(properties, actions=[]),
            store=TokenStore(_BrokenPrng(), 32),
        )
        marker = _MarkingAction()
        dispatcher = ActionDispatcher([RotateAction(), marker])
        request = _Request(HttpSession("s1", {SESSION_KEY: "M1"}))

        with pytest.raises(TokenGenerationException):
            dispatcher.dispatch(request, DenialResponse(), _ERROR, guard)
        assert marker.calls == 0

    def test_integrity_violation_propagates(self) -> None:
        with pytest.raises(IntegrityViolationException):
            ActionDispatcher([_IntegrityAction()]).dispatch(_Request(), DenialResponse(), _ERROR, _guard())

    def test_returns_the_response(self) -> None:
        denial = DenialResponse()
        assert ActionDispatcher([EmptyAction()]).dispatch(_Request(), denial, _ERROR, _guard()) is denial


# ---------------------------------------------------------------------------
# Concrete actions
# ---------------------------------------------------------------------------


class TestConcreteActions:
    def test_log_action_emits_warning(self) -> None:
        guard = _guard()
        with capture_logs() as logs:
            LogAction().execute(_Request(HttpSession("s1")), DenialResponse(), _ERROR, guard)

        assert logs[0]["event"] == "csrf_attack_detected"
        assert logs[0]["log_level"] == "warning"
        assert logs[0]["reason"] == "SESSION_MISMATCH"
        assert logs[0]["session_id"] == "s1"

    def test_rotate_action_replaces_master_token(self) -> None:
        session = HttpSession("s1", {SESSION_KEY: "M1"})
        RotateAction().execute(_Request(session), DenialResponse(), _ERROR, _guard())
        assert session.get_attribute(SESSION_KEY) not in (None, "M1")

    def test_rotate_action_without_session_fails(self) -> None:
        dispatcher = ActionDispatcher([RotateAction()])
        with capture_logs() as logs:
            dispatcher.dispatch(_Request(), DenialResponse(), _ERROR, _guard())
        assert logs[-1]["error_type"] == "ActionException"

    def test_invalidate_action(self) -> None:
        session = HttpSession("s1")
        InvalidateAction().execute(_Request(session), DenialResponse(), _ERROR, _guard())
        assert session.invalidated is True

    def test_error_action_sets_status_and_message(self) -> None:
        denial = DenialResponse()
        ErrorAction(code=400, message="Bad token").execute(_Request(), denial, _ERROR, _guard())
        assert (denial.status_code, denial.message) == (400, "Bad token")

    def test_redirect_action(self) -> None:
        denial = DenialResponse()
        RedirectAction(page="/error.html").execute(_Request(), denial, _ERROR, _guard())
        assert denial.status_code == 302
        assert denial.headers == {"Location": "/error.html"}


# ---------------------------------------------------------------------------
# Building from configuration
# ---------------------------------------------------------------------------


class TestBuildActions:
    def test_builds_from_names_and_mappings(self) -> None:
        actions = build_actions(["log", {"name": "Error", "code": "401", "message": "x"}])
        assert isinstance(actions[0], LogAction)
        assert isinstance(actions[1], ErrorAction)
        assert actions[1].code == 401

    def test_unknown_action(self) -> None:
        with pytest.raises(ConfigurationException, match="unknown CSRF action"):
            build_action({"name": "teleport"})

    def test_bad_parameters(self) -> None:
        with pytest.raises(ConfigurationException, match="invalid parameters"):
            build_action({"name": "log", "level": "debug"})

    def test_redirect_requires_page(self) -> None:
        with pytest.raises(ConfigurationException):
            build_action({"name": "redirect", "page": ""})
