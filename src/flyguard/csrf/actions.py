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
"""Failure actions — what happens when a request fails token verification.

Actions run in configuration order. An action that raises is logged and
skipped without stopping the remaining actions, except for
:class:`~flyguard.kernel.exceptions.IntegrityViolationException` and
:class:`~flyguard.kernel.exceptions.TokenGenerationException`, which
propagate out of the guard.

Configuration entries name an action and its parameters::

    flyguard:
      csrf:
        actions:
          - name: log
          - name: rotate
          - name: error
            code: 403
            message: "Security violation"
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import structlog

from flyguard.csrf.strategies import ValidationError
from flyguard.kernel.exceptions import (
    ActionException,
    ConfigurationException,
    IntegrityViolationException,
    TokenGenerationException,
)
from flyguard.ports.request import CsrfRequest

if TYPE_CHECKING:
    from flyguard.csrf.guard import CsrfGuard

logger = structlog.get_logger("flyguard.csrf.actions")


@dataclass
class DenialResponse:
    """Mutable description of the response sent for an invalid request.

    Actions adjust it; the web adapter renders it once all actions ran.
    """

    status_code: int = 403
    message: str = "CSRF token invalid"
    headers: dict[str, str] = field(default_factory=dict)


@runtime_checkable
class Action(Protocol):
    """A step executed for every request that fails verification."""

    name: str

    def execute(
        self,
        request: CsrfRequest,
        response: DenialResponse,
        error: ValidationError,
        guard: CsrfGuard,
    ) -> None: ...


class EmptyAction:
    """Does nothing; placeholder for configurations that want no side effects."""

    name = "empty"

    def execute(
        self,
        request: CsrfRequest,
        response: DenialResponse,
        error: ValidationError,
        guard: CsrfGuard,
    ) -> None:
        return None


class LogAction:
    """Logs the failed request at warning level."""

    name = "log"

    def execute(
        self,
        request: CsrfRequest,
        response: DenialResponse,
        error: ValidationError,
        guard: CsrfGuard,
    ) -> None:
        session = request.get_session(create=False)
        logger.warning(
            "csrf_attack_detected",
            path=request.path,
            method=request.method,
            reason=error.reason.name,
            error=error.message,
            strategy=error.strategy,
            session_id=session.id if session is not None else None,
        )


class RotateAction:
    """Rotates the session's tokens so a leaked token stops working."""

    name = "rotate"

    def execute(
        self,
        request: CsrfRequest,
        response: DenialResponse,
        error: ValidationError,
        guard: CsrfGuard,
    ) -> None:
        if request.get_session(create=False) is None:
            raise ActionException("cannot rotate tokens without a session")
        guard.rotate_tokens(request)


class InvalidateAction:
    """Invalidates the host session."""

    name = "invalidate"

    def execute(
        self,
        request: CsrfRequest,
        response: DenialResponse,
        error: ValidationError,
        guard: CsrfGuard,
    ) -> None:
        session = request.get_session(create=False)
        if session is not None:
            session.invalidate()


class ErrorAction:
    """Sets the denial status code and message."""

    name = "error"

    def __init__(self, code: int = 403, message: str = "Security violation") -> None:
        self.code = int(code)
        self.message = message

    def execute(
        self,
        request: CsrfRequest,
        response: DenialResponse,
        error: ValidationError,
        guard: CsrfGuard,
    ) -> None:
        response.status_code = self.code
        response.message = self.message


class RedirectAction:
    """Redirects the client to an error page."""

    name = "redirect"

    def __init__(self, page: str) -> None:
        if not page:
            raise ConfigurationException("redirect action requires a 'page' parameter")
        self.page = page

    def execute(
        self,
        request: CsrfRequest,
        response: DenialResponse,
        error: ValidationError,
        guard: CsrfGuard,
    ) -> None:
        response.status_code = 302
        response.headers["Location"] = self.page


_ACTION_FACTORIES: dict[str, Callable[..., Action]] = {
    EmptyAction.name: EmptyAction,
    LogAction.name: LogAction,
    RotateAction.name: RotateAction,
    InvalidateAction.name: InvalidateAction,
    ErrorAction.name: ErrorAction,
    RedirectAction.name: RedirectAction,
}


def build_action(entry: Mapping[str, Any] | str) -> Action:
    """Build one action from ``"log"`` or ``{"name": "error", "code": 400}``."""
    if isinstance(entry, str):
        entry = {"name": entry}
    params = dict(entry)
    name = str(params.pop("name", "")).strip().lower()
    factory = _ACTION_FACTORIES.get(name)
    if factory is None:
        raise ConfigurationException(f"unknown CSRF action '{name}'", context={"action": name})
    try:
        return factory(**params)
    except TypeError as exc:
        raise ConfigurationException(
            f"invalid parameters for CSRF action '{name}': {exc}",
            context={"action": name, "parameters": params},
        ) from exc


def build_actions(entries: Iterable[Mapping[str, Any] | str]) -> list[Action]:
    return [build_action(entry) for entry in entries]


class ActionDispatcher:
    """Runs every configured action for a failed request."""

    def __init__(self, actions: Sequence[Action] = ()) -> None:
        self._actions = tuple(actions)

    @property
    def actions(self) -> tuple[Action, ...]:
        return self._actions

    def dispatch(
        self,
        request: CsrfRequest,
        response: DenialResponse,
        error: ValidationError,
        guard: CsrfGuard,
    ) -> DenialResponse:
        for action in self._actions:
            try:
                action.execute(request, response, error, guard)
            except (IntegrityViolationException, TokenGenerationException):
                raise
            except Exception as exc:
                logger.error(
                    "csrf_action_failed",
                    action=getattr(action, "name", type(action).__name__),
                    path=request.path,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
        return response
