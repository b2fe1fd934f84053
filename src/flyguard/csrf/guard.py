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
"""CsrfGuard — request validation and token issuance.

A request passes through :meth:`CsrfGuard.validate` once:

1. The :class:`ProtectionClassifier` decides whether the path and method
   need a token.
2. A protected request is verified with exactly one strategy, chosen in
   priority order: header (ajax), page (per-page tokens), session.
3. A failed verification runs every configured failure action.
4. Non-ajax requests rotate their tokens when rotation is enabled, whether
   or not verification passed.

:meth:`CsrfGuard.update_tokens` is the independent issuance path that runs
after a handler produced a response, so the next request from the same
session has tokens to present.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from flyguard.core.config import Config
from flyguard.csrf.actions import ActionDispatcher, DenialResponse
from flyguard.csrf.classifier import ProtectionClassifier
from flyguard.csrf.properties import CsrfGuardConfiguration
from flyguard.csrf.store import TokenStore
from flyguard.csrf.strategies import (
    HeaderTokenStrategy,
    PageTokenStrategy,
    SessionTokenStrategy,
    ValidationError,
    VerificationStrategy,
    is_ajax_request,
)
from flyguard.kernel.exceptions import IntegrityViolationException
from flyguard.ports.request import CsrfRequest
from flyguard.ports.session import CsrfTokenSession

logger = structlog.get_logger("flyguard.csrf")


class RequestState(Enum):
    """Outcome of validating a single request."""

    UNPROTECTED = "unprotected"
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class ValidationResult:
    """What :meth:`CsrfGuard.validate` decided for one request.

    Attributes:
        state: Final request state.
        error: The verification failure, only set when ``state`` is INVALID.
        response: The denial response after all actions ran, only set when
            ``state`` is INVALID.
        rotated: Whether the session's tokens were rotated.
    """

    state: RequestState
    error: ValidationError | None = None
    response: DenialResponse | None = None
    rotated: bool = False

    @property
    def valid(self) -> bool:
        return self.state is not RequestState.INVALID


class CsrfGuard:
    """Validates requests against the tokens bound to their session.

    Args:
        configuration: Resolved guard configuration.
        store: Token store; built from *configuration* when omitted.
    """

    def __init__(
        self,
        configuration: CsrfGuardConfiguration,
        store: TokenStore | None = None,
    ) -> None:
        self._config = configuration
        self._classifier = configuration.classifier()
        self._store = store or TokenStore(
            configuration.prng,
            configuration.token_length,
            token_per_page=configuration.token_per_page,
        )
        self._dispatcher = ActionDispatcher(configuration.actions)
        self._header_strategy = HeaderTokenStrategy()
        self._page_strategy = PageTokenStrategy()
        self._session_strategy = SessionTokenStrategy()

        logger.debug("csrf_guard_configured", **self.describe())

    @classmethod
    def from_config(cls, config: Config) -> CsrfGuard:
        """Build a guard from the ``flyguard.csrf`` configuration section."""
        return cls(CsrfGuardConfiguration.from_config(config))

    @property
    def configuration(self) -> CsrfGuardConfiguration:
        return self._config

    @property
    def classifier(self) -> ProtectionClassifier:
        return self._classifier

    @property
    def store(self) -> TokenStore:
        return self._store

    # -- classification -------------------------------------------------

    def is_protected_page(self, path: str) -> bool:
        return self._classifier.is_protected_page(path)

    def is_protected_method(self, method: str) -> bool:
        return self._classifier.is_protected_method(method)

    def is_protected_page_and_method(self, path: str, method: str) -> bool:
        return self._classifier.is_protected_page_and_method(path, method)

    # -- validation -----------------------------------------------------

    def is_valid_request(self, request: CsrfRequest, response: DenialResponse | None = None) -> bool:
        """Return ``True`` unless the request is protected and fails verification."""
        return self.validate(request, response).valid

    def validate(self, request: CsrfRequest, response: DenialResponse | None = None) -> ValidationResult:
        """Run the full validation cycle for *request*.

        Raises:
            IntegrityViolationException: The session carries no master token,
                meaning issuance never ran for it.
            TokenGenerationException: Rotation could not generate a token.
        """
        protected = self._classifier.is_protected_page_and_method(request.path, request.method)
        session = request.get_session(create=True)
        if session is None or session.get_master_token() is None:
            raise IntegrityViolationException(
                "CSRF guard expects the token to exist in session at this point",
                context={"path": request.path, "method": request.method},
            )

        if not protected:
            return ValidationResult(RequestState.UNPROTECTED)

        strategy = self._select_strategy(request)
        error = strategy.verify(request, session, self._config.token_name)

        denial: DenialResponse | None = None
        if error is None:
            state = RequestState.VALID
        else:
            state = RequestState.INVALID
            logger.debug(
                "csrf_validation_failed",
                path=request.path,
                method=request.method,
                strategy=strategy.name,
                reason=error.reason.name,
            )
            denial = self._dispatcher.dispatch(
                request, response if response is not None else DenialResponse(), error, self
            )

        rotated = False
        if not is_ajax_request(request) and self._config.rotate_enabled:
            self._store.rotate(session, request.path)
            rotated = True

        return ValidationResult(state, error=error, response=denial, rotated=rotated)

    def _select_strategy(self, request: CsrfRequest) -> VerificationStrategy:
        if self._config.ajax_enabled and is_ajax_request(request):
            return self._header_strategy
        if self._config.token_per_page:
            return self._page_strategy
        return self._session_strategy

    # -- issuance -------------------------------------------------------

    def on_session_created(self, session: CsrfTokenSession) -> str:
        """Bind a master token to a newly created session."""
        return self._store.ensure_master_token(session)

    def update_tokens(self, request: CsrfRequest) -> None:
        """Make sure the current session carries the tokens its next request needs."""
        session = request.get_session(create=False)
        if session is None:
            return

        self._store.ensure_master_token(session)

        if self._config.token_per_page:
            self._store.ensure_page_tokens(session)
            if self._classifier.is_protected_page_and_method(request.path, request.method):
                self._store.ensure_page_token(session, request.path)

    def rotate_tokens(self, request: CsrfRequest) -> None:
        session = request.get_session(create=True)
        if session is None:
            return
        self._store.rotate(session, request.path)

    def get_token_value(self, request: CsrfRequest, uri: str | None = None) -> str | None:
        """Return the token a page should embed when submitting to *uri*.

        *uri* defaults to the request path. The page token is preferred when
        per-page tokens are on; the master token is the fallback.
        """
        session = request.get_session(create=False)
        if session is None:
            return None

        uri = uri if uri is not None else request.path
        token: str | None = None

        if self._config.token_per_page and session.get_page_tokens() is not None:
            if self._config.token_per_page_precreate:
                self._store.ensure_page_token(session, uri)
            token = self._store.get_page_token(session, uri)

        if token is None:
            token = session.get_master_token()
        return token

    # -- introspection --------------------------------------------------

    def describe(self) -> dict[str, Any]:
        """Return the effective configuration as a loggable mapping (no token values)."""
        p = self._config.properties
        return {
            "token_name": p.token_name,
            "token_length": p.token_length,
            "prng": p.prng,
            "session_key": p.session_key,
            "protect": p.protect,
            "ajax": p.ajax,
            "rotate": p.rotate,
            "token_per_page": p.token_per_page,
            "token_per_page_precreate": p.token_per_page_precreate,
            "actions": [getattr(a, "name", type(a).__name__) for a in self._config.actions],
        }
