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
"""FlyGuard CSRF — session and per-page synchronizer-token protection."""

from flyguard.csrf.actions import (
    Action,
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
from flyguard.csrf.classifier import ProtectionClassifier
from flyguard.csrf.guard import CsrfGuard, RequestState, ValidationResult
from flyguard.csrf.matcher import matches, matches_exact
from flyguard.csrf.properties import CsrfGuardConfiguration, CsrfGuardProperties
from flyguard.csrf.store import SessionLockRegistry, TokenStore
from flyguard.csrf.strategies import (
    AJAX_HEADER_NAME,
    HeaderTokenStrategy,
    PageTokenStrategy,
    SessionTokenStrategy,
    ValidationError,
    ValidationFailure,
)
from flyguard.csrf.token import RandomSource, generate_token, resolve_prng

__all__ = [
    # Guard
    "CsrfGuard",
    "RequestState",
    "ValidationResult",
    # Configuration
    "CsrfGuardConfiguration",
    "CsrfGuardProperties",
    # Classification
    "ProtectionClassifier",
    "matches",
    "matches_exact",
    # Tokens
    "RandomSource",
    "SessionLockRegistry",
    "TokenStore",
    "generate_token",
    "resolve_prng",
    # Verification
    "AJAX_HEADER_NAME",
    "HeaderTokenStrategy",
    "PageTokenStrategy",
    "SessionTokenStrategy",
    "ValidationError",
    "ValidationFailure",
    # Actions
    "Action",
    "ActionDispatcher",
    "DenialResponse",
    "EmptyAction",
    "ErrorAction",
    "InvalidateAction",
    "LogAction",
    "RedirectAction",
    "RotateAction",
    "build_action",
    "build_actions",
]
