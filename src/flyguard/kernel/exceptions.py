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
"""Unified exception hierarchy for FlyGuard.

All fatal guard errors inherit from FlyGuardException so a host can catch
them in one place. Expected validation failures are *not* exceptions: they
are reported as :class:`~flyguard.csrf.strategies.ValidationError` values
inside a :class:`~flyguard.csrf.guard.ValidationResult`.

Categories:
- SecurityException: CSRF integrity and token generation failures
- ConfigurationException: Invalid or unsupported guard configuration
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class FlyGuardException(Exception):
    """Base exception for all FlyGuard errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CSRF_INTEGRITY").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    default_code: str | None = None

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code if code is not None else self.default_code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(FlyGuardException):
    """Security subsystem errors."""


class CsrfException(SecurityException):
    """Base class for CSRF guard failures that must not be swallowed."""


class IntegrityViolationException(CsrfException):
    """A protected request reached validation with no master token in session.

    Signals a wiring defect between token issuance and validation, never a
    forgery attempt.
    """

    default_code = "CSRF_INTEGRITY"


class TokenGenerationException(CsrfException):
    """The random source failed or is unsupported."""

    default_code = "CSRF_TOKEN_GENERATION"


class ActionException(CsrfException):
    """A failure action could not complete."""

    default_code = "CSRF_ACTION"


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(FlyGuardException):
    """Guard configuration is invalid."""

    default_code = "CSRF_CONFIGURATION"
