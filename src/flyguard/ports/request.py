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
"""Request port — what the guard needs to read from an incoming request.

Uses plain ``str`` values so that vendor-specific request types (e.g.
Starlette) remain confined to the adapter layer.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from flyguard.ports.session import CsrfTokenSession


@runtime_checkable
class CsrfRequest(Protocol):
    """Protocol for a request as seen by the CSRF guard."""

    @property
    def path(self) -> str:
        """The request path (without query string)."""
        ...

    @property
    def method(self) -> str:
        """The upper-case HTTP method."""
        ...

    def get_header(self, name: str) -> str | None:
        """Return a header value by case-insensitive name, or ``None``."""
        ...

    def get_parameter(self, name: str) -> str | None:
        """Return a query or form parameter value, or ``None``."""
        ...

    def get_session(self, create: bool = False) -> CsrfTokenSession | None:
        """Return the session, creating one only when *create* is ``True``."""
        ...
