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
"""Session port — typed access to the two attributes the guard owns."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CsrfTokenSession(Protocol):
    """Session extension exposing the master token and the page-token map.

    Implementations back these accessors with whatever storage the host
    session uses. The page-token map returned by :meth:`get_page_tokens`
    must be the stored object itself so in-place updates are persisted.
    """

    @property
    def id(self) -> str: ...

    def get_master_token(self) -> str | None: ...

    def set_master_token(self, token: str) -> None: ...

    def get_page_tokens(self) -> dict[str, str] | None: ...

    def set_page_tokens(self, tokens: dict[str, str]) -> None: ...

    def invalidate(self) -> None: ...
