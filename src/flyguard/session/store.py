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
"""Session persistence used by :class:`~flyguard.session.filter.SessionFilter`.

The filter only loads a session when its cookie arrives, saves it when the
request changed it, and deletes it once invalidated; a store has to offer
exactly those three calls.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SessionStore(Protocol):
    """Where session attribute maps live between requests."""

    async def get(self, session_id: str) -> dict[str, Any] | None: ...

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None: ...

    async def delete(self, session_id: str) -> None: ...


class InMemorySessionStore:
    """Process-local store; entries expire *ttl* seconds after their last save.

    The stored attribute map is the one the request mutated, so token maps
    written in place by the guard are visible to the next request as soon
    as the session is saved.

    Args:
        clock: Monotonic time source in seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._sessions: dict[str, tuple[dict[str, Any], float]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(self, session_id: str) -> dict[str, Any] | None:
        async with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            data, expires_at = entry
            if self._clock() >= expires_at:
                del self._sessions[session_id]
                return None
            return data

    async def save(self, session_id: str, data: dict[str, Any], ttl: int) -> None:
        async with self._lock:
            self._sessions[session_id] = (data, self._clock() + ttl)

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            self._sessions.pop(session_id, None)
