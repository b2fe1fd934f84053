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
"""TokenStore — session-scoped master token and page-token map.

Every read/modify/write of a session's tokens runs under a lock scoped to
that session id. Unrelated sessions never contend with each other.
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from flyguard.csrf.token import RandomSource, generate_token
from flyguard.ports.session import CsrfTokenSession

logger = structlog.get_logger("flyguard.csrf.store")


class _SessionLock:
    """Re-entrant lock that can be held in a WeakValueDictionary."""

    __slots__ = ("_lock", "__weakref__")

    def __init__(self) -> None:
        self._lock = threading.RLock()

    def __enter__(self) -> _SessionLock:
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._lock.release()


class SessionLockRegistry:
    """Hands out one lock per session id.

    Entries are weakly referenced: a lock lives exactly as long as some
    caller holds it, so the registry does not grow with the number of
    sessions ever seen.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, _SessionLock] = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def lock_for(self, session_id: str) -> _SessionLock:
        with self._guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = _SessionLock()
                self._locks[session_id] = lock
            return lock

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        with self.lock_for(session_id):
            yield

    def __len__(self) -> int:
        return len(self._locks)


class TokenStore:
    """Reads, creates and rotates the tokens bound to a session.

    Args:
        prng: Random source passed to :func:`generate_token`.
        token_length: Number of random bytes per token.
        token_per_page: Whether rotation also replaces the page token.
    """

    def __init__(
        self,
        prng: RandomSource,
        token_length: int,
        token_per_page: bool = False,
        locks: SessionLockRegistry | None = None,
    ) -> None:
        self._prng = prng
        self._token_length = token_length
        self._token_per_page = token_per_page
        self._locks = locks if locks is not None else SessionLockRegistry()

    def _new_token(self) -> str:
        return generate_token(self._prng, self._token_length)

    def get_master_token(self, session: CsrfTokenSession) -> str | None:
        return session.get_master_token()

    def ensure_master_token(self, session: CsrfTokenSession) -> str:
        """Return the master token, generating and storing it if absent."""
        with self._locks.hold(session.id):
            token = session.get_master_token()
            if token is None:
                token = self._new_token()
                session.set_master_token(token)
                logger.debug("csrf_master_token_created", session_id=session.id)
            return token

    def get_page_token(self, session: CsrfTokenSession, path: str) -> str | None:
        tokens = session.get_page_tokens()
        if tokens is None:
            return None
        return tokens.get(path)

    def ensure_page_tokens(self, session: CsrfTokenSession) -> dict[str, str]:
        """Return the page-token map, storing an empty one if absent."""
        with self._locks.hold(session.id):
            tokens = session.get_page_tokens()
            if tokens is None:
                tokens = {}
                session.set_page_tokens(tokens)
            return tokens

    def ensure_page_token(self, session: CsrfTokenSession, path: str) -> str:
        """Return the token for *path*, generating it on first use."""
        with self._locks.hold(session.id):
            tokens = self.ensure_page_tokens(session)
            token = tokens.get(path)
            if token is None:
                token = self._new_token()
                tokens[path] = token
                session.set_page_tokens(tokens)
                logger.debug("csrf_page_token_created", session_id=session.id, path=path)
            return token

    def rotate(self, session: CsrfTokenSession, path: str) -> None:
        """Replace the master token and, with per-page tokens on, the token for *path*.

        Tokens of other paths are left untouched and the map keeps its identity.
        """
        with self._locks.hold(session.id):
            master = self._new_token()
            page = self._new_token() if self._token_per_page else None

            session.set_master_token(master)
            if page is not None:
                tokens = self.ensure_page_tokens(session)
                tokens[path] = page
                session.set_page_tokens(tokens)

        logger.debug("csrf_tokens_rotated", session_id=session.id, path=path)
