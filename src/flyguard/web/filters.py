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
"""Filter contract for the guard's request pipeline.

A filter sees the request before the handler and the response after it.
Filters run inside one :class:`WebFilterChainMiddleware`, ordered by their
``order`` attribute (lower runs first, i.e. outermost). The session filter
must wrap the CSRF filter so the guard finds the session on
``request.state``.

Request and response are typed ``Any`` so nothing here depends on
Starlette.
"""

from __future__ import annotations

import abc
from collections.abc import Callable, Coroutine, Iterable
from fnmatch import fnmatch
from typing import Any, Protocol, runtime_checkable

CallNext = Callable[..., Coroutine[Any, Any, Any]]

SESSION_FILTER_ORDER = -200
CSRF_FILTER_ORDER = -100


@runtime_checkable
class WebFilter(Protocol):
    """A step of the filter chain."""

    async def do_filter(self, request: Any, call_next: CallNext) -> Any: ...

    def should_not_filter(self, request: Any) -> bool: ...


def filter_order(web_filter: Any) -> int:
    """Position of *web_filter* in the chain; filters without ``order`` sit at 0."""
    return int(getattr(web_filter, "order", 0))


class OncePerRequestFilter(abc.ABC):
    """Base class for filters scoped by glob patterns on the request path.

    Attributes:
        order: Chain position, see :func:`filter_order`.
        url_patterns: Paths the filter applies to; empty means every path.
        exclude_patterns: Paths skipped even when ``url_patterns`` matches.
    """

    order: int = 0
    url_patterns: list[str] = []
    exclude_patterns: list[str] = []

    def configure_patterns(
        self,
        url_patterns: Iterable[str] | None = None,
        exclude_patterns: Iterable[str] | None = None,
    ) -> None:
        """Override the class-level patterns for this instance."""
        if url_patterns is not None:
            self.url_patterns = list(url_patterns)
        if exclude_patterns is not None:
            self.exclude_patterns = list(exclude_patterns)

    def should_not_filter(self, request: Any) -> bool:
        path: str = request.url.path
        if self.url_patterns and not any(fnmatch(path, p) for p in self.url_patterns):
            return True
        return any(fnmatch(path, p) for p in self.exclude_patterns)

    @abc.abstractmethod
    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Handle *request*; ``await call_next(request)`` to continue the chain."""
        ...
